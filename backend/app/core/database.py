import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, GEOSPHERE, TEXT

from app.core.config import settings

logger = logging.getLogger(__name__)

# Global MongoDB client
_client: AsyncIOMotorClient = None
_database: AsyncIOMotorDatabase = None


async def connect_to_mongo():
    """Connect to MongoDB."""
    global _client, _database
    _client = AsyncIOMotorClient(settings.MONGODB_URI)
    _database = _client[settings.MONGODB_DB_NAME]
    logger.info("Connected to MongoDB: %s", settings.MONGODB_DB_NAME)


async def close_mongo_connection():
    """Close MongoDB connection."""
    global _client, _database
    if _client:
        _client.close()
        _client = None
        _database = None
        logger.info("Closed MongoDB connection")


def get_database() -> AsyncIOMotorDatabase:
    """Get MongoDB database instance."""
    return _database


async def ensure_indexes(db: AsyncIOMotorDatabase):
    """Create the catalog indexes used by browse and proximity queries."""
    await db.products.create_index([("location", GEOSPHERE)], name="location_2dsphere")
    await db.products.create_index(
        [("name", TEXT), ("description", TEXT), ("category", TEXT)],
        name="keyword_text"
    )
    await db.products.create_index([("category", ASCENDING), ("status", ASCENDING)])
    await db.products.create_index([("owner_id", ASCENDING), ("status", ASCENDING)])
    await db.products.create_index([("created_at", DESCENDING)])
    logger.info("Catalog indexes ensured")
