from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from app.core.config import settings
from app.core.database import connect_to_mongo, close_mongo_connection, get_database
from app.api.errors import register_exception_handlers
from app.api.routes import products, interactions
from app.repositories.memory_store import InMemoryCatalogStore, InMemoryUserStore
from app.repositories.mongo_store import MongoCatalogStore, MongoUserStore

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Backend API for a classifieds marketplace - product discovery, proximity search and likes",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Initialize storage on startup."""
    logger.info("Starting up %s backend (%s storage)...", settings.PROJECT_NAME, settings.STORAGE_BACKEND)
    if settings.STORAGE_BACKEND == "memory":
        app.state.catalog_store = InMemoryCatalogStore()
        app.state.user_store = InMemoryUserStore()
    else:
        await connect_to_mongo()
        db = get_database()
        app.state.catalog_store = MongoCatalogStore(db)
        app.state.user_store = MongoUserStore(db)
        await app.state.catalog_store.ensure_indexes()
    logger.info("%s backend started successfully", settings.PROJECT_NAME)


@app.on_event("shutdown")
async def shutdown_event():
    """Clean up storage on shutdown."""
    logger.info("Shutting down %s backend...", settings.PROJECT_NAME)
    if settings.STORAGE_BACKEND == "mongo":
        await close_mongo_connection()
    logger.info("%s backend shut down successfully", settings.PROJECT_NAME)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "classifieds-backend",
        "version": "1.0.0"
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.PROJECT_NAME,
        "version": "1.0.0",
        "description": "Classifieds Backend API",
        "docs": "/docs",
        "health": "/health"
    }


# Include routers
app.include_router(products.router, prefix=f"{settings.API_V1_PREFIX}/products", tags=["Products"])
app.include_router(interactions.router, prefix=f"{settings.API_V1_PREFIX}/interactions", tags=["Interactions"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
