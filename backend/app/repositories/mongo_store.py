"""MongoDB (Motor) implementation of the catalog stores.

Counters are only ever changed with single-document $inc updates, and owner
edits only $set editable fields, so concurrent likes, views and edits on the
same product never overwrite each other.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from app.core.database import ensure_indexes
from app.core.errors import NotFound
from app.models.product import Product
from app.models.query import GeoQuery, ProductFilter, SortOrder
from app.models.user import User
from app.repositories.base import CatalogStore, UserStore, merge_update, prepare_insert
from app.services.ownership import owner_only
from app.utils.helpers import canonical_id, format_document, get_current_timestamp, parse_object_id

logger = logging.getLogger(__name__)

SORT_SPECS = {
    SortOrder.NEWEST: [("created_at", -1), ("_id", -1)],
    SortOrder.PRICE_ASC: [("price", 1), ("_id", 1)],
    SortOrder.PRICE_DESC: [("price", -1), ("_id", -1)],
}


def build_filter(product_filter: ProductFilter) -> Dict[str, Any]:
    """Translate a ProductFilter into a MongoDB query document."""
    query: Dict[str, Any] = {}

    if product_filter.status:
        query["status"] = product_filter.status
    if product_filter.category:
        query["category"] = product_filter.category
    if product_filter.min_price is not None:
        query.setdefault("price", {})["$gte"] = product_filter.min_price
    if product_filter.max_price is not None:
        query.setdefault("price", {})["$lte"] = product_filter.max_price
    if product_filter.keyword:
        pattern = re.escape(product_filter.keyword)
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
            {"category": {"$regex": pattern, "$options": "i"}}
        ]

    return query


def to_product(document: dict) -> Product:
    return Product.model_validate(format_document(document))


class MongoCatalogStore(CatalogStore):
    """Catalog backed by the `products` collection."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db.products

    async def ensure_indexes(self) -> None:
        await ensure_indexes(self.db)

    async def insert(self, product: Product) -> Product:
        product = prepare_insert(product)
        result = await self.collection.insert_one(product.to_document())
        product.id = str(result.inserted_id)
        return product

    async def get_by_id(self, product_id: str) -> Product:
        oid = parse_object_id(product_id)
        document = await self.collection.find_one({"_id": oid}) if oid else None
        if not document:
            raise NotFound("Product not found")
        return to_product(document)

    async def get_many(self, product_ids: List[str]) -> List[Product]:
        oids = [oid for oid in (parse_object_id(pid) for pid in product_ids) if oid]
        if not oids:
            return []

        documents = await self.collection.find({"_id": {"$in": oids}}).to_list(length=None)
        by_id = {str(doc["_id"]): doc for doc in documents}
        wanted = [canonical_id(pid) for pid in product_ids]
        return [to_product(by_id[pid]) for pid in wanted if pid in by_id]

    @owner_only
    async def update_fields(
        self,
        product_id: str,
        owner_id: str,
        changes: Dict[str, Any],
        current: Optional[Product] = None
    ) -> Product:
        _, payload = merge_update(current, changes)

        document = await self.collection.find_one_and_update(
            {"_id": parse_object_id(product_id), "owner_id": str(owner_id)},
            {"$set": payload},
            return_document=ReturnDocument.AFTER
        )
        if not document:
            raise NotFound("Product not found")
        return to_product(document)

    @owner_only
    async def delete(self, product_id: str, owner_id: str, current: Optional[Product] = None) -> None:
        result = await self.collection.delete_one(
            {"_id": parse_object_id(product_id), "owner_id": str(owner_id)}
        )
        if result.deleted_count == 0:
            raise NotFound("Product not found")

    async def query(
        self,
        product_filter: ProductFilter,
        sort: SortOrder,
        page: int,
        page_size: int
    ) -> Tuple[List[Product], int]:
        query = build_filter(product_filter)
        skip = (page - 1) * page_size

        cursor = self.collection.find(query).sort(SORT_SPECS[SortOrder(sort)]).skip(skip).limit(page_size)
        documents = await cursor.to_list(length=page_size)
        total = await self.collection.count_documents(query)

        return [to_product(doc) for doc in documents], total

    async def search_near(
        self,
        product_filter: ProductFilter,
        geo: GeoQuery,
        page: int,
        page_size: int
    ) -> Tuple[List[Product], int]:
        skip = (page - 1) * page_size
        pipeline = [
            {
                "$geoNear": {
                    "near": {"type": "Point", "coordinates": [geo.lng, geo.lat]},
                    "distanceField": "distance",
                    "maxDistance": geo.max_distance_m,
                    "spherical": True,
                    "key": "location",
                    "query": build_filter(product_filter)
                }
            },
            # $geoNear orders by distance only; pin equal distances to creation order
            {"$sort": {"distance": 1, "created_at": 1, "_id": 1}},
            {
                "$facet": {
                    "items": [{"$skip": skip}, {"$limit": page_size}],
                    "total": [{"$count": "count"}]
                }
            }
        ]

        results = await self.collection.aggregate(pipeline).to_list(length=1)
        if not results:
            return [], 0

        facet = results[0]
        total = facet["total"][0]["count"] if facet.get("total") else 0
        return [to_product(doc) for doc in facet.get("items", [])], total

    async def list_by_owner(self, owner_id: str) -> List[Product]:
        cursor = self.collection.find({"owner_id": str(owner_id)}).sort(SORT_SPECS[SortOrder.NEWEST])
        documents = await cursor.to_list(length=None)
        return [to_product(doc) for doc in documents]

    async def increment_views(self, product_id: str) -> Product:
        oid = parse_object_id(product_id)
        document = None
        if oid:
            document = await self.collection.find_one_and_update(
                {"_id": oid},
                {"$inc": {"views_count": 1}, "$set": {"updated_at": get_current_timestamp()}},
                return_document=ReturnDocument.AFTER
            )
        if not document:
            raise NotFound("Product not found")
        return to_product(document)

    async def adjust_likes(self, product_id: str, delta: int) -> Product:
        oid = parse_object_id(product_id)
        if not oid:
            raise NotFound("Product not found")

        query: Dict[str, Any] = {"_id": oid}
        if delta < 0:
            # Conditional decrement keeps the counter at or above zero
            query["likes_count"] = {"$gte": -delta}

        document = await self.collection.find_one_and_update(
            query,
            {"$inc": {"likes_count": delta}, "$set": {"updated_at": get_current_timestamp()}},
            return_document=ReturnDocument.AFTER
        )
        if document:
            return to_product(document)

        if delta < 0:
            logger.info("likes_count of product %s already at zero", product_id)
            return await self.get_by_id(product_id)
        raise NotFound("Product not found")


class MongoUserStore(UserStore):
    """Like-sets kept on documents of the `users` collection."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.users

    @staticmethod
    def _user_query(user_id: str) -> Dict[str, Any]:
        oid = parse_object_id(user_id)
        return {"_id": oid if oid else user_id}

    async def get_user(self, user_id: str) -> User:
        document = await self.collection.find_one(self._user_query(user_id))
        if not document:
            raise NotFound("User not found")
        return User.model_validate(format_document(document))

    async def add_liked(self, user_id: str, product_id: str) -> bool:
        query = self._user_query(user_id)
        query["liked_product_ids"] = {"$ne": product_id}
        result = await self.collection.update_one(
            query,
            {"$addToSet": {"liked_product_ids": product_id}}
        )
        return result.modified_count == 1

    async def remove_liked(self, user_id: str, product_id: str) -> bool:
        query = self._user_query(user_id)
        query["liked_product_ids"] = product_id
        result = await self.collection.update_one(
            query,
            {"$pull": {"liked_product_ids": product_id}}
        )
        return result.modified_count == 1
