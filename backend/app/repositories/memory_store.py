"""In-memory implementation of the catalog stores.

Keeps documents in dicts and mirrors the MongoDB semantics: atomic per-call
counter updates, the same filter rules and the same sort keys. Used with
STORAGE_BACKEND=memory and by the test-suite.
"""
import asyncio
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId

from app.core.errors import NotFound
from app.models.product import Product
from app.models.query import GeoQuery, ProductFilter, SortOrder
from app.models.user import User
from app.repositories.base import CatalogStore, UserStore, merge_update, prepare_insert
from app.services.ownership import owner_only
from app.utils.geolocation import calculate_distance
from app.utils.helpers import canonical_id, get_current_timestamp


def matches(document: Dict[str, Any], product_filter: ProductFilter) -> bool:
    """Evaluate a ProductFilter against a stored document."""
    if product_filter.status and document["status"] != product_filter.status:
        return False
    if product_filter.category and document["category"] != product_filter.category:
        return False
    if product_filter.min_price is not None and document["price"] < product_filter.min_price:
        return False
    if product_filter.max_price is not None and document["price"] > product_filter.max_price:
        return False
    if product_filter.keyword:
        needle = product_filter.keyword.lower()
        fields = (document["name"], document["description"], document["category"])
        if not any(needle in field.lower() for field in fields):
            return False
    return True


def sort_key(sort: SortOrder):
    sort = SortOrder(sort)
    if sort == SortOrder.PRICE_ASC:
        return lambda item: (item[1]["price"], item[0]), False
    if sort == SortOrder.PRICE_DESC:
        return lambda item: (item[1]["price"], item[0]), True
    return lambda item: (item[1]["created_at"], item[0]), True


class InMemoryCatalogStore(CatalogStore):

    def __init__(self) -> None:
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    def _load(self, product_id: str, **extra) -> Product:
        document = self._documents.get(canonical_id(product_id))
        if document is None:
            raise NotFound("Product not found")
        return Product.model_validate({**document, "_id": canonical_id(product_id), **extra})

    async def insert(self, product: Product) -> Product:
        product = prepare_insert(product)
        product_id = str(ObjectId())
        async with self._lock:
            self._documents[product_id] = product.to_document()
        product.id = product_id
        return product

    async def get_by_id(self, product_id: str) -> Product:
        return self._load(product_id)

    async def get_many(self, product_ids: List[str]) -> List[Product]:
        return [self._load(pid) for pid in product_ids if canonical_id(pid) in self._documents]

    @owner_only
    async def update_fields(
        self,
        product_id: str,
        owner_id: str,
        changes: Dict[str, Any],
        current: Optional[Product] = None
    ) -> Product:
        _, payload = merge_update(current, changes)
        async with self._lock:
            document = self._documents.get(canonical_id(product_id))
            if document is None or document["owner_id"] != str(owner_id):
                raise NotFound("Product not found")
            document.update(payload)
        return self._load(product_id)

    @owner_only
    async def delete(self, product_id: str, owner_id: str, current: Optional[Product] = None) -> None:
        async with self._lock:
            document = self._documents.get(canonical_id(product_id))
            if document is None or document["owner_id"] != str(owner_id):
                raise NotFound("Product not found")
            del self._documents[canonical_id(product_id)]

    async def query(
        self,
        product_filter: ProductFilter,
        sort: SortOrder,
        page: int,
        page_size: int
    ) -> Tuple[List[Product], int]:
        found = [(pid, doc) for pid, doc in self._documents.items() if matches(doc, product_filter)]
        key, reverse = sort_key(sort)
        found.sort(key=key, reverse=reverse)

        skip = (page - 1) * page_size
        window = found[skip:skip + page_size]
        return [self._load(pid) for pid, _ in window], len(found)

    async def search_near(
        self,
        product_filter: ProductFilter,
        geo: GeoQuery,
        page: int,
        page_size: int
    ) -> Tuple[List[Product], int]:
        center = {"lat": geo.lat, "lng": geo.lng}
        ranked = []
        for pid, doc in self._documents.items():
            if not matches(doc, product_filter):
                continue
            lng, lat = doc["location"]["coordinates"]
            meters = calculate_distance(center, {"lat": lat, "lng": lng}) * 1000
            if meters <= geo.max_distance_m:
                ranked.append((meters, doc["created_at"], pid))
        ranked.sort()

        skip = (page - 1) * page_size
        window = ranked[skip:skip + page_size]
        return [self._load(pid, distance=meters) for meters, _, pid in window], len(ranked)

    async def list_by_owner(self, owner_id: str) -> List[Product]:
        found = [(pid, doc) for pid, doc in self._documents.items() if doc["owner_id"] == str(owner_id)]
        key, reverse = sort_key(SortOrder.NEWEST)
        found.sort(key=key, reverse=reverse)
        return [self._load(pid) for pid, _ in found]

    async def increment_views(self, product_id: str) -> Product:
        async with self._lock:
            document = self._documents.get(canonical_id(product_id))
            if document is None:
                raise NotFound("Product not found")
            document["views_count"] += 1
            document["updated_at"] = get_current_timestamp()
        return self._load(product_id)

    async def adjust_likes(self, product_id: str, delta: int) -> Product:
        async with self._lock:
            document = self._documents.get(canonical_id(product_id))
            if document is None:
                raise NotFound("Product not found")
            if document["likes_count"] + delta >= 0:
                document["likes_count"] += delta
                document["updated_at"] = get_current_timestamp()
        return self._load(product_id)


class InMemoryUserStore(UserStore):

    def __init__(self, users: Optional[List[User]] = None) -> None:
        self._users: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        for user in users or []:
            self.add_user(user)

    def add_user(self, user: User) -> User:
        """Register an account, as the account service would."""
        user_id = user.id or str(ObjectId())
        self._users[user_id] = {
            "liked_product_ids": list(user.liked_product_ids),
            "is_active": user.is_active,
        }
        return User(_id=user_id, **self._users[user_id])

    async def get_user(self, user_id: str) -> User:
        document = self._users.get(str(user_id))
        if document is None:
            raise NotFound("User not found")
        return User(_id=str(user_id), **{**document, "liked_product_ids": list(document["liked_product_ids"])})

    async def add_liked(self, user_id: str, product_id: str) -> bool:
        async with self._lock:
            document = self._users.get(str(user_id))
            if document is None or product_id in document["liked_product_ids"]:
                return False
            document["liked_product_ids"].append(product_id)
            return True

    async def remove_liked(self, user_id: str, product_id: str) -> bool:
        async with self._lock:
            document = self._users.get(str(user_id))
            if document is None or product_id not in document["liked_product_ids"]:
                return False
            document["liked_product_ids"].remove(product_id)
            return True
