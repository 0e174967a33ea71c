"""Abstract stores for the catalog.

Services depend only on these interfaces. The MongoDB implementation is the
production backend; the in-memory one serves local development and tests.
Every method is a coroutine because every call is a round-trip to storage.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError
from app.models.product import EDITABLE_FIELDS, Product
from app.models.query import GeoQuery, ProductFilter, SortOrder
from app.models.user import User
from app.utils.helpers import get_current_timestamp


def format_validation_errors(exc: PydanticValidationError) -> List[str]:
    """Flatten pydantic errors into "field: message" strings."""
    messages = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "body"
        messages.append(f"{field}: {err.get('msg', 'Invalid value')}")
    return messages


def validate_product(data: Dict[str, Any]) -> Product:
    """Build a Product from raw data, raising the catalog's ValidationError."""
    try:
        return Product.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError("Validation failed", errors=format_validation_errors(exc))


def prepare_insert(product: Product) -> Product:
    """Re-validate a new product and stamp its server-managed fields."""
    now = get_current_timestamp()
    data = product.to_document()
    data.update(likes_count=0, views_count=0, created_at=now, updated_at=now)
    return validate_product(data)


def merge_update(product: Product, changes: Dict[str, Any]) -> Tuple[Product, Dict[str, Any]]:
    """
    Apply a partial update to a product and validate the merged record.

    Returns the merged product and the $set payload: the changed editable
    fields plus updated_at. Counters, owner and timestamps are never written.
    """
    forbidden = sorted(set(changes) - EDITABLE_FIELDS)
    if forbidden:
        raise ValidationError(
            "Validation failed",
            errors=[f"{field}: Field cannot be updated" for field in forbidden]
        )

    data = product.to_document()
    data["_id"] = product.id
    data.update(changes)
    data["updated_at"] = get_current_timestamp()
    merged = validate_product(data)

    normalized = merged.to_document()
    payload = {field: normalized[field] for field in changes}
    payload["updated_at"] = merged.updated_at
    return merged, payload


class CatalogStore(ABC):

    @abstractmethod
    async def insert(self, product: Product) -> Product:
        """Persist a new product; assigns id, timestamps and zeroed counters."""

    @abstractmethod
    async def get_by_id(self, product_id: str) -> Product:
        """Return a product, or raise NotFound."""

    @abstractmethod
    async def get_many(self, product_ids: List[str]) -> List[Product]:
        """Resolve ids in the given order, skipping ones that no longer exist."""

    @abstractmethod
    async def update_fields(self, product_id: str, owner_id: str, changes: Dict[str, Any]) -> Product:
        """Apply an owner's partial update and return the stored result."""

    @abstractmethod
    async def delete(self, product_id: str, owner_id: str) -> None:
        """Delete an owner's product."""

    @abstractmethod
    async def query(
        self,
        product_filter: ProductFilter,
        sort: SortOrder,
        page: int,
        page_size: int
    ) -> Tuple[List[Product], int]:
        """Return one page of matching products and the filtered total."""

    @abstractmethod
    async def search_near(
        self,
        product_filter: ProductFilter,
        geo: GeoQuery,
        page: int,
        page_size: int
    ) -> Tuple[List[Product], int]:
        """Return one page of matches within range, nearest first, with distances."""

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> List[Product]:
        """Return every product of an owner, newest first."""

    @abstractmethod
    async def increment_views(self, product_id: str) -> Product:
        """Atomically add one view and return the updated product."""

    @abstractmethod
    async def adjust_likes(self, product_id: str, delta: int) -> Product:
        """Atomically add delta (+1/-1) to likes_count without going below zero."""

    async def ensure_indexes(self) -> None:
        """Create storage indexes; no-op for backends without them."""


class UserStore(ABC):

    @abstractmethod
    async def get_user(self, user_id: str) -> User:
        """Return a user, or raise NotFound."""

    @abstractmethod
    async def add_liked(self, user_id: str, product_id: str) -> bool:
        """Add product_id to the like-set; True only if it was absent."""

    @abstractmethod
    async def remove_liked(self, user_id: str, product_id: str) -> bool:
        """Remove product_id from the like-set; True only if it was present."""
