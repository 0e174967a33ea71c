import logging
from typing import Any, Dict, List

from app.models.product import GeoPoint, Product
from app.models.user import Location
from app.repositories.base import CatalogStore, validate_product
from app.schemas.product import ProductCreate

logger = logging.getLogger(__name__)


class ProductService:
    """Listing lifecycle for owners."""

    def __init__(self, catalog: CatalogStore):
        self.catalog = catalog

    async def create(self, owner_id: str, data: ProductCreate) -> Product:
        """Create a listing owned by owner_id."""
        product = validate_product({
            "name": data.name,
            "description": data.description,
            "price": data.price,
            "category": data.category,
            "condition": data.condition,
            "location": GeoPoint.from_location(Location(lat=data.lat, lng=data.lng)).model_dump(),
            "image": data.image,
            "image2": data.image2,
            "additional_images": data.additional_images,
            "owner_id": str(owner_id),
        })
        created = await self.catalog.insert(product)
        logger.info("Product %s created by %s", created.id, owner_id)
        return created

    async def update(self, product_id: str, owner_id: str, changes: Dict[str, Any]) -> Product:
        """Apply an owner's partial update."""
        updated = await self.catalog.update_fields(product_id, owner_id, changes)
        logger.info("Product %s updated by %s (%s)", product_id, owner_id, ", ".join(sorted(changes)))
        return updated

    async def delete(self, product_id: str, owner_id: str) -> None:
        """
        Delete an owner's listing.

        Users' like-sets keep the id; liked-product listings skip it.
        """
        await self.catalog.delete(product_id, owner_id)
        logger.info("Product %s deleted by %s", product_id, owner_id)

    async def list_mine(self, owner_id: str) -> List[Product]:
        return await self.catalog.list_by_owner(owner_id)
