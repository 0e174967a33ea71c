import math
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from app.models.product import Category, Product, ProductStatus


class SortOrder(str, Enum):
    """Browse sort orders."""
    NEWEST = "newest"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"


class ProductFilter(BaseModel):
    """Conditions a product must meet to be returned by a catalog query."""
    status: Optional[ProductStatus] = ProductStatus.ACTIVE
    category: Optional[Category] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    # Case-insensitive literal substring over name, description and category
    keyword: Optional[str] = None

    class Config:
        use_enum_values = True


class GeoQuery(BaseModel):
    """Proximity constraint: center point and radius in meters."""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    max_distance_m: float = Field(gt=0)


class CatalogPage(BaseModel):
    """One page of query results plus the filtered total."""
    items: List[Product]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return (self.page - 1) * self.limit + len(self.items) < self.total
