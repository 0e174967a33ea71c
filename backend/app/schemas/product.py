from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.models.product import Category, Condition, GeoPoint, Product, ProductStatus
from app.models.query import CatalogPage
from app.models.user import Location
from app.schemas.common import PaginationInfo


class ProductCreate(BaseModel):
    """Schema for creating a product."""
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    price: float = Field(gt=0, allow_inf_nan=False)
    category: Category
    condition: Condition = Condition.GOOD
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    # References issued by the upload service
    image: str = Field(min_length=1)
    image2: Optional[str] = None
    additional_images: List[str] = []

    class Config:
        extra = "forbid"
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {
                "name": "Canon EOS 80D",
                "description": "DSLR body, lightly used, with charger",
                "price": 150.0,
                "category": "Electronics",
                "condition": "like-new",
                "lat": 28.6139,
                "lng": 77.209,
                "image": "uploads/pimage-1700000000000-123.jpg"
            }
        }


class ProductUpdate(BaseModel):
    """Schema for updating a product. Only the fields sent are changed."""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, allow_inf_nan=False)
    category: Optional[Category] = None
    condition: Optional[Condition] = None
    location: Optional[Location] = None
    image: Optional[str] = None
    image2: Optional[str] = None
    additional_images: Optional[List[str]] = None
    status: Optional[ProductStatus] = None

    class Config:
        extra = "forbid"

    def to_changes(self) -> Dict[str, Any]:
        """Fields the client actually sent, in storage shape."""
        changes = self.model_dump(exclude_unset=True, mode="json")
        if self.location is not None:
            changes["location"] = GeoPoint.from_location(self.location).model_dump()
        return changes


class ProductResponse(BaseModel):
    """Schema for product response."""
    id: str
    name: str
    description: str
    price: float
    category: str
    condition: str
    location: Location
    image: str
    image2: Optional[str] = None
    additional_images: List[str]
    owner_id: str
    status: str
    likes_count: int
    views_count: int
    created_at: datetime
    updated_at: datetime
    # Set on proximity search results
    distance_km: Optional[float] = None
    # Set on detail fetches by an authenticated viewer
    is_liked: Optional[bool] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_product(cls, product: Product, is_liked: Optional[bool] = None) -> "ProductResponse":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            category=product.category,
            condition=product.condition,
            location=product.location.to_location(),
            image=product.image,
            image2=product.image2,
            additional_images=product.additional_images,
            owner_id=product.owner_id,
            status=product.status,
            likes_count=product.likes_count,
            views_count=product.views_count,
            created_at=product.created_at,
            updated_at=product.updated_at,
            distance_km=product.distance / 1000 if product.distance is not None else None,
            is_liked=is_liked
        )


def pagination_for(page: CatalogPage) -> PaginationInfo:
    return PaginationInfo(
        current_page=page.page,
        limit=page.limit,
        total_pages=page.total_pages,
        total_products=page.total,
        has_next=page.has_next,
        has_prev=page.page > 1
    )


class ProductData(BaseModel):
    product: ProductResponse


class ProductListData(BaseModel):
    products: List[ProductResponse]
    pagination: Optional[PaginationInfo] = None
    category: Optional[str] = None

    @classmethod
    def from_page(cls, page: CatalogPage, category: Optional[str] = None) -> "ProductListData":
        return cls(
            products=[ProductResponse.from_product(p) for p in page.items],
            pagination=pagination_for(page),
            category=category
        )


class SearchData(BaseModel):
    products: List[ProductResponse]
    search_term: str
    location: Location
    max_distance_km: float
    results_count: int
    pagination: PaginationInfo
