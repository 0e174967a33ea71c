from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from app.models.user import Location
from app.utils.helpers import get_current_timestamp


class Category(str, Enum):
    """Listing categories."""
    ELECTRONICS = "Electronics"
    CLOTHING = "Clothing"
    BOOKS = "Books"
    HOME_AND_GARDEN = "Home & Garden"
    SPORTS = "Sports"
    VEHICLES = "Vehicles"
    OTHER = "Other"


class Condition(str, Enum):
    """Condition of the item being sold."""
    NEW = "new"
    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class ProductStatus(str, Enum):
    """Listing status."""
    ACTIVE = "active"
    SOLD = "sold"
    INACTIVE = "inactive"


class GeoPoint(BaseModel):
    """GeoJSON point as stored under the 2dsphere index: [longitude, latitude]."""
    type: Literal["Point"] = "Point"
    coordinates: List[float]

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: List[float]) -> List[float]:
        if len(v) != 2:
            raise ValueError("Invalid coordinates")
        lng, lat = v
        if not -180 <= lng <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        if not -90 <= lat <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @classmethod
    def from_location(cls, location: Location) -> "GeoPoint":
        return cls(coordinates=[location.lng, location.lat])

    def to_location(self) -> Location:
        return Location(lat=self.coordinates[1], lng=self.coordinates[0])


# Fields the owner may change through an update.
EDITABLE_FIELDS = frozenset({
    "name", "description", "price", "category", "condition",
    "location", "image", "image2", "additional_images", "status",
})


class Product(BaseModel):
    """Product model for MongoDB."""
    id: Optional[str] = Field(None, alias="_id")
    name: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1, max_length=500)
    price: float = Field(gt=0, allow_inf_nan=False)
    category: Category
    condition: Condition = Condition.GOOD
    location: GeoPoint
    image: str = Field(min_length=1)
    image2: Optional[str] = None
    additional_images: List[str] = Field(default_factory=list)
    owner_id: str
    status: ProductStatus = ProductStatus.ACTIVE
    likes_count: int = Field(default=0, ge=0)
    views_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=get_current_timestamp)
    updated_at: datetime = Field(default_factory=get_current_timestamp)
    # Meters from the query point; only set on proximity search results
    distance: Optional[float] = None

    class Config:
        populate_by_name = True
        str_strip_whitespace = True
        use_enum_values = True
        json_schema_extra = {
            "example": {
                "name": "Canon EOS 80D",
                "description": "DSLR body, lightly used, with charger",
                "price": 150.0,
                "category": "Electronics",
                "condition": "like-new",
                "location": {"type": "Point", "coordinates": [77.209, 28.6139]},
                "image": "uploads/pimage-1700000000000-123.jpg",
                "owner_id": "65f1c0ffee0000000000abcd",
                "status": "active",
                "likes_count": 0,
                "views_count": 0
            }
        }

    def to_document(self) -> dict:
        """Serialize for storage, without the id and the query-only distance."""
        return self.model_dump(exclude={"id", "distance"})
