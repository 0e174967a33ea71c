from typing import List, Optional
from pydantic import BaseModel, Field


class Location(BaseModel):
    """Geographic location model."""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class User(BaseModel):
    """
    The slice of a user document the catalog reads.

    Accounts are created and deactivated by the account service; the catalog
    only adds and removes entries of liked_product_ids.
    """
    id: Optional[str] = Field(None, alias="_id")
    liked_product_ids: List[str] = Field(default_factory=list)
    is_active: bool = True

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "liked_product_ids": ["65f1c0ffee0000000000abcd"],
                "is_active": True
            }
        }
