from pydantic import BaseModel, Field


class LikeToggleRequest(BaseModel):
    """Body of the like toggle endpoint."""
    product_id: str = Field(min_length=1)

    class Config:
        extra = "forbid"
        str_strip_whitespace = True


class LikeToggleResponse(BaseModel):
    product_id: str
    liked: bool
    likes_count: int
