from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel

DataT = TypeVar("DataT")


class ApiResponse(BaseModel, Generic[DataT]):
    """Envelope returned by every endpoint."""
    success: bool
    message: str
    data: Optional[DataT] = None
    errors: Optional[List[str]] = None


class PaginationInfo(BaseModel):
    """Pagination block for list responses."""
    current_page: int
    limit: int
    total_pages: int
    total_products: int
    has_next: bool
    has_prev: bool
