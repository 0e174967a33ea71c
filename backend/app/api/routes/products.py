from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from app.api.deps import (
    get_current_identity,
    get_interaction_service,
    get_optional_identity,
    get_product_service,
    get_request_timeout,
    get_search_service,
)
from app.core.config import settings
from app.core.deadline import run_with_deadline
from app.models.product import Category, ProductStatus
from app.models.query import SortOrder
from app.models.user import Location
from app.schemas.auth import Identity
from app.schemas.common import ApiResponse
from app.schemas.product import (
    ProductCreate,
    ProductData,
    ProductListData,
    ProductResponse,
    ProductUpdate,
    SearchData,
    pagination_for,
)
from app.services.interaction_service import InteractionService
from app.services.product_service import ProductService
from app.services.search_service import SearchService
from app.utils.geolocation import parse_location

router = APIRouter()


@router.get("", response_model=ApiResponse[ProductListData])
async def get_products(
    category: Optional[Category] = None,
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    sort_by: SortOrder = Query(SortOrder.NEWEST, alias="sortBy"),
    page: int = 1,
    limit: Optional[int] = None,
    product_status: ProductStatus = Query(ProductStatus.ACTIVE, alias="status"),
    timeout: float = Depends(get_request_timeout),
    search_service: SearchService = Depends(get_search_service)
):
    """
    Browse products.

    Filters:
    - category: exact category
    - minPrice / maxPrice: inclusive price range
    - status: listing status (default active)

    Sorted by sortBy: newest (default), price-asc or price-desc.
    """
    result = await run_with_deadline(
        search_service.browse(
            category=category,
            min_price=min_price,
            max_price=max_price,
            sort_by=sort_by,
            page=page,
            limit=limit,
            status=product_status
        ),
        timeout
    )

    return ApiResponse(
        success=True,
        message="Products retrieved successfully",
        data=ProductListData.from_page(result)
    )


@router.get("/search", response_model=ApiResponse[SearchData])
async def search_products(
    search: str = Query(...),
    loc: str = Query(..., description="Caller location as 'lat,lng'"),
    category: Optional[Category] = None,
    max_distance: Optional[float] = Query(None, alias="maxDistance", description="Radius in km"),
    page: int = 1,
    limit: Optional[int] = None,
    timeout: float = Depends(get_request_timeout),
    search_service: SearchService = Depends(get_search_service)
):
    """
    Search active products by keyword near a location.

    Matches name, description and category case-insensitively; results are
    ordered nearest first and limited to maxDistance km (default 50).
    """
    result = await run_with_deadline(
        search_service.search(
            keyword=search,
            loc=loc,
            category=category,
            max_distance_km=max_distance,
            page=page,
            limit=limit
        ),
        timeout
    )

    lat, lng = parse_location(loc)
    return ApiResponse(
        success=True,
        message="Search completed successfully",
        data=SearchData(
            products=[ProductResponse.from_product(p) for p in result.items],
            search_term=search.strip(),
            location=Location(lat=lat, lng=lng),
            max_distance_km=max_distance if max_distance is not None else settings.DEFAULT_SEARCH_RADIUS_KM,
            results_count=len(result.items),
            pagination=pagination_for(result)
        )
    )


@router.get("/category/{category}", response_model=ApiResponse[ProductListData])
async def get_products_by_category(
    category: str,
    page: int = 1,
    limit: Optional[int] = None,
    timeout: float = Depends(get_request_timeout),
    search_service: SearchService = Depends(get_search_service)
):
    """Get active products in a category, newest first."""
    result = await run_with_deadline(
        search_service.browse_category(category, page=page, limit=limit),
        timeout
    )

    return ApiResponse(
        success=True,
        message=f"Products in {category} category retrieved successfully",
        data=ProductListData.from_page(result, category=category)
    )


@router.post("/mine", response_model=ApiResponse[ProductListData])
async def get_my_products(
    identity: Identity = Depends(get_current_identity),
    timeout: float = Depends(get_request_timeout),
    product_service: ProductService = Depends(get_product_service)
):
    """Get every product listed by the caller, newest first."""
    products = await run_with_deadline(product_service.list_mine(identity.user_id), timeout)

    return ApiResponse(
        success=True,
        message="User products retrieved successfully",
        data=ProductListData(products=[ProductResponse.from_product(p) for p in products])
    )


@router.get("/{product_id}", response_model=ApiResponse[ProductData])
async def get_product(
    product_id: str,
    identity: Optional[Identity] = Depends(get_optional_identity),
    timeout: float = Depends(get_request_timeout),
    interactions: InteractionService = Depends(get_interaction_service)
):
    """
    Get a single product by ID.

    Every successful fetch counts as one view. Authenticated callers also
    get whether they like the product.
    """
    product = await run_with_deadline(interactions.record_view(product_id), timeout)

    is_liked = None
    if identity:
        is_liked = await run_with_deadline(interactions.is_liked(identity.user_id, product.id), timeout)

    return ApiResponse(
        success=True,
        message="Product retrieved successfully",
        data=ProductData(product=ProductResponse.from_product(product, is_liked=is_liked))
    )


@router.post("", response_model=ApiResponse[ProductData], status_code=status.HTTP_201_CREATED)
async def create_product(
    product: ProductCreate,
    identity: Identity = Depends(get_current_identity),
    timeout: float = Depends(get_request_timeout),
    product_service: ProductService = Depends(get_product_service)
):
    """
    Create a new product owned by the caller.

    Image fields carry references returned by the upload service.
    """
    created = await run_with_deadline(product_service.create(identity.user_id, product), timeout)

    return ApiResponse(
        success=True,
        message="Product added successfully",
        data=ProductData(product=ProductResponse.from_product(created))
    )


@router.put("/{product_id}", response_model=ApiResponse[ProductData])
async def update_product(
    product_id: str,
    product_update: ProductUpdate,
    identity: Identity = Depends(get_current_identity),
    timeout: float = Depends(get_request_timeout),
    product_service: ProductService = Depends(get_product_service)
):
    """Update a product (own products only)."""
    updated = await run_with_deadline(
        product_service.update(product_id, identity.user_id, product_update.to_changes()),
        timeout
    )

    return ApiResponse(
        success=True,
        message="Product updated successfully",
        data=ProductData(product=ProductResponse.from_product(updated))
    )


@router.delete("/{product_id}", response_model=ApiResponse[dict])
async def delete_product(
    product_id: str,
    identity: Identity = Depends(get_current_identity),
    timeout: float = Depends(get_request_timeout),
    product_service: ProductService = Depends(get_product_service)
):
    """Delete a product (own products only)."""
    await run_with_deadline(product_service.delete(product_id, identity.user_id), timeout)

    return ApiResponse(success=True, message="Product deleted successfully")
