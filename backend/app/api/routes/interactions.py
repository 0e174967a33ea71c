from fastapi import APIRouter, Depends

from app.api.deps import get_current_identity, get_interaction_service, get_request_timeout
from app.core.deadline import run_with_deadline
from app.schemas.auth import Identity
from app.schemas.common import ApiResponse
from app.schemas.interaction import LikeToggleRequest, LikeToggleResponse
from app.schemas.product import ProductListData, ProductResponse
from app.services.interaction_service import InteractionService

router = APIRouter()


@router.post("/like", response_model=ApiResponse[LikeToggleResponse])
async def toggle_like(
    request: LikeToggleRequest,
    identity: Identity = Depends(get_current_identity),
    timeout: float = Depends(get_request_timeout),
    interactions: InteractionService = Depends(get_interaction_service)
):
    """
    Like a product, or unlike it if the caller already likes it.
    """
    liked, likes_count = await run_with_deadline(
        interactions.toggle_like(identity.user_id, request.product_id),
        timeout
    )

    return ApiResponse(
        success=True,
        message="Product liked successfully" if liked else "Product unliked successfully",
        data=LikeToggleResponse(product_id=request.product_id, liked=liked, likes_count=likes_count)
    )


@router.post("/liked", response_model=ApiResponse[ProductListData])
async def get_liked_products(
    identity: Identity = Depends(get_current_identity),
    timeout: float = Depends(get_request_timeout),
    interactions: InteractionService = Depends(get_interaction_service)
):
    """Get the products the caller likes."""
    products = await run_with_deadline(interactions.list_liked(identity.user_id), timeout)

    return ApiResponse(
        success=True,
        message="Liked products retrieved successfully",
        data=ProductListData(products=[ProductResponse.from_product(p) for p in products])
    )
