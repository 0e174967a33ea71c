import functools
import logging

from app.core.errors import Forbidden
from app.models.product import Product

logger = logging.getLogger(__name__)


def authorize_mutation(product: Product, requester_id: str) -> None:
    """
    Allow a mutation only when the requester created the product.

    Raises:
        Forbidden: if requester_id is not the product's owner
    """
    if product.owner_id != str(requester_id):
        logger.warning(
            "Ownership check failed for product %s (requester %s)", product.id, requester_id
        )
        raise Forbidden("You can only modify your own products")


def owner_only(method):
    """
    Guard a store mutation with the ownership check.

    The wrapped coroutine is called as method(self, product_id, owner_id, ...);
    it runs only after the product is loaded (NotFound otherwise) and
    authorize_mutation has passed, and receives the loaded product as
    keyword argument `current`.
    """
    @functools.wraps(method)
    async def wrapper(self, product_id: str, owner_id: str, *args, **kwargs):
        current = await self.get_by_id(product_id)
        authorize_mutation(current, owner_id)
        return await method(self, product_id, owner_id, *args, current=current, **kwargs)

    return wrapper
