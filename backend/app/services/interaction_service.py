import asyncio
import logging
from typing import List, Tuple

from app.core.config import settings
from app.core.errors import Conflict, NotFound
from app.models.product import Product
from app.repositories.base import CatalogStore, UserStore
from app.utils.helpers import canonical_id

logger = logging.getLogger(__name__)


def _log_counter_failure(task: asyncio.Future) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Like counter update failed: %s", task.exception())


class InteractionService:
    """Likes and views."""

    def __init__(self, catalog: CatalogStore, users: UserStore, max_attempts: int = None):
        self.catalog = catalog
        self.users = users
        self.max_attempts = max_attempts or settings.LIKE_TOGGLE_MAX_ATTEMPTS

    async def _step_likes(self, product_id: str, delta: int) -> Product:
        # Runs to completion even if the caller is cancelled; failures then only reach the log
        task = asyncio.ensure_future(self.catalog.adjust_likes(product_id, delta))
        task.add_done_callback(_log_counter_failure)
        return await asyncio.shield(task)

    async def toggle_like(self, user_id: str, product_id: str) -> Tuple[bool, int]:
        """
        Flip the like state of (user, product).

        The like-set membership is flipped with a conditional update, then the
        product's counter is moved by one with an atomic increment. Once the
        membership flip has committed, the counter step is shielded from
        cancellation so a timed-out request cannot leave the two out of step.
        Like-sets and counters are keyed by the product's stored id, whatever
        spelling of it the caller used.

        Returns:
            (liked, likes_count) after the toggle

        Raises:
            NotFound: if the product or the user does not exist
            Conflict: if the like state kept changing underneath the toggle
        """
        product = await self.catalog.get_by_id(product_id)
        product_id = product.id
        await self.users.get_user(user_id)

        for attempt in range(1, self.max_attempts + 1):
            if await self.users.add_liked(user_id, product_id):
                product = await self._step_likes(product_id, 1)
                logger.info("User %s liked product %s", user_id, product_id)
                return True, product.likes_count

            if await self.users.remove_liked(user_id, product_id):
                product = await self._step_likes(product_id, -1)
                logger.info("User %s unliked product %s", user_id, product_id)
                return False, product.likes_count

            logger.info(
                "Like state of product %s for user %s changed mid-toggle (attempt %d)",
                product_id, user_id, attempt
            )

        # Both updates also miss when the account is gone
        await self.users.get_user(user_id)
        raise Conflict("Like state changed concurrently, please retry")

    async def record_view(self, product_id: str) -> Product:
        """Count one view and return the product with the new count."""
        return await self.catalog.increment_views(product_id)

    async def list_liked(self, user_id: str) -> List[Product]:
        """Products the user likes; ids of deleted products are skipped."""
        user = await self.users.get_user(user_id)
        return await self.catalog.get_many(user.liked_product_ids)

    async def is_liked(self, user_id: str, product_id: str) -> bool:
        try:
            user = await self.users.get_user(user_id)
        except NotFound:
            return False
        return canonical_id(product_id) in user.liked_product_ids
