import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from app.core.config import settings
from app.core.errors import DeadlineExceeded

logger = logging.getLogger(__name__)

T = TypeVar("T")


def resolve_timeout(requested: Optional[float]) -> float:
    """Clamp a caller-supplied timeout (seconds) to the configured ceiling."""
    ceiling = settings.REQUEST_TIMEOUT_SECONDS
    if requested is None or requested <= 0:
        return ceiling
    return min(requested, ceiling)


async def run_with_deadline(operation: Awaitable[T], timeout: Optional[float] = None) -> T:
    """
    Await an operation, cancelling it when the deadline passes.

    Raises:
        DeadlineExceeded: if the operation did not finish in time
    """
    try:
        return await asyncio.wait_for(operation, timeout=resolve_timeout(timeout))
    except asyncio.TimeoutError:
        logger.warning("Operation exceeded its deadline of %.2fs", resolve_timeout(timeout))
        raise DeadlineExceeded()
