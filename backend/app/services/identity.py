import logging
from typing import Optional

from app.core.errors import (
    AccountDeactivated,
    AccountNotFound,
    InvalidCredential,
    MissingCredential,
    NotFound,
    Unauthenticated,
)
from app.core.security import decode_access_token
from app.repositories.base import UserStore
from app.schemas.auth import Identity

logger = logging.getLogger(__name__)


class IdentityGate:
    """Turns a bearer token into a trusted Identity."""

    def __init__(self, users: UserStore):
        self.users = users

    async def authenticate(self, credential: Optional[str]) -> Identity:
        """
        Verify a bearer token and the account it names.

        Raises:
            MissingCredential: no token was presented
            InvalidCredential: malformed token, bad signature or no subject
            ExpiredCredential: the token has expired
            AccountNotFound: the subject does not exist
            AccountDeactivated: the account has been deactivated
        """
        if not credential:
            raise MissingCredential()

        payload = decode_access_token(credential)
        user_id = payload.get("sub")
        if not user_id:
            raise InvalidCredential()

        try:
            user = await self.users.get_user(str(user_id))
        except NotFound:
            logger.warning("Token subject %s does not exist", user_id)
            raise AccountNotFound()

        if not user.is_active:
            logger.warning("Deactivated account %s presented a token", user_id)
            raise AccountDeactivated()

        return Identity(user_id=user.id)

    async def authenticate_optional(self, credential: Optional[str]) -> Optional[Identity]:
        """Like authenticate, but returns None instead of failing."""
        if not credential:
            return None
        try:
            return await self.authenticate(credential)
        except Unauthenticated:
            return None
