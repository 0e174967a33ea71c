"""
Tests for the bearer-token identity gate.
"""
import pytest
from datetime import timedelta
from jose import jwt

from app.core.config import settings
from app.core.errors import (
    AccountDeactivated,
    AccountNotFound,
    ExpiredCredential,
    InvalidCredential,
    MissingCredential,
)
from app.core.security import create_access_token
from app.models.user import User
from app.services.identity import IdentityGate


class TestAuthenticate:
    """Test strict authentication."""

    @pytest.mark.asyncio
    async def test_valid_token(self, users):
        """Test a valid token for an active account yields its identity."""
        user = users.add_user(User())
        identity = await IdentityGate(users).authenticate(create_access_token(user.id))

        assert identity.user_id == user.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("credential", [None, ""])
    async def test_missing(self, users, credential):
        with pytest.raises(MissingCredential):
            await IdentityGate(users).authenticate(credential)

    @pytest.mark.asyncio
    async def test_garbage(self, users):
        with pytest.raises(InvalidCredential):
            await IdentityGate(users).authenticate("not.a.token")

    @pytest.mark.asyncio
    async def test_wrong_signature(self, users):
        user = users.add_user(User())
        forged = jwt.encode({"sub": user.id}, "some-other-key", algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(InvalidCredential):
            await IdentityGate(users).authenticate(forged)

    @pytest.mark.asyncio
    async def test_expired(self, users):
        user = users.add_user(User())
        token = create_access_token(user.id, expires_delta=timedelta(minutes=-5))

        with pytest.raises(ExpiredCredential):
            await IdentityGate(users).authenticate(token)

    @pytest.mark.asyncio
    async def test_no_subject(self, users):
        token = jwt.encode({"role": "user"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(InvalidCredential):
            await IdentityGate(users).authenticate(token)

    @pytest.mark.asyncio
    async def test_unknown_account(self, users):
        with pytest.raises(AccountNotFound):
            await IdentityGate(users).authenticate(create_access_token("65f1c0ffee00000000000009"))

    @pytest.mark.asyncio
    async def test_deactivated_account(self, users):
        user = users.add_user(User(is_active=False))

        with pytest.raises(AccountDeactivated):
            await IdentityGate(users).authenticate(create_access_token(user.id))


class TestAuthenticateOptional:
    """Test lenient authentication used by public endpoints."""

    @pytest.mark.asyncio
    async def test_anonymous(self, users):
        assert await IdentityGate(users).authenticate_optional(None) is None

    @pytest.mark.asyncio
    async def test_bad_token_is_anonymous(self, users):
        assert await IdentityGate(users).authenticate_optional("not.a.token") is None

    @pytest.mark.asyncio
    async def test_valid_token(self, users):
        user = users.add_user(User())
        identity = await IdentityGate(users).authenticate_optional(create_access_token(user.id))

        assert identity.user_id == user.id
