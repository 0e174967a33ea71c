from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, ExpiredSignatureError, JWTError

from app.core.config import settings
from app.core.errors import ExpiredCredential, InvalidCredential


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed access token for a user id.

    Token issuance belongs to the account service; this is used by local
    tooling and tests to mint tokens the Identity Gate accepts.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": str(subject), "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify an access token.

    Raises:
        ExpiredCredential: if the token's exp claim is in the past
        InvalidCredential: if the token is malformed or the signature is wrong
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise ExpiredCredential()
    except JWTError:
        raise InvalidCredential()
