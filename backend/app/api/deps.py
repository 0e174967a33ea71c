from typing import Optional
from fastapi import Depends, Header, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.deadline import resolve_timeout
from app.repositories.base import CatalogStore, UserStore
from app.schemas.auth import Identity
from app.services.identity import IdentityGate
from app.services.interaction_service import InteractionService
from app.services.product_service import ProductService
from app.services.search_service import SearchService

# Security scheme; missing credentials are reported by the Identity Gate
security = HTTPBearer(auto_error=False)


def get_catalog_store(request: Request) -> CatalogStore:
    """Dependency to get the catalog store chosen at startup."""
    return request.app.state.catalog_store


def get_user_store(request: Request) -> UserStore:
    """Dependency to get the user store chosen at startup."""
    return request.app.state.user_store


def get_identity_gate(users: UserStore = Depends(get_user_store)) -> IdentityGate:
    return IdentityGate(users)


def get_search_service(catalog: CatalogStore = Depends(get_catalog_store)) -> SearchService:
    return SearchService(catalog)


def get_product_service(catalog: CatalogStore = Depends(get_catalog_store)) -> ProductService:
    return ProductService(catalog)


def get_interaction_service(
    catalog: CatalogStore = Depends(get_catalog_store),
    users: UserStore = Depends(get_user_store)
) -> InteractionService:
    return InteractionService(catalog, users)


def get_request_timeout(
    x_request_timeout: Optional[float] = Header(None, description="Deadline for this request, in seconds")
) -> float:
    """Dependency resolving the request deadline."""
    return resolve_timeout(x_request_timeout)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gate: IdentityGate = Depends(get_identity_gate)
) -> Identity:
    """
    Dependency to get the authenticated caller.

    Raises:
        Unauthenticated: if the bearer token is missing, invalid or expired,
            or names a missing or deactivated account
    """
    token = credentials.credentials if credentials else None
    return await gate.authenticate(token)


async def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    gate: IdentityGate = Depends(get_identity_gate)
) -> Optional[Identity]:
    """
    Dependency to optionally get the caller.
    Returns None if no valid token is provided.
    """
    token = credentials.credentials if credentials else None
    return await gate.authenticate_optional(token)
