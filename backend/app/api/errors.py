import logging
from typing import List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.errors import CatalogError, InternalError, Unauthenticated

logger = logging.getLogger(__name__)


def envelope(
    status_code: int,
    message: str,
    errors: Optional[List[str]] = None,
    headers: Optional[dict] = None
) -> JSONResponse:
    content = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI):
    """Map every failure to a status code and the response envelope."""

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        if isinstance(exc, InternalError):
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)

        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
        return envelope(exc.status_code, exc.message, exc.errors, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """
        Handles request schema errors (missing fields, wrong types, unknown fields).
        """
        details = []
        for err in exc.errors():
            loc = err.get("loc", [])
            field = loc[-1] if loc else "field"
            details.append(f"{field}: {err.get('msg', 'Invalid input.')}")

        logger.info("Validation error on %s %s: %s", request.method, request.url.path, "; ".join(details))
        return envelope(status.HTTP_400_BAD_REQUEST, "Validation failed", details)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        errors = [str(exc)] if settings.ENVIRONMENT == "development" else None
        return envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", errors)
