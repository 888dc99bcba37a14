"""
Admin token check for the cache revalidation routes.

A configured ADMIN_API_TOKEN must be sent as ``X-API-Key: <token>`` or
``Authorization: Bearer <token>``. With no token configured the routes are
open, which is how local development runs.
"""
from typing import Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from app.config import get_settings

_api_key = APIKeyHeader(name="X-API-Key", auto_error=False)
_bearer = HTTPBearer(auto_error=False)

_open_mode_logged = False


def _presented_tokens(api_key: Optional[str], bearer: Optional[HTTPAuthorizationCredentials]):
    if api_key:
        yield api_key
    if bearer is not None:
        yield bearer.credentials


async def require_admin_auth(
    api_key: Optional[str] = Security(_api_key),
    bearer: Optional[HTTPAuthorizationCredentials] = Security(_bearer),
) -> None:
    """Reject the request with 401 unless it carries the admin token."""
    global _open_mode_logged
    expected = get_settings().ADMIN_API_TOKEN

    if not expected:
        if not _open_mode_logged:
            logger.warning("ADMIN_API_TOKEN is empty; /revalidate accepts unauthenticated calls")
            _open_mode_logged = True
        return

    if any(token == expected for token in _presented_tokens(api_key, bearer)):
        return

    logger.warning("Rejected revalidation request with missing or wrong admin token")
    raise HTTPException(
        status_code=401,
        detail="Missing or invalid admin token (X-API-Key or Authorization: Bearer).",
    )
