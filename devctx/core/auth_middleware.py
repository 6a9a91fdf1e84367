"""API key authentication for FastAPI routes."""

import secrets

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from devctx.core.api_keys import validate_api_key
from devctx.core.config import load_settings
from devctx.core.errors import DevContextError
from devctx.core.logging import get_logger

logger = get_logger(__name__)

# HTTP Bearer scheme for Authorization header
security = HTTPBearer(auto_error=False)

MISSING_KEY_DETAIL = (
    "API key required. Provide it via 'Authorization: Bearer <key>' or 'X-API-Key' header"
)


def extract_api_key(
    credentials: HTTPAuthorizationCredentials | None,
    x_api_key: str | None,
) -> str | None:
    """Bearer credentials first, then the X-API-Key header."""
    if credentials and credentials.credentials:
        return credentials.credentials
    if x_api_key:
        return x_api_key
    return None


async def require_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    x_api_key: str | None = Header(None, alias="X-API-Key"),
) -> str | None:
    """
    Dependency that rejects requests without a valid API key.

    Returns:
        The accepted key, or None when authentication is disabled

    Raises:
        HTTPException 401: If the key is missing or invalid
        HTTPException 503: If keys cannot be checked
    """
    try:
        settings = load_settings()
    except DevContextError as e:
        logger.error(f"Cannot authenticate request: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is not configured",
        ) from e
    if not settings.API_KEY_AUTH_ENABLED:
        return None

    api_key = extract_api_key(credentials, x_api_key)
    if not api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=MISSING_KEY_DETAIL)

    if settings.ADMIN_API_KEY and secrets.compare_digest(api_key, settings.ADMIN_API_KEY):
        logger.debug("Authenticated via admin API key")
        return api_key

    try:
        validation = await validate_api_key(api_key)
    except DevContextError as e:
        logger.error(f"API key validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API keys could not be verified",
        ) from e

    if not validation.valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=validation.reason or "Invalid API key",
        )

    return api_key
