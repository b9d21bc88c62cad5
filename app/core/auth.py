"""Admin authentication.

Admin routes sit behind Cloudflare Access in production. Access injects one
of several identity headers on authenticated requests; their presence is
trusted because the edge strips them from untrusted traffic.

For local development a pre-shared ``x-admin-secret`` header is accepted
when ``ADMIN_SECRET`` is configured.
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Request

from app.core.config import settings
from app.core.errors import AuthenticationAppError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)

CF_ACCESS_HEADERS = (
    "cf-access-jwt-assertion",
    "cf-access-verified-email",
    "cf-access-authenticated-user-email",
)
ADMIN_SECRET_HEADER = "x-admin-secret"


def has_cloudflare_access(headers) -> bool:
    """Return True if any Cloudflare Access identity header is present."""
    return any(name in headers for name in CF_ACCESS_HEADERS)


def validate_admin_secret(provided: str | None) -> bool:
    """Compare ``provided`` to the configured admin secret in constant time.

    Returns False when no secret is configured, so the fallback is disabled
    unless explicitly enabled.

    Examples:
        >>> validate_admin_secret(None)
        False
    """
    expected = settings.app.admin_secret
    if not expected or not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


async def require_admin(request: Request) -> None:
    """FastAPI dependency guarding the admin API.

    Usage:
        router = APIRouter(dependencies=[Depends(require_admin)])

    Raises:
        AuthenticationAppError: 401 when neither Access headers nor a valid
            admin secret are present.
    """
    headers = request.headers

    if has_cloudflare_access(headers):
        logger.debug("auth.success", extra={"method": "cloudflare_access"})
        return

    provided = headers.get(ADMIN_SECRET_HEADER)
    if validate_admin_secret(provided):
        logger.info("auth.success", extra={"method": "admin_secret"})
        return

    logger.warning(
        "auth.rejected",
        extra={
            "request_path": request.url.path,
            "secret_present": bool(provided),
            "secret_hash": hash_for_log(provided) if provided else None,
            "secret_configured": bool(settings.app.admin_secret),
        },
    )
    raise AuthenticationAppError(code="unauthorized", message="Unauthorized")
