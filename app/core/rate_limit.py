"""Rate limiting gate for the contact endpoint.

This module wires ``RateLimiter`` into the HTTP layer as a FastAPI
dependency attached to ``POST /api/contact`` only. It runs before the
request body is read, so throttled clients never reach payload validation,
the captcha relay, or persistence.

Gate policy:
- Clients are identified by the edge-injected ``CF-Connecting-IP`` header.
  Requests without it share a single ``unknown`` bucket.
- Keys are ``rl:<route-tag>:<client>``.
- Any store failure fails open: the request is allowed and a warning logged.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, Request

from app.core.config import settings
from app.core.errors import BackendUnavailableError, RateLimitExceededError
from app.core.logging import hash_for_log
from app.services.rate_limiter import RateLimiter, RateLimitResult

logger = logging.getLogger(__name__)

CLIENT_IP_HEADER = "cf-connecting-ip"
UNKNOWN_CLIENT = "unknown"


def get_rate_limiter(request: Request) -> RateLimiter:
    """Return the limiter built at startup, or a fail-open one if none was."""

    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        return RateLimiter(None)
    return limiter


def client_identity(request: Request) -> str:
    """Return the connecting client's IP as reported by the edge."""

    value = request.headers.get(CLIENT_IP_HEADER, "").strip()
    return value or UNKNOWN_CLIENT


def build_rate_limit_key(route_tag: str, identity: str) -> str:
    return f"rl:{route_tag}:{identity}"


def _throttle_headers(result: RateLimitResult) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
    }
    if result.reset_at is not None:
        headers["X-RateLimit-Reset"] = str(result.reset_at)
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


async def enforce_contact_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> None:
    """FastAPI dependency enforcing the contact form quota.

    Consumes one slot from the client's window. If the client is now over
    the configured maximum, raises ``RateLimitExceededError`` which the
    exception handlers render as HTTP 429.

    Args:
        request: Incoming request (headers only are read).
        limiter: Injected rate limiter.

    Raises:
        RateLimitExceededError: When the client exceeded its quota.
    """

    cfg = settings.rate_limit
    identity = client_identity(request)
    key = build_rate_limit_key(cfg.route_tag, identity)
    log_fields = {
        "client_hash": hash_for_log(identity),
        "client_known": identity != UNKNOWN_CLIENT,
        "window_s": cfg.window_seconds,
        "limit": cfg.max_requests,
    }

    try:
        result = await limiter.check_and_record(
            key,
            window_seconds=cfg.window_seconds,
            max_requests=cfg.max_requests,
        )
    except BackendUnavailableError as exc:
        logger.warning(
            "rate_limit.fail_open",
            extra={
                **log_fields,
                "error_code": exc.code,
                "backend": (exc.details or {}).get("backend"),
            },
        )
        return

    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={**log_fields, "count": result.count, "remaining": result.remaining},
        )
        return

    logger.warning(
        "rate_limit.exceeded",
        extra={
            **log_fields,
            "count": result.count,
            "retry_after_s": result.retry_after_seconds,
        },
    )

    raise RateLimitExceededError(
        code="rate_limit_exceeded",
        message="Rate limit exceeded",
        details={"retry_after": result.retry_after_seconds or 0},
        headers=_throttle_headers(result) if cfg.include_headers else None,
    )
