"""Fixed-window rate limiting decisions.

``RateLimiter`` turns the counter returned by a ``WindowStore`` into an
allow/deny verdict. The store is injected at construction; passing None
means no backend is bound, in which case every request is allowed so the
contact form stays available.

Counting happens before the verdict ("record-then-check"): a denied request
still consumes a slot, and nothing is ever rolled back.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable

from app.adapters.rate_limit.base import WindowStore, validate_window

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of ``RateLimiter.check_and_record``.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        count: Requests counted in the current window (0 when no store is bound).
        remaining: Requests left in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the window resets (None without a store).
        retry_after_seconds: Suggested wait in seconds when blocked.
    """

    allowed: bool
    limit: int
    count: int
    remaining: int
    reset_at: int | None
    retry_after_seconds: int | None


class RateLimiter:
    """Allow/deny decisions over an optional window store."""

    def __init__(
        self,
        store: WindowStore | None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._clock = clock

    @property
    def store(self) -> WindowStore | None:
        return self._store

    async def check_and_record(
        self,
        key: str,
        *,
        window_seconds: int,
        max_requests: int,
    ) -> RateLimitResult:
        """Count one request for ``key`` and decide whether it may proceed.

        Args:
            key: Rate limit key (see ``app.core.rate_limit.build_rate_limit_key``).
            window_seconds: Window length in whole seconds (>= 1).
            max_requests: Requests allowed per window; 0 denies everything.

        Returns:
            RateLimitResult, denied when the post-increment count exceeds
            ``max_requests``.

        Raises:
            ValueError: If key is empty or the numeric arguments are invalid.
            BackendUnavailableError: If the store fails; the caller decides
                whether to fail open.
        """
        if not key:
            raise ValueError("key must be a non-empty string")
        validate_window(window_seconds)
        if max_requests < 0:
            raise ValueError("max_requests must be >= 0")

        if self._store is None:
            logger.info(
                "rate_limit.store_missing",
                extra={"reason": "no_backend_bound", "decision": "allow"},
            )
            return RateLimitResult(
                allowed=True,
                limit=max_requests,
                count=0,
                remaining=max_requests,
                reset_at=None,
                retry_after_seconds=None,
            )

        counter = await self._store.increment(key, window_seconds)
        remaining = max(0, max_requests - counter.count)

        if counter.count <= max_requests:
            return RateLimitResult(
                allowed=True,
                limit=max_requests,
                count=counter.count,
                remaining=remaining,
                reset_at=counter.expires_at,
                retry_after_seconds=None,
            )

        retry_after = max(0, int(math.ceil(counter.expires_at - self._clock())))
        return RateLimitResult(
            allowed=False,
            limit=max_requests,
            count=counter.count,
            remaining=0,
            reset_at=counter.expires_at,
            retry_after_seconds=retry_after,
        )
