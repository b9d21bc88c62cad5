"""Window store over the ``rate_limits`` SQL table.

The increment is a single ``INSERT ... ON CONFLICT DO UPDATE`` whose SET
clause decides between reset and increment from the stored expiry, so the
engine applies it atomically per row. SQLite 3.35+ (and D1), PostgreSQL and
other engines with upsert and RETURNING support accept the statement.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.adapters.rate_limit.base import WindowCounter, WindowStore, validate_window
from app.core.errors import BackendUnavailableError

logger = logging.getLogger(__name__)

_UPSERT_SQL = text(
    """
    INSERT INTO rate_limits (key, count, expires)
    VALUES (:key, 1, :new_expires)
    ON CONFLICT (key) DO UPDATE SET
        count = CASE
            WHEN rate_limits.expires <= :now THEN 1
            ELSE rate_limits.count + 1
        END,
        expires = CASE
            WHEN rate_limits.expires <= :now THEN :new_expires
            ELSE rate_limits.expires
        END
    RETURNING count, expires
    """
)

_SWEEP_SQL = text("DELETE FROM rate_limits WHERE expires <= :now")


class RelationalWindowStore(WindowStore):
    """Counts kept in a relational table with manual window bookkeeping.

    Args:
        engine: Async engine bound to a database holding ``rate_limits``.
        sweep_probability: Chance per increment of purging expired rows.
        clock: Time source returning UNIX seconds.
        rand: Source of floats in [0, 1) deciding when to sweep.
    """

    backend = "relational"

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        sweep_probability: float = 0.01,
        clock: Callable[[], float] = time.time,
        rand: Callable[[], float] = random.random,
    ) -> None:
        if not 0.0 <= sweep_probability <= 1.0:
            raise ValueError("sweep_probability must be within [0, 1]")
        self._engine = engine
        self._sweep_probability = sweep_probability
        self._clock = clock
        self._rand = rand

    async def increment(self, key: str, window_seconds: int) -> WindowCounter:
        validate_window(window_seconds)
        now = int(self._clock())

        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(
                    _UPSERT_SQL,
                    {"key": key, "now": now, "new_expires": now + window_seconds},
                )
                row = result.one()
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(
                code="rate_limit_backend_unavailable",
                message="Relational store unavailable",
                details={"backend": self.backend},
            ) from exc

        if self._sweep_probability and self._rand() < self._sweep_probability:
            await self.sweep(now=now)

        return WindowCounter(count=int(row[0]), expires_at=int(row[1]))

    async def sweep(self, *, now: int | None = None) -> int:
        """Delete rows whose window has ended; returns the number removed.

        Failures are logged and reported as 0 removed rows: the sweep only
        bounds table growth and expired rows are already ignored on read.
        """
        cutoff = int(self._clock()) if now is None else now
        try:
            async with self._engine.begin() as conn:
                result = await conn.execute(_SWEEP_SQL, {"now": cutoff})
        except SQLAlchemyError as exc:
            logger.warning(
                "rate_limit.sweep_failed",
                extra={"error_type": type(exc).__name__},
            )
            return 0

        removed = result.rowcount or 0
        logger.debug("rate_limit.sweep", extra={"removed": removed})
        return removed
