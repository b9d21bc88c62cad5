"""Window store over an expiring-key KV namespace.

The count is stored as a string-encoded integer. The window's absolute
expiry travels in the entry's metadata and is written back as the key's
absolute expiration, so later increments never move the window: it resets
``window_seconds`` after the request that opened it.

Known weakness, accepted as-is: the increment is a read followed by a write
and is not atomic. Two concurrent requests from the same client can both
read N and both write N + 1, so a burst of C simultaneous requests may be
undercounted by up to C - 1. Use the relational store where exact counts
matter.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from app.adapters.kv.base import AbstractKVNamespace, KVEntry, KVNamespaceError
from app.adapters.rate_limit.base import WindowCounter, WindowStore, validate_window
from app.core.errors import BackendUnavailableError
from app.core.logging import hash_for_log

logger = logging.getLogger(__name__)

EXPIRES_AT_FIELD = "expires_at"


class KVWindowStore(WindowStore):
    """Counts stored as string-encoded integers with native key expiry."""

    backend = "kv"

    def __init__(
        self,
        namespace: AbstractKVNamespace,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._namespace = namespace
        self._clock = clock

    @staticmethod
    def _parse_count(key: str, raw: str) -> int:
        try:
            count = int(raw)
        except ValueError:
            logger.warning("rate_limit.kv_corrupt_value", extra={"key_hash": hash_for_log(key)})
            return 0
        return max(count, 0)

    @staticmethod
    def _parse_expiry(entry: KVEntry) -> int | None:
        raw = (entry.metadata or {}).get(EXPIRES_AT_FIELD)
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            return None
        return int(raw)

    async def increment(self, key: str, window_seconds: int) -> WindowCounter:
        validate_window(window_seconds)
        now = int(self._clock())

        try:
            entry = await self._namespace.get_with_metadata(key)
            expires_at = self._parse_expiry(entry) if entry is not None else None
            if entry is None or expires_at is None or expires_at <= now:
                # Absent, expired, or written without a window expiry
                count = 1
                expires_at = now + window_seconds
            else:
                count = self._parse_count(key, entry.value) + 1
            await self._namespace.put(
                key,
                str(count),
                expiration=expires_at,
                metadata={EXPIRES_AT_FIELD: expires_at},
            )
        except KVNamespaceError as exc:
            raise BackendUnavailableError(
                code="rate_limit_backend_unavailable",
                message="KV namespace unavailable",
                details={"backend": self.backend},
            ) from exc

        return WindowCounter(count=count, expires_at=expires_at)
