"""In-process KV namespace with per-key expiry.

Notes:
- Per-process only: several workers each see their own namespace.
- Thread-safe: TestClient and sync callers may share an instance.
- Expiry is lazy: a stale key is dropped when read, or in a sweep that runs
  only once the namespace grows past ``max_entries``.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable

from app.adapters.kv.base import AbstractKVNamespace, KVEntry

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: str
    expires_at: float | None
    metadata: dict[str, Any] | None = None


class InMemoryKVNamespace(AbstractKVNamespace):
    """Dictionary-backed namespace honouring expiry lazily on access.

    Attributes:
        max_entries: Cap on stored keys; expired keys are swept first, then
            the least recently written keys are dropped (None for unlimited).
    """

    kind = "memory"

    def __init__(
        self,
        *,
        max_entries: int | None = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_entries = max_entries
        self._clock = clock
        self._store: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.RLock()
        self._evictions = 0

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"InMemoryKVNamespace(max_entries={self._max_entries}, "
            f"size={len(self._store)}, evictions={self._evictions})"
        )

    async def get_with_metadata(self, key: str) -> KVEntry | None:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                self._evict(key)
                return None
            return KVEntry(value=entry.value, metadata=entry.metadata)

    async def put(
        self,
        key: str,
        value: str,
        *,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        with self._lock:
            now = self._clock()
            if expiration is not None:
                expires_at: float | None = float(expiration)
            elif expiration_ttl is not None:
                expires_at = now + expiration_ttl
            else:
                expires_at = None
            self._store[key] = _Entry(
                value=value,
                expires_at=expires_at,
                metadata=dict(metadata) if metadata is not None else None,
            )
            self._store.move_to_end(key)
            if self._max_entries is not None and len(self._store) > self._max_entries:
                self._evict_expired_locked(now)
                self._evict_over_capacity_locked()

    async def list_keys(self, *, prefix: str = "") -> list[str]:
        with self._lock:
            now = self._clock()
            return [
                key
                for key, entry in self._store.items()
                if key.startswith(prefix) and not self._is_expired(entry, now)
            ]

    def stats(self) -> dict[str, int | None]:
        """Return size counters without exposing values."""

        with self._lock:
            return {
                "entries": len(self._store),
                "max_entries": self._max_entries,
                "evictions": self._evictions,
            }

    @staticmethod
    def _is_expired(entry: _Entry, now: float) -> bool:
        return entry.expires_at is not None and now >= entry.expires_at

    def _evict(self, key: str) -> None:
        if self._store.pop(key, None) is not None:
            self._evictions += 1

    def _evict_expired_locked(self, now: float) -> None:
        expired = [k for k, entry in self._store.items() if self._is_expired(entry, now)]
        for key in expired:
            self._evict(key)
        if expired:
            logger.debug("kv.swept", extra={"removed": len(expired)})

    def _evict_over_capacity_locked(self) -> None:
        if self._max_entries is None:
            return
        while len(self._store) > self._max_entries:
            key, _ = self._store.popitem(last=False)
            self._evictions += 1
            logger.debug("kv.evicted", extra={"reason": "capacity", "key_prefix": key[:12]})
