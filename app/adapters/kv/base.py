"""KV namespace interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class KVNamespaceError(Exception):
    """Raised by a namespace handle when the underlying store fails."""


@dataclass(frozen=True)
class KVEntry:
    """A stored value together with the metadata written alongside it."""

    value: str
    metadata: dict[str, Any] | None = None


class AbstractKVNamespace(ABC):
    """Expiring key-value store bound to a single namespace.

    Values are strings. A key disappears on its own once its expiry passes;
    readers never see it again. Expiry is given either relative to the write
    (``expiration_ttl``) or as absolute UNIX seconds (``expiration``), and a
    small JSON-serialisable ``metadata`` mapping may travel with the value.
    """

    #: Short name reported by health checks and logs.
    kind: str = "kv"

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when absent or expired.

        Raises:
            KVNamespaceError: If the store cannot be reached.
        """
        entry = await self.get_with_metadata(key)
        return entry.value if entry is not None else None

    @abstractmethod
    async def get_with_metadata(self, key: str) -> KVEntry | None:
        """Return value and metadata, or None when absent or expired.

        Raises:
            KVNamespaceError: If the store cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def put(
        self,
        key: str,
        value: str,
        *,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Store ``value`` under ``key``, replacing any previous value, expiry and metadata.

        Args:
            key: Key to write.
            value: String payload.
            expiration: Absolute UNIX seconds at which the key expires.
            expiration_ttl: Seconds from now until the key expires. Ignored
                when ``expiration`` is given.
            metadata: Optional mapping returned by ``get_with_metadata``.

        Raises:
            KVNamespaceError: If the store cannot be reached.
        """
        raise NotImplementedError

    @abstractmethod
    async def list_keys(self, *, prefix: str = "") -> list[str]:
        """Return live keys starting with ``prefix``."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release connections held by the handle."""
        return None
