"""Redis-backed KV namespace.

Each key is a Redis hash with a ``value`` field and, when given, a JSON
``metadata`` field. A write replaces the hash and sets its expiry in one
MULTI/EXEC transaction, so no reader sees a value without its expiry.
"""

from __future__ import annotations

import json
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.adapters.kv.base import AbstractKVNamespace, KVEntry, KVNamespaceError

VALUE_FIELD = "value"
METADATA_FIELD = "metadata"


def _text(raw: Any) -> str | None:
    if isinstance(raw, bytes):
        return raw.decode()
    return raw


class RedisKVNamespace(AbstractKVNamespace):
    """Namespace over a Redis database.

    ``namespace`` is prepended to every key so several sites can share one
    Redis database.
    """

    kind = "redis"

    def __init__(self, client: Redis, *, namespace: str = "") -> None:
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, *, namespace: str = "") -> "RedisKVNamespace":
        return cls(Redis.from_url(url, decode_responses=True), namespace=namespace)

    def _full_key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    async def get(self, key: str) -> str | None:
        try:
            value = await self._client.hget(self._full_key(key), VALUE_FIELD)
        except (RedisError, OSError) as exc:
            raise KVNamespaceError(f"redis HGET failed: {exc}") from exc
        return _text(value)

    async def get_with_metadata(self, key: str) -> KVEntry | None:
        try:
            value, raw_metadata = await self._client.hmget(
                self._full_key(key), [VALUE_FIELD, METADATA_FIELD]
            )
        except (RedisError, OSError) as exc:
            raise KVNamespaceError(f"redis HMGET failed: {exc}") from exc

        value = _text(value)
        if value is None:
            return None
        raw_metadata = _text(raw_metadata)
        try:
            metadata = json.loads(raw_metadata) if raw_metadata else None
        except ValueError:
            metadata = None
        return KVEntry(value=value, metadata=metadata if isinstance(metadata, dict) else None)

    async def put(
        self,
        key: str,
        value: str,
        *,
        expiration: int | None = None,
        expiration_ttl: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        full_key = self._full_key(key)
        mapping = {VALUE_FIELD: value}
        if metadata is not None:
            mapping[METADATA_FIELD] = json.dumps(metadata)

        pipe = self._client.pipeline(transaction=True)
        pipe.delete(full_key)
        pipe.hset(full_key, mapping=mapping)
        if expiration is not None:
            pipe.expireat(full_key, expiration)
        elif expiration_ttl is not None:
            pipe.expire(full_key, expiration_ttl)
        try:
            await pipe.execute()
        except (RedisError, OSError) as exc:
            raise KVNamespaceError(f"redis HSET failed: {exc}") from exc

    async def list_keys(self, *, prefix: str = "") -> list[str]:
        offset = len(self._namespace)
        try:
            return [
                (_text(key) or "")[offset:]
                async for key in self._client.scan_iter(match=f"{self._full_key(prefix)}*")
            ]
        except (RedisError, OSError) as exc:
            raise KVNamespaceError(f"redis SCAN failed: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
