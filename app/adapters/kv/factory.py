"""Factory for KV namespace handles."""

from __future__ import annotations

from app.adapters.kv.base import AbstractKVNamespace
from app.adapters.kv.memory import InMemoryKVNamespace
from app.adapters.kv.redis_kv import RedisKVNamespace
from app.core.errors import ConfigurationAppError


def create_kv_namespace(url: str | None) -> AbstractKVNamespace | None:
    """Build the KV handle named by ``url``.

    Supported schemes: ``memory://`` and ``redis://``/``rediss://``.
    Returns None when no URL is configured.

    Raises:
        ConfigurationAppError: If the scheme is not supported.
    """
    if not url:
        return None

    scheme = url.split("://", 1)[0].lower()
    if scheme == "memory":
        return InMemoryKVNamespace()
    if scheme in {"redis", "rediss"}:
        return RedisKVNamespace.from_url(url)

    raise ConfigurationAppError(
        code="kv_unknown_scheme",
        message=f"Unsupported KV URL scheme: '{scheme}'. Supported: memory, redis",
    )
