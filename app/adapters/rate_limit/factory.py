"""Select the window store from the bound handles."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from app.adapters.kv.base import AbstractKVNamespace
from app.adapters.rate_limit.base import WindowStore
from app.adapters.rate_limit.kv import KVWindowStore
from app.adapters.rate_limit.relational import RelationalWindowStore

logger = logging.getLogger(__name__)


def build_window_store(
    *,
    kv: AbstractKVNamespace | None,
    engine: AsyncEngine | None,
    sweep_probability: float = 0.01,
) -> WindowStore | None:
    """Return the store backing the rate limiter.

    The KV namespace wins when both handles are bound. Returns None when
    neither is, which makes the limiter fail open.
    """
    if kv is not None:
        store: WindowStore | None = KVWindowStore(kv)
    elif engine is not None:
        store = RelationalWindowStore(engine, sweep_probability=sweep_probability)
    else:
        store = None

    logger.info(
        "rate_limit.backend_selected",
        extra={"backend": store.backend if store else "none"},
    )
    return store
