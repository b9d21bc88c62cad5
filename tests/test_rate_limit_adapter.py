"""Unit tests for window store selection."""

from unittest.mock import MagicMock

import pytest

from app.adapters.kv.memory import InMemoryKVNamespace
from app.adapters.rate_limit.base import validate_window
from app.adapters.rate_limit.factory import build_window_store
from app.adapters.rate_limit.kv import KVWindowStore
from app.adapters.rate_limit.relational import RelationalWindowStore


def test_kv_wins_when_both_bound() -> None:
    store = build_window_store(kv=InMemoryKVNamespace(), engine=MagicMock())

    assert isinstance(store, KVWindowStore)
    assert store.backend == "kv"


def test_relational_when_only_engine_bound() -> None:
    store = build_window_store(kv=None, engine=MagicMock())

    assert isinstance(store, RelationalWindowStore)
    assert store.backend == "relational"


def test_none_when_nothing_bound() -> None:
    assert build_window_store(kv=None, engine=None) is None


@pytest.mark.parametrize("window", [0, -1])
def test_validate_window_rejects_non_positive(window: int) -> None:
    with pytest.raises(ValueError):
        validate_window(window)
