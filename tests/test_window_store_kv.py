"""Unit tests for the KV-backed window store."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.adapters.kv.base import KVEntry, KVNamespaceError
from app.adapters.kv.memory import InMemoryKVNamespace
from app.adapters.rate_limit.kv import KVWindowStore
from app.core.errors import BackendUnavailableError


@pytest.fixture
def kv(clock) -> InMemoryKVNamespace:
    return InMemoryKVNamespace(clock=clock)


@pytest.fixture
def store(kv, clock) -> KVWindowStore:
    return KVWindowStore(kv, clock=clock)


@pytest.mark.asyncio
async def test_requests_spread_over_window_count_up(store: KVWindowStore, clock) -> None:
    counts = []
    for _ in range(5):
        counts.append((await store.increment("rl:contact:1.2.3.4", 60)).count)
        clock.advance(2)

    assert counts == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_value_is_count_with_window_expiry(store: KVWindowStore, kv, clock) -> None:
    counter = await store.increment("rl:contact:1.2.3.4", 60)

    assert counter.expires_at == int(clock()) + 60
    assert await kv.get_with_metadata("rl:contact:1.2.3.4") == KVEntry(
        value="1", metadata={"expires_at": int(clock()) + 60}
    )


@pytest.mark.asyncio
async def test_increments_keep_window_expiry(store: KVWindowStore, clock) -> None:
    start = int(clock())

    counters = [await store.increment("k", 60)]
    clock.advance(20)
    counters.append(await store.increment("k", 60))
    clock.advance(30)
    counters.append(await store.increment("k", 60))

    assert [c.count for c in counters] == [1, 2, 3]
    assert {c.expires_at for c in counters} == {start + 60}


@pytest.mark.asyncio
async def test_key_expires_when_window_ends(store: KVWindowStore, kv, clock) -> None:
    await store.increment("k", 60)
    clock.advance(50)
    await store.increment("k", 60)

    clock.advance(10)

    assert await kv.get("k") is None


@pytest.mark.asyncio
async def test_window_resets_sixty_one_seconds_after_first_request(store: KVWindowStore, clock) -> None:
    start = int(clock())
    for offset in (0, 2, 4, 6, 8):
        clock.current = start + offset
        await store.increment("k", 60)

    clock.current = start + 30
    sixth = await store.increment("k", 60)
    clock.current = start + 61
    seventh = await store.increment("k", 60)

    assert sixth.count == 6
    assert seventh.count == 1
    assert seventh.expires_at == start + 61 + 60


@pytest.mark.asyncio
async def test_stale_key_still_present_is_treated_as_expired(kv, clock) -> None:
    """A key outliving its window expiry (lagging native expiry) restarts the window."""
    await kv.put("k", "9", metadata={"expires_at": int(clock()) - 1})
    store = KVWindowStore(kv, clock=clock)

    counter = await store.increment("k", 60)

    assert counter.count == 1
    assert counter.expires_at == int(clock()) + 60


@pytest.mark.asyncio
async def test_keys_are_isolated(store: KVWindowStore, clock) -> None:
    for _ in range(3):
        await store.increment("rl:contact:a", 60)
    clock.advance(5)

    counter_b = await store.increment("rl:contact:b", 60)
    counter_a = await store.increment("rl:contact:a", 60)

    assert counter_b.count == 1
    assert counter_b.expires_at == int(clock()) + 60
    assert counter_a.count == 4
    assert counter_a.expires_at == int(clock()) - 5 + 60


@pytest.mark.asyncio
async def test_concurrent_read_then_write_can_undercount(kv, clock) -> None:
    """Read/write is not atomic: two racing requests may both write the same count."""
    store = KVWindowStore(kv, clock=clock)
    for _ in range(3):
        await store.increment("k", 60)

    both_read = asyncio.Event()
    readers: list[str | None] = []
    real_get = kv.get_with_metadata

    async def racing_get(key: str) -> KVEntry | None:
        entry = await real_get(key)
        readers.append(entry.value if entry else None)
        if len(readers) == 2:
            both_read.set()
        await both_read.wait()
        return entry

    kv.get_with_metadata = racing_get  # type: ignore[method-assign]

    results = await asyncio.gather(store.increment("k", 60), store.increment("k", 60))

    assert readers == ["3", "3"]
    assert [r.count for r in results] == [4, 4]
    assert (await real_get("k")).value == "4"


@pytest.mark.asyncio
async def test_corrupt_value_restarts_count_within_window(store: KVWindowStore, kv, clock) -> None:
    first = await store.increment("k", 60)
    await kv.put("k", "not-a-number", expiration=first.expires_at, metadata={"expires_at": first.expires_at})
    clock.advance(10)

    counter = await store.increment("k", 60)

    assert counter.count == 1
    assert counter.expires_at == first.expires_at


@pytest.mark.asyncio
async def test_value_without_window_metadata_opens_new_window(store: KVWindowStore, kv, clock) -> None:
    await kv.put("k", "4", expiration_ttl=60)

    counter = await store.increment("k", 60)

    assert counter.count == 1
    assert counter.expires_at == int(clock()) + 60


@pytest.mark.asyncio
async def test_namespace_failure_raises_backend_unavailable(clock) -> None:
    namespace = MagicMock()
    namespace.get_with_metadata = AsyncMock(side_effect=KVNamespaceError("down"))
    store = KVWindowStore(namespace, clock=clock)

    with pytest.raises(BackendUnavailableError) as exc_info:
        await store.increment("k", 60)

    assert exc_info.value.details == {"backend": "kv"}


@pytest.mark.asyncio
async def test_rejects_non_positive_window(store: KVWindowStore) -> None:
    with pytest.raises(ValueError):
        await store.increment("k", 0)
