"""Time-boxed read cache."""

from __future__ import annotations

from annals.storage import CachedEventReader, InMemoryDocumentStore


class Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_hits_within_ttl_and_refreshes_after(store: InMemoryDocumentStore) -> None:
    clock = Clock()
    reader = CachedEventReader(store, ttl_seconds=30, clock=clock)

    reader.get()
    clock.now += 29
    reader.get()
    assert store.reads == 1

    clock.now += 2
    reader.get()
    assert store.reads == 2


def test_invalidate_forces_fresh_read(store: InMemoryDocumentStore) -> None:
    reader = CachedEventReader(store, ttl_seconds=30, clock=Clock())
    reader.get()
    snap = store.peek()
    store.write(snap.collection.without("1"), snap.token, "Delete: X")

    assert reader.get().get("1") is not None
    reader.invalidate()
    assert reader.get().get("1") is None


def test_zero_ttl_never_caches(store: InMemoryDocumentStore) -> None:
    reader = CachedEventReader(store, ttl_seconds=0, clock=Clock())
    reader.get()
    reader.get()
    assert store.reads == 2


def test_invalidation_during_read_discards_result(store: InMemoryDocumentStore) -> None:
    reader = CachedEventReader(store, ttl_seconds=30, clock=Clock())
    store.on_read = reader.invalidate

    reader.get()
    store.on_read = None
    reader.get()
    assert store.reads == 2
