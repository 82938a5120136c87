"""Short-lived read cache for the public listing.

Only ``list_events`` consults this cache. Mutations always read through the
store directly inside their retry attempt, and invalidate the cache once a
write has succeeded.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from annals.core.contracts import EventCollection

from .base import DocumentStore


class CachedEventReader:
    """Time-boxed cache in front of ``store.read()``.

    Parameters
    ----------
    store:
        Store to read through on a miss.
    ttl_seconds:
        Lifetime of a cached collection; ``0`` disables caching.
    clock:
        Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        store: DocumentStore,
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: EventCollection | None = None
        self._expires_at = 0.0
        self._generation = 0

    def get(self) -> EventCollection:
        with self._lock:
            if self._cached is not None and self._clock() < self._expires_at:
                return self._cached
            generation = self._generation
        collection = self._store.read().collection
        with self._lock:
            # an invalidation during the read means this copy may predate a write
            if self._ttl > 0 and generation == self._generation:
                self._cached = collection
                self._expires_at = self._clock() + self._ttl
        return collection

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None
            self._expires_at = 0.0
            self._generation += 1


__all__ = ["CachedEventReader"]
