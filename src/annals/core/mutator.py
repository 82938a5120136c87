"""Conflict-retrying read-modify-write runner.

Motivation
----------
The store offers one concurrency primitive: "present the token you read; a
stale token is rejected". Turning that into safe updates means every
mutation must re-read, re-apply and re-write when it loses a race. This
module owns that loop so callers never hand-write it.

Stale-token guard
-----------------
A retry that reuses a token read *before* the loop can never succeed. The
runner makes that mistake unrepresentable: an operation receives only an
:class:`Attempt`, the attempt is the only thing that can write, and it will
only write a :class:`~annals.storage.base.Snapshot` that it read itself while
still open. Attempts are closed as soon as the runner is done with them, so
a handle or snapshot smuggled out of one pass is useless in the next.

Retry policy
------------
- ``VersionConflict``: sleep ``base_delay * n`` after the n-th failed pass
  (0.2 s, 0.4 s, 0.6 s by default) and try again, at most ``max_retries``
  times, and never past the optional total ``deadline``.
- Budget or deadline spent: raise :class:`RetriesExhausted`.
- Any other exception propagates on the spot.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TypeVar

from annals.storage.base import DocumentStore, Snapshot

from .contracts import EventCollection
from .errors import RetriesExhausted, StaleSnapshotError, VersionConflict
from .settings import Settings, get_logger

T = TypeVar("T")

logger = get_logger("annals.core.mutator")


class Attempt:
    """One pass of a read-modify-write operation."""

    def __init__(self, store: DocumentStore, number: int) -> None:
        self._store = store
        self.number = number
        self._open = True
        self._issued: list[Snapshot] = []

    @property
    def is_open(self) -> bool:
        return self._open

    def read(self) -> Snapshot:
        """Read a fresh snapshot from the store; the only source of tokens."""
        self._ensure_open()
        snapshot = self._store.read()
        self._issued.append(snapshot)
        return snapshot

    def write(self, snapshot: Snapshot, collection: EventCollection, message: str) -> str:
        """Write ``collection`` guarded by the token of ``snapshot``."""
        self._ensure_open()
        if not any(issued is snapshot for issued in self._issued):
            raise StaleSnapshotError(
                "snapshot was not read through this attempt; read inside the operation"
            )
        return self._store.write(collection, snapshot.token, message)

    def close(self) -> None:
        self._open = False

    def _ensure_open(self) -> None:
        if not self._open:
            raise StaleSnapshotError(f"attempt {self.number} is already closed")


class ConflictRetryingMutator:
    """Run read-modify-write operations against a store with conflict retries.

    Parameters
    ----------
    store:
        Versioned document store.
    max_retries:
        Retries after the first pass; the operation runs at most
        ``max_retries + 1`` times.
    base_delay:
        Linear backoff unit in seconds.
    deadline:
        Optional total wall-clock budget in seconds across all passes.
    sleep, clock:
        Injectable for tests.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        max_retries: int = 3,
        base_delay: float = 0.2,
        deadline: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.store = store
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.deadline = deadline
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, store: DocumentStore, settings: Settings) -> ConflictRetryingMutator:
        return cls(
            store,
            max_retries=settings.max_retries,
            base_delay=settings.retry_base_delay_seconds,
            deadline=settings.retry_deadline_seconds,
        )

    def run(self, operation: Callable[[Attempt], T]) -> T:
        """Invoke ``operation`` until it succeeds or the retry budget is spent."""
        started = self._clock()
        total = self.max_retries + 1
        for number in range(1, total + 1):
            attempt = Attempt(self.store, number)
            try:
                return operation(attempt)
            except VersionConflict as exc:
                if number == total:
                    logger.warning("Giving up after %d conflicting attempt(s)", number)
                    raise RetriesExhausted(number) from exc
                delay = self.base_delay * number
                if self.deadline is not None and self._clock() - started + delay > self.deadline:
                    logger.warning("Retry deadline of %.2fs reached after %d attempt(s)",
                                   self.deadline, number)
                    raise RetriesExhausted(number, reason="retry deadline reached") from exc
                logger.info("Version conflict on attempt %d/%d; retrying in %.2fs",
                            number, total, delay)
                self._sleep(delay)
            finally:
                attempt.close()
        raise AssertionError("unreachable: loop always returns or raises")


__all__ = ["Attempt", "ConflictRetryingMutator"]
