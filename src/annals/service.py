"""Application-facing event service.

This is the surface the HTTP routes and the CLI call. Every method returns a
:class:`~annals.core.result.Result` instead of raising, so the outer layers
map outcomes by ``failure.kind`` alone.

Order of checks for writes
--------------------------
1. Owner capability (``Unauthorized``).
2. Input validation (``ValidationError``), with no store access at all.
3. The retried read-modify-write (``NotFound``, ``VersionConflict``,
   ``StoreUnavailable``).

After a successful write the public read cache is invalidated, and also after
a write that failed with ``StoreUnavailable``, whose outcome is unknown.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from annals.core.contracts import EventCollection, TimelineEvent, parse_draft, parse_patch
from annals.core.errors import AnnalsError, FailureKind, Unauthorized
from annals.core.mutations import add_event, delete_event, update_event
from annals.core.mutator import ConflictRetryingMutator
from annals.core.result import Failure, Result, err, ok
from annals.core.settings import Settings, get_logger
from annals.storage import (
    CachedEventReader,
    DocumentStore,
    GitHubDocumentStore,
    InMemoryDocumentStore,
)

T = TypeVar("T")

logger = get_logger("annals.service")


def build_store(settings: Settings) -> DocumentStore:
    """Construct the document store selected by ``ANNALS_STORE``."""
    if settings.store_backend == "memory":
        logger.warning("Using the in-memory store; data is lost on restart")
        return InMemoryDocumentStore()
    return GitHubDocumentStore.from_settings(settings)


class EventService:
    """List, create, update and delete timeline events."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        mutator: ConflictRetryingMutator | None = None,
        reader: CachedEventReader | None = None,
    ) -> None:
        self.store = store
        self.mutator = mutator or ConflictRetryingMutator(store)
        self.reader = reader or CachedEventReader(store, ttl_seconds=0)

    @classmethod
    def from_settings(
        cls, settings: Settings, store: DocumentStore | None = None
    ) -> EventService:
        store = store if store is not None else build_store(settings)
        return cls(
            store,
            mutator=ConflictRetryingMutator.from_settings(store, settings),
            reader=CachedEventReader(store, ttl_seconds=settings.cache_ttl_seconds),
        )

    # ----- Reads -------------------------------------------------------------
    def list_events(self) -> Result[EventCollection, Failure]:
        """Return the full collection; no owner capability required."""
        return self._capture("list", self.reader.get)

    # ----- Writes ------------------------------------------------------------
    def create_event(self, fields: Any, *, is_owner: bool) -> Result[TimelineEvent, Failure]:
        def run() -> TimelineEvent:
            _require_owner(is_owner)
            draft = parse_draft(fields)
            return add_event(self.mutator, draft)

        return self._capture("create", run, write=True)

    def update_event(
        self, event_id: str, fields: Any, *, is_owner: bool
    ) -> Result[TimelineEvent, Failure]:
        def run() -> TimelineEvent:
            _require_owner(is_owner)
            patch = parse_patch(fields)
            return update_event(self.mutator, event_id, patch)

        return self._capture(f"update {event_id}", run, write=True)

    def delete_event(self, event_id: str, *, is_owner: bool) -> Result[None, Failure]:
        def run() -> None:
            _require_owner(is_owner)
            delete_event(self.mutator, event_id)

        return self._capture(f"delete {event_id}", run, write=True)

    # ----- Internals ---------------------------------------------------------
    def _capture(
        self, action: str, fn: Callable[[], T], *, write: bool = False
    ) -> Result[T, Failure]:
        try:
            value = fn()
        except AnnalsError as exc:
            failure = Failure.from_error(exc)
            if failure.kind is FailureKind.STORE_UNAVAILABLE:
                logger.error("%s failed: %s", action, failure.message)
                if write:
                    # The outcome of the write is unknown; it may have been committed.
                    self.reader.invalidate()
            else:
                logger.info("%s rejected (%s): %s", action, failure.kind, failure.message)
            return err(failure)
        if write:
            self.reader.invalidate()
        logger.debug("%s succeeded", action)
        return ok(value)


def _require_owner(is_owner: bool) -> None:
    if not is_owner:
        raise Unauthorized()


__all__ = ["EventService", "build_store"]
