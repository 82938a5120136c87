"""Add / update / delete, each expressed as one retryable operation.

Inputs arrive already validated (:class:`EventDraft`, :class:`EventPatch`).
Each function builds a closure that reads through its :class:`Attempt`,
applies the change to a fresh copy of the collection and writes it back;
the mutator re-runs the closure from scratch on a version conflict.
``NotFound`` is raised from inside the closure and is terminal: re-reading
will not make an absent id appear.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable

from .contracts import EventCollection, EventDraft, EventPatch, TimelineEvent
from .errors import NotFound
from .mutator import Attempt, ConflictRetryingMutator


def new_event_id() -> str:
    return str(uuid.uuid4())


def add_event(
    mutator: ConflictRetryingMutator,
    draft: EventDraft,
    *,
    id_factory: Callable[[], str] = new_event_id,
) -> TimelineEvent:
    """Append a new event with a system-assigned id and return it."""

    def operation(attempt: Attempt) -> TimelineEvent:
        snapshot = attempt.read()
        event_id = _unused_id(snapshot.collection, id_factory)
        event = draft.to_event(event_id)
        attempt.write(snapshot, snapshot.collection.appended(event), f"Add: {event.name}")
        return event

    return mutator.run(operation)


def update_event(
    mutator: ConflictRetryingMutator,
    event_id: str,
    patch: EventPatch,
) -> TimelineEvent:
    """Merge ``patch`` onto the stored event; the id never changes."""
    changes = patch.changes()

    def operation(attempt: Attempt) -> TimelineEvent:
        snapshot = attempt.read()
        index = snapshot.collection.index_of(event_id)
        if index is None:
            raise NotFound(event_id)
        current = snapshot.collection.events[index]
        updated = TimelineEvent.model_validate({**current.model_dump(), **changes, "id": event_id})
        attempt.write(
            snapshot,
            snapshot.collection.replaced(index, updated),
            f"Update: {updated.name}",
        )
        return updated

    return mutator.run(operation)


def delete_event(mutator: ConflictRetryingMutator, event_id: str) -> None:
    def operation(attempt: Attempt) -> None:
        snapshot = attempt.read()
        event = snapshot.collection.get(event_id)
        if event is None:
            raise NotFound(event_id)
        attempt.write(snapshot, snapshot.collection.without(event_id), f"Delete: {event.name}")

    mutator.run(operation)


def _unused_id(collection: EventCollection, id_factory: Callable[[], str]) -> str:
    event_id = id_factory()
    while collection.index_of(event_id) is not None:
        event_id = id_factory()
    return event_id


__all__ = ["add_event", "delete_event", "new_event_id", "update_event"]
