"""EventService: owner check, validation before I/O, typed failures, cache."""

from __future__ import annotations

from typing import Any

import pytest

from annals.core.contracts import EventCollection
from annals.core.errors import FailureKind, StoreUnavailable, VersionConflict
from annals.core.mutator import ConflictRetryingMutator
from annals.core.settings import load_settings
from annals.service import EventService, build_store
from annals.storage import CachedEventReader, InMemoryDocumentStore, Snapshot


class ConflictingStore(InMemoryDocumentStore):
    """Every write loses the race."""

    def write(self, collection: EventCollection, token: str, message: str) -> str:
        self.writes += 1
        raise VersionConflict("always stale")


class DownStore(InMemoryDocumentStore):
    def read(self) -> Snapshot:
        self.reads += 1
        raise StoreUnavailable("GitHub read failed with HTTP 503", status=503)


@pytest.fixture  # type: ignore[misc]
def service(store: InMemoryDocumentStore, mutator: ConflictRetryingMutator) -> EventService:
    return EventService(store, mutator=mutator)


VALID: dict[str, Any] = {"year": 1969, "name": "Moon landing", "category": "event"}


def test_list_events_needs_no_owner(service: EventService) -> None:
    result = service.list_events()
    assert result.is_ok()
    assert [e.id for e in result.unwrap().events] == ["1", "2"]


def test_create_returns_event_with_assigned_id(
    service: EventService, store: InMemoryDocumentStore
) -> None:
    result = service.create_event({**VALID, "id": "client-chosen"}, is_owner=True)

    assert result.is_ok()
    event = result.unwrap()
    assert event.id != "client-chosen"
    assert store.read().collection.get(event.id) == event


def test_unauthorized_is_checked_before_validation(
    service: EventService, store: InMemoryDocumentStore
) -> None:
    result = service.create_event({"year": "nope"}, is_owner=False)

    assert result.unwrap_err().kind is FailureKind.UNAUTHORIZED
    assert store.reads == 0 and store.writes == 0


@pytest.mark.parametrize(  # type: ignore[misc]
    ("fields", "field"),
    [
        ({**VALID, "year": "nineteen sixty-nine"}, "year"),
        ({**VALID, "category": "dinosaur"}, "category"),
        ({**VALID, "name": ""}, "name"),
    ],
)
def test_validation_precedes_any_store_call(
    service: EventService, store: InMemoryDocumentStore, fields: dict[str, Any], field: str
) -> None:
    failure = service.create_event(fields, is_owner=True).unwrap_err()

    assert failure.kind is FailureKind.VALIDATION
    assert failure.field == field
    assert store.reads == 0
    assert store.writes == 0


def test_update_validation_precedes_io(
    service: EventService, store: InMemoryDocumentStore
) -> None:
    failure = service.update_event("1", {"endYear": 99999}, is_owner=True).unwrap_err()
    assert failure.kind is FailureKind.VALIDATION and failure.field == "endYear"
    assert store.reads == 0


def test_update_and_delete_of_missing_id(service: EventService) -> None:
    assert (
        service.update_event("missing", {"name": "Y"}, is_owner=True).unwrap_err().kind
        is FailureKind.NOT_FOUND
    )
    assert service.delete_event("missing", is_owner=True).unwrap_err().kind is FailureKind.NOT_FOUND


def test_delete_requires_owner(service: EventService, store: InMemoryDocumentStore) -> None:
    assert service.delete_event("1", is_owner=False).unwrap_err().kind is FailureKind.UNAUTHORIZED
    assert service.delete_event("1", is_owner=True).is_ok()
    assert store.read().collection.get("1") is None


def test_exhausted_conflicts_map_to_conflict_failure(seed: EventCollection) -> None:
    store = ConflictingStore(seed)
    service = EventService(store, mutator=ConflictRetryingMutator(store, sleep=lambda _: None))

    failure = service.create_event(VALID, is_owner=True).unwrap_err()

    assert failure.kind is FailureKind.CONFLICT
    assert store.writes == 4


def test_store_outage_is_not_retried(seed: EventCollection, sleeps: list[float]) -> None:
    store = DownStore(seed)
    service = EventService(store, mutator=ConflictRetryingMutator(store, sleep=sleeps.append))

    assert service.list_events().unwrap_err().kind is FailureKind.STORE_UNAVAILABLE
    failure = service.update_event("1", {"name": "Y"}, is_owner=True).unwrap_err()
    assert failure.kind is FailureKind.STORE_UNAVAILABLE
    assert store.reads == 2
    assert sleeps == []


def test_listing_is_cached_until_a_write(
    store: InMemoryDocumentStore, mutator: ConflictRetryingMutator
) -> None:
    service = EventService(
        store,
        mutator=mutator,
        reader=CachedEventReader(store, ttl_seconds=60, clock=lambda: 0.0),
    )

    service.list_events()
    service.list_events()
    assert store.reads == 1

    created = service.create_event(VALID, is_owner=True).unwrap()
    assert store.reads == 2

    listed = service.list_events().unwrap()
    assert store.reads == 3
    assert listed.get(created.id) == created


def test_failed_write_keeps_cache(
    store: InMemoryDocumentStore, mutator: ConflictRetryingMutator
) -> None:
    service = EventService(
        store,
        mutator=mutator,
        reader=CachedEventReader(store, ttl_seconds=60, clock=lambda: 0.0),
    )
    service.list_events()
    service.delete_event("missing", is_owner=True)
    service.list_events()
    assert store.reads == 2


def test_build_store_memory_backend(monkeypatch: Any) -> None:
    monkeypatch.setenv("ANNALS_STORE", "memory")
    load_settings.cache_clear()
    assert isinstance(build_store(load_settings()), InMemoryDocumentStore)
    assert EventService.from_settings(load_settings()).list_events().unwrap().events == []


class CommitsThenFails(InMemoryDocumentStore):
    """The write lands but the response is lost."""

    def write(self, collection: EventCollection, token: str, message: str) -> str:
        super().write(collection, token, message)
        raise StoreUnavailable("GitHub write response carries no content.sha", status=200)


def test_write_with_unknown_outcome_drops_cache(
    seed: EventCollection, sleeps: list[float]
) -> None:
    store = CommitsThenFails(seed)
    service = EventService(
        store,
        mutator=ConflictRetryingMutator(store, sleep=sleeps.append),
        reader=CachedEventReader(store, ttl_seconds=60, clock=lambda: 0.0),
    )
    service.list_events()

    failure = service.delete_event("1", is_owner=True).unwrap_err()

    assert failure.kind is FailureKind.STORE_UNAVAILABLE
    assert [e.id for e in service.list_events().unwrap().events] == ["2"]
    assert sleeps == []
