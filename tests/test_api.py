"""
Integration Tests for the Annals HTTP API.

The app is built per test with an in-memory store injected, so no network or
GitHub credentials are involved.
"""

from __future__ import annotations

import http.client
import urllib.request
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from annals import __version__
from annals.api.app import create_app
from annals.core.auth import OwnerGate
from annals.core.contracts import EventCollection
from annals.core.errors import StoreUnavailable, VersionConflict
from annals.core.mutator import ConflictRetryingMutator
from annals.core.settings import Settings
from annals.service import EventService
from annals.storage import GitHubDocumentStore, InMemoryDocumentStore, Snapshot

OWNER = {"Authorization": "Bearer s3cret"}


def _client(store: InMemoryDocumentStore) -> TestClient:
    service = EventService(store, mutator=ConflictRetryingMutator(store, sleep=lambda _: None))
    app = create_app(service=service, owner_gate=OwnerGate(SecretStr("s3cret")))
    return TestClient(app)


@pytest.fixture  # type: ignore[misc]
def client(store: InMemoryDocumentStore) -> Generator[TestClient, None, None]:
    with _client(store) as c:
        yield c


def test_health_check(client: TestClient) -> None:
    data = client.get("/health").json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["environment"] in {"dev", "test", "prod"}


def test_list_is_public_and_camel_cased(client: TestClient) -> None:
    resp = client.get("/api/events")
    assert resp.status_code == 200
    events = resp.json()["events"]
    assert [e["id"] for e in events] == ["1", "2"]
    assert "endYear" in events[0] and "end_year" not in events[0]


def test_create_requires_owner(client: TestClient, store: InMemoryDocumentStore) -> None:
    payload = {"year": 1969, "name": "Moon landing", "category": "event"}

    resp = client.post("/api/events", json=payload)
    assert resp.status_code == 401
    assert resp.json()["error"] == "unauthorized"

    resp = client.post("/api/events", json=payload, headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401
    assert store.writes == 0


def test_create_happy_path(client: TestClient, store: InMemoryDocumentStore) -> None:
    resp = client.post(
        "/api/events",
        json={"year": -3000, "name": "Writing", "category": "invention", "region": "Sumer"},
        headers=OWNER,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["id"] and body["region"] == "Sumer" and body["endYear"] is None
    assert store.messages == ["Add: Writing"]


def test_create_validation_error_names_field(
    client: TestClient, store: InMemoryDocumentStore
) -> None:
    resp = client.post(
        "/api/events",
        json={"year": 1969, "name": "Moon landing", "category": "dinosaur"},
        headers=OWNER,
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"
    assert resp.json()["field"] == "category"
    assert store.reads == 0


def test_non_object_body_is_a_validation_error(client: TestClient) -> None:
    resp = client.post("/api/events", json=[1, 2, 3], headers=OWNER)
    assert resp.status_code == 400


def test_update_keeps_id_and_merges(client: TestClient) -> None:
    resp = client.put(
        "/api/events/1",
        json={"id": "hijack", "year": -27, "endYear": 476},
        headers=OWNER,
    )
    assert resp.status_code == 200
    assert resp.json() == {
        "id": "1",
        "year": -27,
        "name": "X",
        "category": "event",
        "endYear": 476,
        "region": None,
        "description": None,
    }


def test_update_and_delete_missing_return_404(client: TestClient) -> None:
    assert client.put("/api/events/nope", json={"name": "Y"}, headers=OWNER).status_code == 404
    assert client.delete("/api/events/nope", headers=OWNER).status_code == 404


def test_delete(client: TestClient, store: InMemoryDocumentStore) -> None:
    assert client.delete("/api/events/1").status_code == 401

    resp = client.delete("/api/events/1", headers=OWNER)
    assert resp.status_code == 200
    assert resp.json() == {"success": True}
    assert [e["id"] for e in client.get("/api/events").json()["events"]] == ["2"]


def test_exhausted_conflict_maps_to_409(seed: EventCollection) -> None:
    class Contended(InMemoryDocumentStore):
        def write(self, collection: EventCollection, token: str, message: str) -> str:
            raise VersionConflict("stale")

    with _client(Contended(seed)) as client:
        resp = client.delete("/api/events/1", headers=OWNER)
    assert resp.status_code == 409
    assert resp.json()["error"] == "version_conflict"


def test_store_outage_maps_to_502(seed: EventCollection) -> None:
    class Down(InMemoryDocumentStore):
        def read(self) -> Snapshot:
            raise StoreUnavailable("GitHub read failed with HTTP 500", status=500)

    with _client(Down(seed)) as client:
        resp = client.get("/api/events")
    assert resp.status_code == 502
    assert resp.json()["error"] == "store_unavailable"


def test_github_disconnect_maps_to_502(monkeypatch: pytest.MonkeyPatch) -> None:
    class Dropped:
        status = 200

        def __enter__(self) -> Dropped:
            return self

        def __exit__(self, *exc_info: object) -> None:
            return None

        def read(self) -> bytes:
            raise http.client.RemoteDisconnected("closed")

    monkeypatch.setattr(urllib.request, "urlopen", lambda request, timeout: Dropped())
    store = GitHubDocumentStore(token="ghp_test", owner="octo", repo="annals-data")
    service = EventService(store, mutator=ConflictRetryingMutator(store, sleep=lambda _: None))

    with TestClient(create_app(service=service, owner_gate=OwnerGate(None))) as client:
        resp = client.get("/api/events")
    assert resp.status_code == 502
    assert resp.json()["error"] == "store_unavailable"


@pytest.mark.parametrize(("env", "leaks"), [("prod", False), ("dev", True)])  # type: ignore[misc]
def test_unexpected_error_detail_hidden_in_prod(
    seed: EventCollection, env: str, leaks: bool
) -> None:
    class Broken(InMemoryDocumentStore):
        def read(self) -> Snapshot:
            raise RuntimeError("boom at /srv/secret")

    store = Broken(seed)
    app = create_app(
        service=EventService(store),
        owner_gate=OwnerGate(None),
        settings=Settings(ANNALS_ENV=env),
    )
    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.get("/api/events")

    assert resp.status_code == 500
    assert resp.json()["error"] == "internal_error"
    assert ("/srv/secret" in resp.json()["detail"]) is leaks
