"""Shared fixtures: a seeded in-memory store and a no-sleep mutator."""

from __future__ import annotations

import os

os.environ.setdefault("ANNALS_ENV", "test")

from collections.abc import Generator  # noqa: E402

import pytest  # noqa: E402

from annals.core.contracts import EventCollection, TimelineEvent  # noqa: E402
from annals.core.mutator import ConflictRetryingMutator  # noqa: E402
from annals.core.settings import load_settings  # noqa: E402
from annals.storage import InMemoryDocumentStore  # noqa: E402


@pytest.fixture(autouse=True)  # type: ignore[misc]
def _fresh_settings() -> Generator[None, None, None]:
    """Drop any settings cached by a test that patched the environment."""
    yield
    load_settings.cache_clear()


@pytest.fixture  # type: ignore[misc]
def seed() -> EventCollection:
    return EventCollection(
        events=[
            TimelineEvent(id="1", year=-44, name="X", category="event"),
            TimelineEvent(
                id="2",
                year=1687,
                name="Principia",
                category="discovery",
                region="England",
                description="Newton's laws of motion",
            ),
        ]
    )


@pytest.fixture  # type: ignore[misc]
def store(seed: EventCollection) -> InMemoryDocumentStore:
    return InMemoryDocumentStore(seed, token="t1")


@pytest.fixture  # type: ignore[misc]
def sleeps() -> list[float]:
    return []


@pytest.fixture  # type: ignore[misc]
def mutator(store: InMemoryDocumentStore, sleeps: list[float]) -> ConflictRetryingMutator:
    return ConflictRetryingMutator(store, sleep=sleeps.append)
