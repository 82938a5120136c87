"""Versioned document stores holding the single event collection."""

from __future__ import annotations

from .base import DocumentStore, Snapshot
from .cache import CachedEventReader
from .github import GitHubDocumentStore
from .memory import InMemoryDocumentStore

__all__ = [
    "CachedEventReader",
    "DocumentStore",
    "GitHubDocumentStore",
    "InMemoryDocumentStore",
    "Snapshot",
]
