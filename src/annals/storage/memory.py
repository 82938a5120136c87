"""In-process versioned document store.

Keeps the serialized document as bytes, exactly as a remote store would, so
every read goes through the same parse path as production. The version token
is a SHA-1 over a revision counter and the document bytes; it therefore
changes on every successful write, even one that stores identical content.

Used by the test-suite and for local runs (``ANNALS_STORE=memory``). The
``on_read`` hook runs after a snapshot has been taken, which lets tests slip
a competing writer in between an operation's read and its write.
"""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Callable

from annals.core.contracts import EventCollection
from annals.core.errors import DocumentCorrupt, VersionConflict

from .base import Snapshot


class InMemoryDocumentStore:
    """Thread-safe single-document store with optimistic concurrency."""

    def __init__(
        self,
        initial: EventCollection | None = None,
        *,
        token: str | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._revision = 0
        self._document = (initial or EventCollection()).to_document()
        self._token = token or self._digest(self._document)
        self.reads = 0
        self.writes = 0
        self.messages: list[str] = []
        self.on_read: Callable[[], None] | None = None

    # ----- DocumentStore API -------------------------------------------------
    def read(self) -> Snapshot:
        with self._lock:
            self.reads += 1
            snapshot = self._parse(self._document, self._token)
        if self.on_read is not None:
            self.on_read()
        return snapshot

    def write(self, collection: EventCollection, token: str, message: str) -> str:
        data = collection.to_document()
        with self._lock:
            if token != self._token:
                raise VersionConflict(f"token {token} is stale (current {self._token})")
            self._revision += 1
            self._document = data
            self._token = self._digest(data)
            self.writes += 1
            self.messages.append(message)
            return self._token

    # ----- Inspection / out-of-band edits -----------------------------------
    @property
    def token(self) -> str:
        return self._token

    @property
    def document(self) -> bytes:
        return self._document

    def peek(self) -> Snapshot:
        """Read without counting and without firing ``on_read``."""
        with self._lock:
            return self._parse(self._document, self._token)

    def replace_raw(self, document: bytes) -> str:
        """Overwrite the stored bytes unchecked, as a hand edit would."""
        with self._lock:
            self._revision += 1
            self._document = document
            self._token = self._digest(document)
            return self._token

    # ----- Internals ---------------------------------------------------------
    def _digest(self, data: bytes) -> str:
        h = hashlib.sha1(f"{self._revision}\0".encode())
        h.update(data)
        return h.hexdigest()

    @staticmethod
    def _parse(document: bytes, token: str) -> Snapshot:
        try:
            collection = EventCollection.from_document(document)
        except ValueError as exc:
            raise DocumentCorrupt(f"stored document is malformed: {exc}") from exc
        return Snapshot(collection=collection, token=token)


__all__ = ["InMemoryDocumentStore"]
