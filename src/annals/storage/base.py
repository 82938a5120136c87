"""Read/write contract shared by every versioned document store.

A store holds exactly one document (the event collection) under one fixed
location and hands out an opaque version token with every read. Writes must
present the token they were read at; the store rejects stale tokens with
:class:`~annals.core.errors.VersionConflict`. There is no field-level update,
no locking and no transaction beyond that precondition.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from annals.core.contracts import EventCollection


@dataclass(frozen=True, eq=False)
class Snapshot:
    """A fully parsed collection together with the token it was read at.

    Compared by identity so that a snapshot can be traced back to the read
    that produced it.
    """

    collection: EventCollection
    token: str


class DocumentStore(Protocol):
    """Versioned single-document store."""

    def read(self) -> Snapshot:
        """Return the current collection and version token.

        Raises ``StoreUnavailable`` (or ``DocumentCorrupt``) on failure.
        """
        ...

    def write(self, collection: EventCollection, token: str, message: str) -> str:
        """Replace the document if ``token`` is current; return the new token.

        Raises ``VersionConflict`` on a stale token, ``StoreUnavailable``
        otherwise. ``message`` is an audit label with no behaviour attached.
        """
        ...


__all__ = ["DocumentStore", "Snapshot"]
