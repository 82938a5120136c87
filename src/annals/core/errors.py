"""Typed failures raised by the Annals write path.

Every exception carries a machine-checkable :class:`FailureKind`, so callers
branch on ``exc.kind`` (or on the class) and never on message text.

Taxonomy
--------
- :class:`ValidationError`  -- malformed input, raised before any I/O.
- :class:`Unauthorized`     -- caller lacks the owner capability.
- :class:`NotFound`         -- referenced id is absent from the fresh read.
- :class:`VersionConflict`  -- the stored document moved since it was read.
  :class:`RetriesExhausted` is the terminal form after the retry budget.
- :class:`StoreUnavailable` -- network or remote failure unrelated to versions.
  :class:`DocumentCorrupt` is the read-side form for an unparseable document.

:class:`StaleSnapshotError` is different in nature: it flags a programming
error (writing through a snapshot from another attempt) and is never mapped
to a client-facing failure.
"""

from __future__ import annotations

from enum import StrEnum


class FailureKind(StrEnum):
    """Discriminator shared by exceptions and service-level failures."""

    VALIDATION = "validation_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "version_conflict"
    STORE_UNAVAILABLE = "store_unavailable"


class AnnalsError(Exception):
    """Base class for every typed failure in this package."""

    kind: FailureKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AnnalsError):
    """Input rejected before touching the store."""

    kind = FailureKind.VALIDATION

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class Unauthorized(AnnalsError):
    kind = FailureKind.UNAUTHORIZED

    def __init__(self, message: str = "Owner capability required") -> None:
        super().__init__(message)


class NotFound(AnnalsError):
    kind = FailureKind.NOT_FOUND

    def __init__(self, event_id: str) -> None:
        super().__init__(f"Event {event_id!r} not found")
        self.event_id = event_id


class VersionConflict(AnnalsError):
    """The supplied version token no longer matches the stored document."""

    kind = FailureKind.CONFLICT


class RetriesExhausted(VersionConflict):
    """Every attempt lost the race; raised once the retry budget is spent."""

    def __init__(self, attempts: int, *, reason: str = "retry budget exhausted") -> None:
        super().__init__(f"Document kept changing after {attempts} attempt(s): {reason}")
        self.attempts = attempts


class StoreUnavailable(AnnalsError):
    """The remote store could not be reached or answered with an error."""

    kind = FailureKind.STORE_UNAVAILABLE

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class DocumentCorrupt(StoreUnavailable):
    """The stored document is not a well-formed event collection."""


class StaleSnapshotError(RuntimeError):
    """A write was attempted with a snapshot not read in the current attempt."""


__all__ = [
    "AnnalsError",
    "DocumentCorrupt",
    "FailureKind",
    "NotFound",
    "RetriesExhausted",
    "StaleSnapshotError",
    "StoreUnavailable",
    "Unauthorized",
    "ValidationError",
    "VersionConflict",
]
