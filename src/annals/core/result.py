"""Typed Result container returned by the application-facing service.

The write path raises typed exceptions internally (see
:mod:`annals.core.errors`); the service boundary folds them into explicit
values so that the HTTP layer and the CLI map outcomes without ``try`` blocks:

- ``Ok(value)`` for success,
- ``Err(Failure)`` for a typed failure whose ``kind`` is a
  :class:`~annals.core.errors.FailureKind`.

Example
-------
>>> from annals.core.result import ok, err, Failure
>>> from annals.core.errors import FailureKind
>>> ok(2).map(lambda x: x * 3).unwrap()
6
>>> err(Failure(FailureKind.NOT_FOUND, "gone")).is_err()
True
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, cast

from .errors import AnnalsError, FailureKind, ValidationError

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class Result(Generic[T, E]):
    """Sum type representing either success (`Ok[T]`) or failure (`Err[E]`)."""

    def is_ok(self) -> bool:
        """Return ``True`` if this is an :class:`Ok` value."""
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        """Return ``True`` if this is an :class:`Err` value."""
        return isinstance(self, Err)

    def unwrap(self) -> T:
        """Return the success value, or raise ``RuntimeError`` on ``Err``."""
        if isinstance(self, Ok):
            return cast(Ok[T, E], self).value
        raise RuntimeError(f"Attempted to unwrap Err: {self!r}")

    def unwrap_err(self) -> E:
        """Return the error value if ``Err``, else raise."""
        if isinstance(self, Err):
            return cast(Err[T, E], self).error
        raise RuntimeError(f"Attempted to unwrap_err on Ok: {self!r}")

    def map(self, fn: Callable[[T], U]) -> Result[U, E]:
        """Apply ``fn`` to the success value; propagate the error unchanged."""
        if isinstance(self, Ok):
            return Ok(fn(cast(Ok[T, E], self).value))
        return cast(Result[U, E], self)

    def __repr__(self) -> str:  # pragma: no cover - trivial representation
        if isinstance(self, Ok):
            return f"Ok({cast(Ok[T, E], self).value!r})"
        if isinstance(self, Err):
            return f"Err({cast(Err[T, E], self).error!r})"
        return "Result(?)"


@dataclass(frozen=True)
class Ok(Result[T, E]):
    """Successful result wrapping a value of type ``T``."""

    value: T


@dataclass(frozen=True)
class Err(Result[T, E]):
    """Failed result wrapping an error payload of type ``E``."""

    error: E


@dataclass(frozen=True)
class Failure:
    """Client-facing description of why a service call did not succeed.

    Attributes
    ----------
    kind:
        Discriminator the caller branches on.
    message:
        Human-readable reason.
    field:
        Offending input field for validation failures, else ``None``.
    """

    kind: FailureKind
    message: str
    field: str | None = None

    @classmethod
    def from_error(cls, exc: AnnalsError) -> Failure:
        field = exc.field if isinstance(exc, ValidationError) else None
        return cls(kind=exc.kind, message=exc.message, field=field)


def ok(value: T) -> Result[T, E]:
    """Construct :class:`Ok` with better type inference at call sites."""
    return Ok(value)


def err(error: E) -> Result[T, E]:
    """Construct :class:`Err` with better type inference at call sites."""
    return Err(error)


__all__ = ["Err", "Failure", "Ok", "Result", "err", "ok"]
