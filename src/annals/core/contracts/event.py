"""Event contracts: the timeline entry, its inputs, and the stored collection.

This module defines the Pydantic v2 models that make up the single stored
document and the payloads accepted by the write path:

- `TimelineEvent`   : one stored entry (system-assigned ``id``).
- `EventDraft`      : fields accepted on create (any client ``id`` ignored).
- `EventPatch`      : partial fields accepted on update.
- `EventCollection` : the ``{"events": [...]}`` document itself.

Wire format
-----------
Keys are camelCase on the wire (``endYear``) and snake_case in Python
(``end_year``). Absent optional fields are written as ``null``. The document
is pretty-printed with two-space indentation because it is also edited by
hand through the store's own tooling.

Validation
----------
Unknown keys are dropped from client input but preserved in stored data.

Years are strict integers in [-9999, 9999]; strings, floats and booleans are
rejected rather than coerced. ``end_year >= year`` is deliberately *not*
enforced. Duplicate ids anywhere in the collection make the whole document
invalid.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Annotated, Any, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError

YEAR_MIN = -9999
YEAR_MAX = 9999
NAME_MAX = 500
REGION_MAX = 200
DESCRIPTION_MAX = 2000

Year = Annotated[int, Field(strict=True, ge=YEAR_MIN, le=YEAR_MAX)]
Region = Annotated[str, Field(max_length=REGION_MAX)]
Description = Annotated[str, Field(max_length=DESCRIPTION_MAX)]


class Category(StrEnum):
    """Closed set of tags classifying an event."""

    INVENTION = "invention"
    EVENT = "event"
    PERSON = "person"
    DISCOVERY = "discovery"
    CIVILIZATION = "civilization"


@dataclass(frozen=True)
class CategoryStyle:
    label: str
    color: str


CATEGORY_STYLES: dict[Category, CategoryStyle] = {
    Category.INVENTION: CategoryStyle("Invention", "#3b82f6"),
    Category.EVENT: CategoryStyle("Event", "#ef4444"),
    Category.PERSON: CategoryStyle("Person", "#a855f7"),
    Category.DISCOVERY: CategoryStyle("Discovery", "#22c55e"),
    Category.CIVILIZATION: CategoryStyle("Civilization", "#f59e0b"),
}


def _check_name(v: str) -> str:
    if not v.strip():
        raise ValueError("name must not be blank")
    if len(v) > NAME_MAX:
        raise ValueError(f"name must be {NAME_MAX} characters or fewer")
    return v


class _EventFields(BaseModel):
    """Shared configuration for every event-shaped model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TimelineEvent(_EventFields):
    """A single stored entry on the timeline.

    Keys this model does not know are kept and written back, so fields added
    by hand to the stored document survive later updates.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(min_length=1, description="System-assigned, immutable identifier")
    year: Year
    name: str
    category: Category
    end_year: Year | None = Field(default=None, alias="endYear")
    region: Region | None = None
    description: Description | None = None

    @field_validator("name")
    @classmethod
    def _name_rules(cls, v: str) -> str:
        return _check_name(v)


class EventDraft(_EventFields):
    """Fields accepted when creating an event."""

    year: Year
    name: str
    category: Category
    end_year: Year | None = Field(default=None, alias="endYear")
    region: Region | None = None
    description: Description | None = None

    @field_validator("name")
    @classmethod
    def _name_rules(cls, v: str) -> str:
        return _check_name(v)

    def to_event(self, event_id: str) -> TimelineEvent:
        return TimelineEvent(id=event_id, **self.model_dump())


class EventPatch(_EventFields):
    """Partial fields accepted when updating an event.

    Only fields the caller actually sent are applied (``model_fields_set``).
    An explicit ``null`` clears ``endYear``/``region``/``description``; it is
    rejected for the required fields.
    """

    year: Year | None = None
    name: str | None = None
    category: Category | None = None
    end_year: Year | None = Field(default=None, alias="endYear")
    region: Region | None = None
    description: Description | None = None

    @field_validator("year", "name", "category", mode="before")
    @classmethod
    def _required_not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("field cannot be cleared")
        return v

    @field_validator("name")
    @classmethod
    def _name_rules(cls, v: str | None) -> str | None:
        return v if v is None else _check_name(v)

    def changes(self) -> dict[str, Any]:
        """Return the set fields keyed by Python field name."""
        return self.model_dump(exclude_unset=True)


class EventCollection(BaseModel):
    """The whole stored document: ``{"events": [...]}`` plus any other top-level keys."""

    model_config = ConfigDict(extra="allow")

    events: list[TimelineEvent] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> EventCollection:
        seen: set[str] = set()
        for event in self.events:
            if event.id in seen:
                raise ValueError(f"duplicate event id {event.id!r}")
            seen.add(event.id)
        return self

    # ----- Lookup ------------------------------------------------------------
    def index_of(self, event_id: str) -> int | None:
        for i, event in enumerate(self.events):
            if event.id == event_id:
                return i
        return None

    def get(self, event_id: str) -> TimelineEvent | None:
        idx = self.index_of(event_id)
        return None if idx is None else self.events[idx]

    def sorted_newest_first(self) -> list[TimelineEvent]:
        """Display order: latest year first, stable for equal years."""
        return sorted(self.events, key=lambda e: e.year, reverse=True)

    # ----- Functional updates (never mutate a read snapshot) -----------------
    def appended(self, event: TimelineEvent) -> EventCollection:
        return self._with_events([*self.events, event])

    def replaced(self, index: int, event: TimelineEvent) -> EventCollection:
        events = list(self.events)
        events[index] = event
        return self._with_events(events)

    def without(self, event_id: str) -> EventCollection:
        return self._with_events([e for e in self.events if e.id != event_id])

    def _with_events(self, events: list[TimelineEvent]) -> EventCollection:
        return EventCollection(**(self.model_extra or {}), events=events)

    # ----- Serialization -----------------------------------------------------
    def to_document(self) -> bytes:
        """Serialize to the pretty-printed stored form."""
        payload = self.model_dump(mode="json", by_alias=True)
        return (json.dumps(payload, indent=2, ensure_ascii=False) + "\n").encode("utf-8")

    @classmethod
    def from_document(cls, raw: bytes | str) -> EventCollection:
        """Parse the stored form; raises ``ValueError`` on malformed content."""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValueError(f"document is not valid JSON: {exc}") from exc
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise ValueError(f"document is not a valid event collection: {exc}") from exc


# ----- Input parsing ---------------------------------------------------------
M = TypeVar("M", bound=BaseModel)


def _parse(model: type[M], fields: Any) -> M:
    """Validate raw client input into ``model`` or raise our ``ValidationError``."""
    if not isinstance(fields, Mapping):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(dict(fields))
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        loc = first.get("loc") or ()
        field = str(loc[0]) if loc else None
        label = f"Field '{field}'" if field else "Input"
        raise ValidationError(f"{label}: {first['msg']}", field=field) from exc


def parse_draft(fields: Any) -> EventDraft:
    return _parse(EventDraft, fields)


def parse_patch(fields: Any) -> EventPatch:
    return _parse(EventPatch, fields)


__all__ = [
    "CATEGORY_STYLES",
    "Category",
    "CategoryStyle",
    "EventCollection",
    "EventDraft",
    "EventPatch",
    "TimelineEvent",
    "parse_draft",
    "parse_patch",
]
