"""Pydantic contracts for the stored event document and its inputs."""

from __future__ import annotations

from .event import (
    CATEGORY_STYLES,
    Category,
    CategoryStyle,
    EventCollection,
    EventDraft,
    EventPatch,
    TimelineEvent,
    parse_draft,
    parse_patch,
)

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
