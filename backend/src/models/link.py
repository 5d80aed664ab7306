"""Explicit note-to-note link records and link-edit payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .note import Note


class Link(BaseModel):
    """Directed link record between two notes, stored apart from prerequisites."""

    id: str
    user_id: str
    source: str = Field(..., description="Source note id")
    target: str = Field(..., description="Target note id")
    created: datetime


class LinkCreate(BaseModel):
    source: str
    target: str


class PrerequisiteAdd(BaseModel):
    prerequisite_id: str


class NextAdd(BaseModel):
    next_id: str


class LinkEditRequest(BaseModel):
    """Save action of the graph's link dialog: a prerequisite, a next note, or both."""

    prerequisite_id: Optional[str] = None
    next_id: Optional[str] = None


class LinkEditResult(BaseModel):
    """Notes touched by a link edit; clients re-fetch the graph afterwards."""

    note: Note
    next_note: Optional[Note] = None


__all__ = [
    "Link",
    "LinkCreate",
    "PrerequisiteAdd",
    "NextAdd",
    "LinkEditRequest",
    "LinkEditResult",
]
