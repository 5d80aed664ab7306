"""Note-related Pydantic models."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentBlock(BaseModel):
    """A single rich-text or image block; the value is opaque to the backend."""

    type: Literal["text", "image"]
    value: str = ""


def _default_blocks() -> list[ContentBlock]:
    return [ContentBlock(type="text", value="")]


class PrerequisiteReference(BaseModel):
    """Bare prerequisite id, as submitted by clients."""

    kind: Literal["reference"] = "reference"
    id: str


class ResolvedPrerequisite(BaseModel):
    """Prerequisite populated with the fields the graph builder needs."""

    kind: Literal["resolved"] = "resolved"
    id: str
    title: str
    topics: list[str] = Field(default_factory=list)


Prerequisite = Annotated[
    Union[PrerequisiteReference, ResolvedPrerequisite], Field(discriminator="kind")
]


class Note(BaseModel):
    """Complete note with content, topic memberships and prerequisites."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "5f0c2b8e9a4d4c0e8f1a2b3c4d5e6f70",
                "user_id": "alice",
                "title": "Quadratics",
                "blocks": [{"type": "text", "value": "ax^2 + bx + c = 0"}],
                "topics": ["0a1b2c3d4e5f60718293a4b5c6d7e8f9"],
                "prerequisites": [
                    {
                        "kind": "resolved",
                        "id": "9f8e7d6c5b4a39281706f5e4d3c2b1a0",
                        "title": "Linear Equations",
                        "topics": ["0a1b2c3d4e5f60718293a4b5c6d7e8f9"],
                    }
                ],
                "created": "2025-01-10T09:00:00+00:00",
                "updated": "2025-01-15T14:30:00+00:00",
            }
        }
    )

    id: str = Field(..., description="Unique note identifier")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., min_length=1, description="Display title")
    blocks: list[ContentBlock] = Field(default_factory=_default_blocks)
    topics: list[str] = Field(default_factory=list, description="Topic ids")
    prerequisites: list[Prerequisite] = Field(default_factory=list)
    created: datetime
    updated: datetime

    @property
    def prerequisite_ids(self) -> list[str]:
        return [prereq.id for prereq in self.prerequisites]


def _clean_title(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("Title cannot be empty")
    return cleaned


class NoteCreate(BaseModel):
    """Request payload to create a note."""

    title: str = Field(..., min_length=1, max_length=512)
    blocks: list[ContentBlock] = Field(default_factory=_default_blocks)
    topics: list[str] = Field(default_factory=list, description="Existing topic ids")
    topic_names: list[str] = Field(
        default_factory=list, description="Topic names, created when missing"
    )
    prerequisites: list[str] = Field(default_factory=list, description="Prerequisite note ids")

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: Optional[str]) -> Optional[str]:
        return _clean_title(value)


class NoteUpdate(BaseModel):
    """Request payload to update a note; omitted fields are left unchanged."""

    title: Optional[str] = Field(None, max_length=512)
    blocks: Optional[list[ContentBlock]] = None
    topics: Optional[list[str]] = None
    topic_names: Optional[list[str]] = None
    prerequisites: Optional[list[str]] = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: Optional[str]) -> Optional[str]:
        return _clean_title(value)


class NoteSummary(BaseModel):
    """Lightweight representation used for listings."""

    id: str
    title: str
    topics: list[str]
    updated: datetime


class CascadeReport(BaseModel):
    """Outcome of deleting a note and splicing it out of its dependents."""

    note_id: str
    updated: list[str] = Field(default_factory=list, description="Dependents rewired")
    failed: list[str] = Field(
        default_factory=list, description="Dependents whose update failed and were left as is"
    )
    links_removed: int = 0


__all__ = [
    "ContentBlock",
    "PrerequisiteReference",
    "ResolvedPrerequisite",
    "Prerequisite",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteSummary",
    "CascadeReport",
]
