"""Topic models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class Topic(BaseModel):
    """Named grouping of notes; acts as a root of the prerequisite graph."""

    id: str
    user_id: str
    name: str
    created: datetime


class TopicCreate(BaseModel):
    """Request payload to create a topic."""

    name: str = Field(..., min_length=1, max_length=256)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Topic name cannot be empty")
        return cleaned


__all__ = ["Topic", "TopicCreate"]
