"""Pydantic models for data validation and serialization."""

from .graph import (
    CompositeId,
    GraphData,
    GraphEdge,
    GraphNode,
    LayoutOptions,
    LayoutResult,
    NodeKind,
    PositionedLink,
    PositionedNode,
    edge_id,
)
from .link import Link, LinkCreate, LinkEditRequest, LinkEditResult, NextAdd, PrerequisiteAdd
from .note import (
    CascadeReport,
    ContentBlock,
    Note,
    NoteCreate,
    NoteSummary,
    NoteUpdate,
    Prerequisite,
    PrerequisiteReference,
    ResolvedPrerequisite,
)
from .topic import Topic, TopicCreate

__all__ = [
    "Topic",
    "TopicCreate",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteSummary",
    "ContentBlock",
    "Prerequisite",
    "PrerequisiteReference",
    "ResolvedPrerequisite",
    "CascadeReport",
    "Link",
    "LinkCreate",
    "PrerequisiteAdd",
    "NextAdd",
    "LinkEditRequest",
    "LinkEditResult",
    "NodeKind",
    "CompositeId",
    "edge_id",
    "GraphNode",
    "GraphEdge",
    "GraphData",
    "LayoutOptions",
    "PositionedNode",
    "PositionedLink",
    "LayoutResult",
]
