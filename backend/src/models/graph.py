"""Graph data models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional
from urllib.parse import quote, unquote

from pydantic import BaseModel, Field

from .topic import Topic

COMPOSITE_SEPARATOR = ":"
EDGE_SEPARATOR = "->"


def _escape(value: str) -> str:
    # With no safe characters, ':' and '>' never survive inside a component.
    return quote(value, safe="")


class NodeKind(str, Enum):
    TOPIC = "topic"
    NOTE = "note"


@dataclass(frozen=True)
class CompositeId:
    """
    Identity of a note placed under one topic in the whole-graph view.

    Encoded as ``quote(note_id) + ":" + quote(topic_id)``. Both components are
    percent-encoded with no safe characters, so the separator is unambiguous
    and distinct pairs always encode to distinct strings.
    """

    note_id: str
    topic_id: str

    def encode(self) -> str:
        return f"{_escape(self.note_id)}{COMPOSITE_SEPARATOR}{_escape(self.topic_id)}"

    @classmethod
    def decode(cls, value: str) -> "CompositeId":
        note_part, sep, topic_part = value.partition(COMPOSITE_SEPARATOR)
        if not sep or not note_part or not topic_part:
            raise ValueError(f"Not a composite node id: {value}")
        return cls(note_id=unquote(note_part), topic_id=unquote(topic_part))

    def __str__(self) -> str:
        return self.encode()


def edge_id(source: str, target: str) -> str:
    """Deterministic edge id built from the two endpoint node ids."""
    return f"{_escape(source)}{EDGE_SEPARATOR}{_escape(target)}"


class GraphNode(BaseModel):
    """A topic or note in a derived graph."""

    id: str = Field(..., description="Node id (topic id, note id or composite id)")
    name: str = Field(..., description="Topic name or note title")
    kind: NodeKind
    note_id: Optional[str] = Field(None, description="Underlying note id for note nodes")
    topic_id: Optional[str] = Field(
        None, description="Topic the node is placed under (whole-graph view)"
    )


class GraphEdge(BaseModel):
    """Directed edge: source is the prerequisite (or topic), target the dependent."""

    id: str
    source: str = Field(..., description="ID of the source node")
    target: str = Field(..., description="ID of the target node")


class GraphData(BaseModel):
    """Derived node/edge graph; ``topic`` is set for single-topic views."""

    nodes: List[GraphNode]
    edges: List[GraphEdge]
    topic: Optional[Topic] = None


class LayoutOptions(BaseModel):
    node_spacing: float = Field(default=100.0, gt=0)
    level_spacing: float = Field(default=220.0, gt=0)


class PositionedNode(GraphNode):
    x: float
    y: float


class PositionedLink(BaseModel):
    source: PositionedNode
    target: PositionedNode


class LayoutResult(BaseModel):
    """Coordinates for every node reachable from a root, plus drawable links."""

    nodes: List[PositionedNode]
    links: List[PositionedLink]


__all__ = [
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
