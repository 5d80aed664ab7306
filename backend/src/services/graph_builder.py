"""Derive renderable node/edge graphs from notes, topics and prerequisites."""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence

from ..models.graph import (
    CompositeId,
    GraphData,
    GraphEdge,
    GraphNode,
    LayoutOptions,
    LayoutResult,
    NodeKind,
    edge_id,
)
from ..models.note import Note, Prerequisite, ResolvedPrerequisite
from ..models.topic import Topic
from .config import AppConfig, get_config
from .errors import InvalidReferenceError, NotFoundError
from .layout import layout_graph
from .store import NoteStore

logger = logging.getLogger(__name__)


class _EdgeSet:
    """Ordered edge collection; a repeated source/target pair is kept once."""

    def __init__(self) -> None:
        self._edges: Dict[str, GraphEdge] = {}

    def add(self, source: str, target: str) -> None:
        key = edge_id(source, target)
        if key not in self._edges:
            self._edges[key] = GraphEdge(id=key, source=source, target=target)

    def targets(self) -> set[str]:
        return {edge.target for edge in self._edges.values()}

    def as_list(self) -> List[GraphEdge]:
        return list(self._edges.values())


def _resolved(prereq: Prerequisite, note: Note) -> ResolvedPrerequisite:
    if not isinstance(prereq, ResolvedPrerequisite):
        raise InvalidReferenceError(
            "Prerequisite was not resolved before graph derivation",
            detail={"note_id": note.id, "prerequisite_id": prereq.id},
        )
    return prereq


def _topic_node(topic: Topic) -> GraphNode:
    return GraphNode(id=topic.id, name=topic.name, kind=NodeKind.TOPIC)


def build_full_graph(notes: Sequence[Note], topics: Sequence[Topic]) -> GraphData:
    """
    Whole-graph view: every topic is a root and each note appears once per topic.

    A note in N topics yields N composite nodes. Within a topic, a note hangs
    off its prerequisites that belong to the same topic; when it has none
    there, it hangs directly off the topic node.
    """
    nodes: List[GraphNode] = [_topic_node(topic) for topic in topics]
    for note in notes:
        for topic_id in note.topics:
            nodes.append(
                GraphNode(
                    id=CompositeId(note.id, topic_id).encode(),
                    name=note.title,
                    kind=NodeKind.NOTE,
                    note_id=note.id,
                    topic_id=topic_id,
                )
            )

    edges = _EdgeSet()
    for note in notes:
        prerequisites = [_resolved(prereq, note) for prereq in note.prerequisites]
        for topic_id in note.topics:
            target = CompositeId(note.id, topic_id).encode()
            in_same_topic = [prereq for prereq in prerequisites if topic_id in prereq.topics]
            if in_same_topic:
                for prereq in in_same_topic:
                    edges.add(CompositeId(prereq.id, topic_id).encode(), target)
            else:
                edges.add(topic_id, target)

    return GraphData(nodes=nodes, edges=edges.as_list())


def build_topic_graph(
    topic_id: str, notes: Sequence[Note], topic: Optional[Topic]
) -> GraphData:
    """
    Single-topic view rooted at ``topic``.

    Member notes keep their plain ids. Prerequisites living outside the topic
    are pulled in as extra nodes; any of those left without an inbound edge
    is attached to the topic so everything stays reachable from the root.
    """
    if topic is None:
        raise NotFoundError("Topic not found", detail={"topic_id": topic_id})

    node_map: Dict[str, GraphNode] = {topic.id: _topic_node(topic)}
    for note in notes:
        node_map[note.id] = GraphNode(
            id=note.id, name=note.title, kind=NodeKind.NOTE, note_id=note.id
        )
    member_ids = {note.id for note in notes}

    edges = _EdgeSet()
    for note in notes:
        if not note.prerequisites:
            edges.add(topic.id, note.id)
            continue
        for prereq in note.prerequisites:
            resolved = _resolved(prereq, note)
            if resolved.id not in node_map:
                node_map[resolved.id] = GraphNode(
                    id=resolved.id, name=resolved.title, kind=NodeKind.NOTE, note_id=resolved.id
                )
            edges.add(resolved.id, note.id)

    reached = edges.targets()
    for node_id, node in node_map.items():
        if node.kind is NodeKind.NOTE and node_id not in member_ids and node_id not in reached:
            edges.add(topic.id, node_id)

    return GraphData(nodes=list(node_map.values()), edges=edges.as_list(), topic=topic)


class GraphService:
    """Load notes and topics from the store and derive graphs from them."""

    def __init__(self, store: NoteStore, config: AppConfig | None = None) -> None:
        self.store = store
        self.config = config or get_config()

    def graph_topics(self, user_id: str) -> List[Topic]:
        return self.store.list_topics(user_id)

    def full_graph(self, user_id: str) -> GraphData:
        start_time = time.time()
        topics = self.store.list_topics(user_id)
        notes = self.store.find_all_notes(user_id)
        graph = build_full_graph(notes, topics)
        logger.info(
            "Full graph built",
            extra={
                "user_id": user_id,
                "nodes_count": len(graph.nodes),
                "edges_count": len(graph.edges),
                "duration_ms": f"{(time.time() - start_time) * 1000:.2f}",
            },
        )
        return graph

    def topic_graph(self, user_id: str, topic_id: str) -> GraphData:
        start_time = time.time()
        topic = self.store.find_topic(user_id, topic_id)
        notes = self.store.find_notes_by_topic(user_id, topic_id) if topic else []
        graph = build_topic_graph(topic_id, notes, topic)
        logger.info(
            "Topic graph built",
            extra={
                "user_id": user_id,
                "topic_id": topic_id,
                "nodes_count": len(graph.nodes),
                "edges_count": len(graph.edges),
                "duration_ms": f"{(time.time() - start_time) * 1000:.2f}",
            },
        )
        return graph

    def default_layout_options(self) -> LayoutOptions:
        return LayoutOptions(
            node_spacing=self.config.layout_node_spacing,
            level_spacing=self.config.layout_level_spacing,
        )

    def layout(
        self,
        user_id: str,
        topic_id: Optional[str] = None,
        options: Optional[LayoutOptions] = None,
    ) -> LayoutResult:
        """Build the whole graph (or one topic's graph) and assign coordinates."""
        graph = self.topic_graph(user_id, topic_id) if topic_id else self.full_graph(user_id)
        return layout_graph(graph, options or self.default_layout_options())


__all__ = ["build_full_graph", "build_topic_graph", "GraphService"]
