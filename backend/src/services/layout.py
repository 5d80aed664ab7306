"""Forest layout: tree coordinates for a derived graph, one tree per root."""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, List, Mapping, Optional, Set, Tuple

from ..models.graph import (
    GraphData,
    LayoutOptions,
    LayoutResult,
    PositionedLink,
    PositionedNode,
)

LAYOUT_MARGIN = 100.0
TREE_GAP = 80.0


def _adjacency(graph: GraphData) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
    children: Dict[str, List[str]] = {}
    parents: Dict[str, List[str]] = {}
    for edge in graph.edges:
        children.setdefault(edge.source, []).append(edge.target)
        parents.setdefault(edge.target, []).append(edge.source)
    return children, parents


def _tree_levels(root_id: str, children: Mapping[str, List[str]]) -> Dict[str, int]:
    """BFS depth of every node reachable from ``root_id``, in visiting order."""
    levels: Dict[str, int] = {}
    visited: Set[str] = set()
    queue: Deque[Tuple[str, int]] = deque([(root_id, 0)])

    while queue:
        node_id, level = queue.popleft()
        if node_id in visited:
            continue
        visited.add(node_id)
        levels[node_id] = level
        for child_id in children.get(node_id, []):
            if child_id not in visited:
                queue.append((child_id, level + 1))

    return levels


def layout_graph(graph: GraphData, options: Optional[LayoutOptions] = None) -> LayoutResult:
    """
    Assign x/y coordinates to every node reachable from a root.

    Roots are nodes without inbound edges, laid out top to bottom in node
    order. Each root gets its own tree: x grows with BFS depth, and each
    depth level is centred vertically within the tree's band. A node reached
    from several roots is placed only by the first tree that reaches it; its
    other inbound edges still appear in ``links`` but do not move it.

    Links whose endpoints were never placed are dropped. The function is
    pure: identical input yields identical coordinates.
    """
    options = options or LayoutOptions()
    if not graph.nodes:
        return LayoutResult(nodes=[], links=[])

    node_spacing = options.node_spacing
    level_spacing = options.level_spacing
    children, parents = _adjacency(graph)
    nodes_by_id = {node.id: node for node in graph.nodes}
    roots = [node for node in graph.nodes if not parents.get(node.id)]

    positioned: Dict[str, PositionedNode] = {}
    tree_top = LAYOUT_MARGIN

    for root in roots:
        level_groups: Dict[int, List[str]] = {}
        for node_id, level in _tree_levels(root.id, children).items():
            level_groups.setdefault(level, []).append(node_id)

        widest = max(len(node_ids) for node_ids in level_groups.values())
        tree_height = max(widest * node_spacing, node_spacing)

        placed = 0
        for level, node_ids in level_groups.items():
            start_y = tree_top + (tree_height - (len(node_ids) - 1) * node_spacing) / 2
            for index, node_id in enumerate(node_ids):
                # Already placed by an earlier tree; the slot stays empty here.
                if node_id in positioned:
                    continue
                node = nodes_by_id.get(node_id)
                if node is None:
                    continue
                positioned[node_id] = PositionedNode(
                    **node.model_dump(),
                    x=LAYOUT_MARGIN + level * level_spacing,
                    y=start_y + index * node_spacing,
                )
                placed += 1

        if placed:
            tree_top += tree_height + TREE_GAP

    links = [
        PositionedLink(source=positioned[edge.source], target=positioned[edge.target])
        for edge in graph.edges
        if edge.source in positioned and edge.target in positioned
    ]
    return LayoutResult(nodes=list(positioned.values()), links=links)


__all__ = ["layout_graph", "LAYOUT_MARGIN", "TREE_GAP"]
