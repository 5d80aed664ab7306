from typing import Iterable, Tuple

from backend.src.models.graph import (
    GraphData,
    GraphEdge,
    GraphNode,
    LayoutOptions,
    NodeKind,
    edge_id,
)
from backend.src.services.layout import LAYOUT_MARGIN, TREE_GAP, layout_graph


def make_graph(node_ids: Iterable[str], edges: Iterable[Tuple[str, str]]) -> GraphData:
    return GraphData(
        nodes=[
            GraphNode(id=node_id, name=node_id.upper(), kind=NodeKind.NOTE, note_id=node_id)
            for node_id in node_ids
        ],
        edges=[GraphEdge(id=edge_id(src, tgt), source=src, target=tgt) for src, tgt in edges],
    )


def coords(result):
    return {node.id: (node.x, node.y) for node in result.nodes}


def test_layout_empty_graph() -> None:
    result = layout_graph(GraphData(nodes=[], edges=[]))

    assert result.nodes == []
    assert result.links == []


def test_layout_chain_places_levels_left_to_right() -> None:
    graph = make_graph(["t", "a", "b"], [("t", "a"), ("a", "b")])

    result = layout_graph(graph)

    # One node per level: tree height 100, every level centred at 100 + 50.
    assert coords(result) == {
        "t": (100.0, 150.0),
        "a": (320.0, 150.0),
        "b": (540.0, 150.0),
    }
    assert [(link.source.id, link.target.id) for link in result.links] == [
        ("t", "a"),
        ("a", "b"),
    ]


def test_layout_centres_each_level_within_the_tree() -> None:
    graph = make_graph(["r", "c1", "c2"], [("r", "c1"), ("r", "c2")])

    result = layout_graph(graph)

    assert coords(result) == {
        "r": (100.0, 200.0),
        "c1": (320.0, 150.0),
        "c2": (320.0, 250.0),
    }


def test_layout_stacks_trees_with_gap() -> None:
    graph = make_graph(["a", "a1", "a2", "b"], [("a", "a1"), ("a", "a2")])

    result = layout_graph(graph)

    first_tree_height = 200.0
    second_top = LAYOUT_MARGIN + first_tree_height + TREE_GAP
    assert coords(result)["b"] == (LAYOUT_MARGIN, second_top + 50.0)


def test_layout_first_tree_wins_for_shared_nodes() -> None:
    graph = make_graph(["a", "b", "c"], [("a", "c"), ("b", "c")])

    result = layout_graph(graph)

    positions = coords(result)
    assert positions["c"] == (320.0, 150.0)
    assert positions["b"] == (100.0, 100.0 + 100.0 + 80.0 + 50.0)
    # Both inbound edges still render.
    assert {(link.source.id, link.target.id) for link in result.links} == {("a", "c"), ("b", "c")}


def test_layout_skips_cycles_unreachable_from_any_root() -> None:
    # "c" hangs off root "a" and also off cycle member "x"; the cycle itself has no root.
    graph = make_graph(["a", "c", "x", "y", "z"], [("a", "c"), ("x", "y"), ("y", "x"), ("x", "c")])

    result = layout_graph(graph)

    positions = coords(result)
    assert set(positions) == {"a", "c", "z"}
    assert positions["z"] == (100.0, 100.0 + 100.0 + 80.0 + 50.0)


def test_layout_drops_links_to_unplaced_nodes() -> None:
    graph = make_graph(["r", "x", "y"], [("x", "y"), ("y", "x")])

    result = layout_graph(graph)

    assert [node.id for node in result.nodes] == ["r"]
    assert result.links == []


def test_layout_uses_custom_spacing() -> None:
    graph = make_graph(["r", "c1", "c2"], [("r", "c1"), ("r", "c2")])

    result = layout_graph(graph, LayoutOptions(node_spacing=40, level_spacing=150))

    assert coords(result) == {
        "r": (100.0, 140.0),
        "c1": (250.0, 120.0),
        "c2": (250.0, 160.0),
    }


def test_layout_is_deterministic() -> None:
    graph = make_graph(
        ["t", "a", "b", "c", "d", "u"],
        [("t", "a"), ("t", "b"), ("a", "c"), ("b", "c"), ("c", "d"), ("u", "d")],
    )
    options = LayoutOptions(node_spacing=80, level_spacing=200)

    first = layout_graph(graph, options)
    second = layout_graph(graph, options)

    assert first.model_dump() == second.model_dump()


def test_layout_keeps_node_fields() -> None:
    graph = make_graph(["r"], [])

    node = layout_graph(graph).nodes[0]

    assert (node.id, node.name, node.kind, node.note_id) == ("r", "R", NodeKind.NOTE, "r")
