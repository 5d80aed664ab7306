from pathlib import Path

from backend.src.services.config import AppConfig
from backend.src.services.database import DatabaseService
from backend.src.services.graph_builder import GraphService
from backend.src.services.seed import DEMO_NOTES, init_and_seed
from backend.src.services.store import NoteStore


def make_config(tmp_path: Path, seed: bool) -> AppConfig:
    return AppConfig(database_path=tmp_path / "seed.db", seed_demo_data=seed)


def test_init_without_seeding_only_creates_schema(tmp_path: Path) -> None:
    config = make_config(tmp_path, seed=False)

    init_and_seed(user_id="demo", config=config)

    store = NoteStore(DatabaseService(config.database_path))
    assert store.list_topics("demo") == []


def test_seeding_is_idempotent(tmp_path: Path) -> None:
    config = make_config(tmp_path, seed=True)

    init_and_seed(user_id="demo", config=config)
    init_and_seed(user_id="demo", config=config)

    store = NoteStore(DatabaseService(config.database_path))
    assert len(store.list_notes("demo")) == len(DEMO_NOTES)
    assert [t.name for t in store.list_topics("demo")] == ["Algebra", "Calculus", "Foundations"]


def test_seeded_algebra_view_attaches_cross_topic_prerequisite(tmp_path: Path) -> None:
    config = make_config(tmp_path, seed=True)
    init_and_seed(user_id="demo", config=config)
    store = NoteStore(DatabaseService(config.database_path))
    algebra = next(t for t in store.list_topics("demo") if t.name == "Algebra")
    ids = {note.title: note.id for note in store.list_notes("demo")}

    graph = GraphService(store, config).topic_graph("demo", algebra.id)

    pairs = {(edge.source, edge.target) for edge in graph.edges}
    assert (ids["Arithmetic"], ids["Linear Equations"]) in pairs
    assert (algebra.id, ids["Arithmetic"]) in pairs
    assert (algebra.id, ids["Linear Equations"]) not in pairs
