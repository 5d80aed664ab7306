import sqlite3
from pathlib import Path
from unittest.mock import Mock

import pytest

from backend.src.models.note import NoteCreate, NoteUpdate, ResolvedPrerequisite
from backend.src.services.database import DatabaseService
from backend.src.services.errors import (
    ConflictError,
    InvalidReferenceError,
    NotFoundError,
    UpstreamFailureError,
)
from backend.src.services.store import NoteStore, normalize_prerequisites


@pytest.fixture
def store(tmp_path: Path) -> NoteStore:
    db_service = DatabaseService(tmp_path / "notes.db")
    db_service.initialize()
    return NoteStore(db_service)


def test_create_topic_returns_existing_topic_for_same_name(store: NoteStore) -> None:
    topic, created = store.create_topic("alice", "Algebra")
    again, created_again = store.create_topic("alice", "  Algebra ")

    assert created is True
    assert created_again is False
    assert again.id == topic.id
    assert [t.name for t in store.list_topics("alice")] == ["Algebra"]


def test_topic_names_are_unique_per_user_only(store: NoteStore) -> None:
    alice_topic, _ = store.create_topic("alice", "Algebra")
    bob_topic, created = store.create_topic("bob", "Algebra")

    assert created is True
    assert bob_topic.id != alice_topic.id


def test_search_topics_is_case_insensitive(store: NoteStore) -> None:
    store.create_topic("alice", "Algebra")
    store.create_topic("alice", "Linear Algebra")
    store.create_topic("alice", "Calculus")

    assert [t.name for t in store.search_topics("alice", "ALGEBRA")] == [
        "Algebra",
        "Linear Algebra",
    ]
    assert len(store.search_topics("alice", "")) == 3


def test_create_note_resolves_prerequisites_with_topics(store: NoteStore) -> None:
    base = store.create_note("alice", NoteCreate(title="Linear Eq", topic_names=["Algebra"]))
    note = store.create_note(
        "alice",
        NoteCreate(title="Quadratics", topic_names=["Algebra"], prerequisites=[base.id]),
    )

    assert len(note.prerequisites) == 1
    prereq = note.prerequisites[0]
    assert isinstance(prereq, ResolvedPrerequisite)
    assert (prereq.id, prereq.title) == (base.id, "Linear Eq")
    assert prereq.topics == base.topics
    assert note.topics == base.topics


def test_create_note_dedupes_prerequisites(store: NoteStore) -> None:
    base = store.create_note("alice", NoteCreate(title="Base"))
    note = store.create_note(
        "alice", NoteCreate(title="Next", prerequisites=[base.id, base.id])
    )

    assert note.prerequisite_ids == [base.id]


def test_create_note_rejects_unknown_prerequisite(store: NoteStore) -> None:
    with pytest.raises(InvalidReferenceError):
        store.create_note("alice", NoteCreate(title="Orphan", prerequisites=["0" * 32]))

    assert store.list_notes("alice") == []


def test_create_note_rejects_unknown_topic_id(store: NoteStore) -> None:
    with pytest.raises(InvalidReferenceError):
        store.create_note("alice", NoteCreate(title="Lost", topics=["f" * 32]))


def test_self_prerequisite_is_rejected_before_persistence(store: NoteStore) -> None:
    note = store.create_note("alice", NoteCreate(title="Loop"))

    with pytest.raises(InvalidReferenceError):
        store.update_note_prerequisites("alice", note.id, [note.id])
    with pytest.raises(InvalidReferenceError):
        store.update_note("alice", note.id, NoteUpdate(prerequisites=[note.id]))

    assert store.get_note("alice", note.id).prerequisites == []


def test_normalize_prerequisites_rejects_malformed_ids() -> None:
    with pytest.raises(InvalidReferenceError):
        normalize_prerequisites(None, ["not-an-id"])


def test_notes_are_partitioned_by_user(store: NoteStore) -> None:
    note = store.create_note("alice", NoteCreate(title="Private"))

    with pytest.raises(NotFoundError):
        store.get_note("bob", note.id)
    assert store.list_notes("bob") == []


def test_update_note_changes_only_given_fields(store: NoteStore) -> None:
    note = store.create_note("alice", NoteCreate(title="Draft", topic_names=["A"]))

    updated = store.update_note("alice", note.id, NoteUpdate(title="Final"))

    assert updated.title == "Final"
    assert updated.topics == note.topics
    assert updated.blocks == note.blocks


def test_update_missing_note_raises_not_found(store: NoteStore) -> None:
    with pytest.raises(NotFoundError):
        store.update_note("alice", "a" * 32, NoteUpdate(title="Ghost"))


def test_search_notes_matches_title_substring(store: NoteStore) -> None:
    store.create_note("alice", NoteCreate(title="Linear Equations"))
    store.create_note("alice", NoteCreate(title="Quadratic Equations"))
    store.create_note("alice", NoteCreate(title="Limits"))

    titles = {note.title for note in store.search_notes("alice", "equation")}

    assert titles == {"Linear Equations", "Quadratic Equations"}
    with pytest.raises(ValueError):
        store.search_notes("alice", "   ")


def test_dangling_prerequisite_ids_are_not_returned(store: NoteStore) -> None:
    base = store.create_note("alice", NoteCreate(title="Base"))
    dependent = store.create_note("alice", NoteCreate(title="Dep", prerequisites=[base.id]))

    store.delete_note("alice", base.id)

    assert store.get_note("alice", dependent.id).prerequisites == []


def test_find_notes_by_topic_and_dependents(store: NoteStore) -> None:
    base = store.create_note("alice", NoteCreate(title="Base", topic_names=["A"]))
    store.create_note("alice", NoteCreate(title="Other", topic_names=["B"]))
    dep = store.create_note(
        "alice", NoteCreate(title="Dep", topic_names=["B"], prerequisites=[base.id])
    )

    topic_a = base.topics[0]
    assert [n.id for n in store.find_notes_by_topic("alice", topic_a)] == [base.id]
    assert [n.id for n in store.find_notes_with_prerequisite("alice", base.id)] == [dep.id]
    assert len(store.find_all_notes("alice")) == 3


def test_delete_topic_removes_memberships(store: NoteStore) -> None:
    note = store.create_note("alice", NoteCreate(title="N", topic_names=["A", "B"]))
    topic_a = note.topics[0]

    store.delete_topic("alice", topic_a)

    assert store.get_note("alice", note.id).topics == note.topics[1:]
    with pytest.raises(NotFoundError):
        store.delete_topic("alice", topic_a)


def test_links_lifecycle(store: NoteStore) -> None:
    a = store.create_note("alice", NoteCreate(title="A"))
    b = store.create_note("alice", NoteCreate(title="B"))

    link = store.create_link("alice", a.id, b.id)

    assert (link.source, link.target) == (a.id, b.id)
    assert [l.id for l in store.links_for_note("alice", b.id)] == [link.id]
    with pytest.raises(ConflictError):
        store.create_link("alice", a.id, b.id)
    with pytest.raises(InvalidReferenceError):
        store.create_link("alice", a.id, a.id)
    with pytest.raises(NotFoundError):
        store.create_link("alice", a.id, "c" * 32)

    store.delete_link("alice", link.id)
    assert store.list_links("alice") == []
    with pytest.raises(NotFoundError):
        store.delete_link("alice", link.id)


def test_delete_links_for_note_counts_both_directions(store: NoteStore) -> None:
    a = store.create_note("alice", NoteCreate(title="A"))
    b = store.create_note("alice", NoteCreate(title="B"))
    c = store.create_note("alice", NoteCreate(title="C"))
    store.create_link("alice", a.id, b.id)
    store.create_link("alice", c.id, a.id)
    store.create_link("alice", b.id, c.id)

    assert store.delete_links_for_note("alice", a.id) == 2
    assert len(store.list_links("alice")) == 1


def test_unreachable_database_raises_upstream_failure(tmp_path: Path) -> None:
    db_service = Mock()
    db_service.db_path = tmp_path / "down.db"
    db_service.connect.side_effect = sqlite3.OperationalError("unable to open database file")

    with pytest.raises(UpstreamFailureError):
        NoteStore(db_service).list_topics("alice")


def test_query_failure_raises_upstream_failure(tmp_path: Path) -> None:
    # Schema never initialized, so every query fails.
    store = NoteStore(DatabaseService(tmp_path / "empty.db"))

    with pytest.raises(UpstreamFailureError):
        store.find_all_notes("alice")
