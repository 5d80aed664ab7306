from pathlib import Path
from unittest.mock import patch

import pytest

from backend.src.models.note import NoteCreate
from backend.src.services.cascade import DeletionCascade, splice_prerequisites
from backend.src.services.database import DatabaseService
from backend.src.services.errors import NotFoundError, UpstreamFailureError
from backend.src.services.store import NoteStore


@pytest.fixture
def store(tmp_path: Path) -> NoteStore:
    db_service = DatabaseService(tmp_path / "cascade.db")
    db_service.initialize()
    return NoteStore(db_service)


def add(store: NoteStore, title: str, prereqs=()):
    return store.create_note("alice", NoteCreate(title=title, prerequisites=list(prereqs)))


def test_splice_replaces_deleted_id_with_its_prerequisites() -> None:
    assert splice_prerequisites("d", ["a", "x"], "x", ["b"]) == ["a", "b"]


def test_splice_dedupes_inherited_prerequisites() -> None:
    assert splice_prerequisites("d", ["b", "x", "c"], "x", ["c", "b", "e"]) == ["b", "c", "e"]


def test_splice_never_makes_dependent_its_own_prerequisite() -> None:
    assert splice_prerequisites("d", ["x"], "x", ["d", "a"]) == ["a"]


def test_delete_splices_dependent_onto_deleted_prerequisites(store: NoteStore) -> None:
    a = add(store, "A")
    b = add(store, "B")
    x = add(store, "X", [b.id])
    d = add(store, "D", [a.id, x.id])

    report = DeletionCascade(store).delete_note("alice", x.id)

    assert report.updated == [d.id]
    assert report.failed == []
    assert set(store.get_note("alice", d.id).prerequisite_ids) == {a.id, b.id}
    with pytest.raises(NotFoundError):
        store.get_note("alice", x.id)
    for note in store.find_all_notes("alice"):
        assert x.id not in note.prerequisite_ids
    assert store.find_notes_with_prerequisite("alice", x.id) == []


def test_delete_root_note_leaves_dependent_without_prerequisites(store: NoteStore) -> None:
    first = add(store, "Linear Eq")
    second = add(store, "Quadratics", [first.id])

    DeletionCascade(store).delete_note("alice", first.id)

    assert store.get_note("alice", second.id).prerequisites == []


def test_delete_is_a_single_hop_splice(store: NoteStore) -> None:
    a = add(store, "A")
    b = add(store, "B", [a.id])
    c = add(store, "C", [b.id])
    d = add(store, "D", [c.id])

    DeletionCascade(store).delete_note("alice", b.id)

    assert store.get_note("alice", c.id).prerequisite_ids == [a.id]
    assert store.get_note("alice", d.id).prerequisite_ids == [c.id]


def test_delete_removes_links_on_either_end(store: NoteStore) -> None:
    a = add(store, "A")
    b = add(store, "B")
    c = add(store, "C")
    store.create_link("alice", a.id, b.id)
    store.create_link("alice", c.id, a.id)
    store.create_link("alice", b.id, c.id)

    report = DeletionCascade(store).delete_note("alice", a.id)

    assert report.links_removed == 2
    assert [(l.source, l.target) for l in store.list_links("alice")] == [(b.id, c.id)]


def test_delete_missing_note_raises_not_found(store: NoteStore) -> None:
    with pytest.raises(NotFoundError):
        DeletionCascade(store).delete_note("alice", "9" * 32)


def test_failed_dependent_update_is_reported_and_others_kept(store: NoteStore) -> None:
    base = add(store, "Base")
    x = add(store, "X", [base.id])
    broken = add(store, "Broken", [x.id])
    healthy = add(store, "Healthy", [x.id])

    real_update = store.update_note_prerequisites

    def flaky_update(user_id, note_id, prerequisites):
        if note_id == broken.id:
            raise UpstreamFailureError("Database query failed")
        return real_update(user_id, note_id, prerequisites)

    with patch.object(store, "update_note_prerequisites", side_effect=flaky_update):
        report = DeletionCascade(store).delete_note("alice", x.id)

    assert report.failed == [broken.id]
    assert report.updated == [healthy.id]
    assert store.get_note("alice", healthy.id).prerequisite_ids == [base.id]
    # The failed dependent keeps a dangling id, which reads as no prerequisite.
    assert store.get_note("alice", broken.id).prerequisites == []
    with pytest.raises(NotFoundError):
        store.get_note("alice", x.id)
