"""Consistency rules for adding and removing single prerequisite / next edges."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..models.link import LinkEditResult
from ..models.note import Note
from .errors import ConflictError, InvalidReferenceError, NotFoundError
from .store import NoteStore

logger = logging.getLogger(__name__)


def with_prerequisite(note_id: str, prereq_ids: Sequence[str], prereq_id: str) -> List[str]:
    """Append ``prereq_id`` to a note's prerequisites."""
    if prereq_id == note_id:
        raise InvalidReferenceError(
            "A note cannot be a prerequisite of itself", detail={"note_id": note_id}
        )
    if prereq_id in prereq_ids:
        raise ConflictError(
            "This note is already a prerequisite",
            detail={"note_id": note_id, "prerequisite_id": prereq_id},
        )
    return [*prereq_ids, prereq_id]


def splice_next(
    note_id: str,
    note_prereq_ids: Sequence[str],
    next_id: str,
    next_prereq_ids: Sequence[str],
) -> List[str]:
    """
    Prerequisites of ``next_id`` after inserting ``note_id`` right before it.

    Any of next's prerequisites that the note already depends on are dropped,
    keeping the chain linear instead of forming a diamond. Only next's own
    list changes.
    """
    if next_id == note_id:
        raise InvalidReferenceError(
            "A note cannot be a next note of itself", detail={"note_id": note_id}
        )
    if note_id in next_prereq_ids:
        raise ConflictError(
            "This note already has the current note as a prerequisite",
            detail={"note_id": note_id, "next_id": next_id},
        )
    redundant = set(note_prereq_ids)
    return [prereq_id for prereq_id in next_prereq_ids if prereq_id not in redundant] + [note_id]


class LinkEditor:
    """Apply interactive link edits to stored notes."""

    def __init__(self, store: NoteStore) -> None:
        self.store = store

    def add_prerequisite(self, user_id: str, note_id: str, prereq_id: str) -> Note:
        note = self.store.get_note(user_id, note_id)
        updated = with_prerequisite(note.id, note.prerequisite_ids, prereq_id)
        self.store.get_note(user_id, prereq_id)
        logger.info(
            "Prerequisite added",
            extra={"user_id": user_id, "note_id": note_id, "prerequisite_id": prereq_id},
        )
        return self.store.update_note_prerequisites(user_id, note_id, updated)

    def remove_prerequisite(self, user_id: str, note_id: str, prereq_id: str) -> Note:
        note = self.store.get_note(user_id, note_id)
        if prereq_id not in note.prerequisite_ids:
            raise NotFoundError(
                "Prerequisite not found on note",
                detail={"note_id": note_id, "prerequisite_id": prereq_id},
            )
        remaining = [existing for existing in note.prerequisite_ids if existing != prereq_id]
        logger.info(
            "Prerequisite removed",
            extra={"user_id": user_id, "note_id": note_id, "prerequisite_id": prereq_id},
        )
        return self.store.update_note_prerequisites(user_id, note_id, remaining)

    def add_next(self, user_id: str, note_id: str, next_id: str) -> Note:
        """Make ``note_id`` an immediate prerequisite of ``next_id``; returns the next note."""
        if next_id == note_id:
            raise InvalidReferenceError(
                "A note cannot be a next note of itself", detail={"note_id": note_id}
            )
        note = self.store.get_note(user_id, note_id)
        next_note = self.store.get_note(user_id, next_id)
        updated = splice_next(
            note.id, note.prerequisite_ids, next_note.id, next_note.prerequisite_ids
        )
        logger.info(
            "Next note linked",
            extra={"user_id": user_id, "note_id": note_id, "next_id": next_id},
        )
        return self.store.update_note_prerequisites(user_id, next_id, updated)

    def apply_link_edit(
        self,
        user_id: str,
        note_id: str,
        prerequisite_id: Optional[str] = None,
        next_id: Optional[str] = None,
    ) -> LinkEditResult:
        """Add a prerequisite, then a next note, in that order."""
        if not prerequisite_id and not next_id:
            raise InvalidReferenceError("Select a prerequisite or a next note")

        note = self.store.get_note(user_id, note_id)
        if prerequisite_id:
            note = self.add_prerequisite(user_id, note_id, prerequisite_id)

        next_note = None
        if next_id:
            # Reads the note again, so a prerequisite added above counts as redundant.
            next_note = self.add_next(user_id, note_id, next_id)

        return LinkEditResult(note=note, next_note=next_note)


__all__ = ["LinkEditor", "with_prerequisite", "splice_next"]
