"""Note deletion that splices the note out of its dependents' prerequisite lists."""

from __future__ import annotations

import logging
from typing import List, Sequence

from ..models.note import CascadeReport
from .errors import GraphError
from .store import NoteStore

logger = logging.getLogger(__name__)


def splice_prerequisites(
    dependent_id: str,
    current: Sequence[str],
    deleted_id: str,
    inherited: Sequence[str],
) -> List[str]:
    """
    Replace ``deleted_id`` in a dependent's prerequisites with the deleted note's own.

    Surviving prerequisites keep their order; inherited ones are appended in
    their order, skipping duplicates and the dependent itself.
    """
    updated = [prereq_id for prereq_id in current if prereq_id != deleted_id]
    for prereq_id in inherited:
        if prereq_id != dependent_id and prereq_id not in updated:
            updated.append(prereq_id)
    return updated


class DeletionCascade:
    """Delete notes without breaking prerequisite chains that run through them."""

    def __init__(self, store: NoteStore) -> None:
        self.store = store

    def delete_note(self, user_id: str, note_id: str) -> CascadeReport:
        """
        Delete a note, rewiring each dependent to the note's prerequisites.

        The rewiring is one hop and best effort: a dependent whose update fails
        is logged and listed in ``failed``, updates already applied to other
        dependents stay in place, and the deletion proceeds.

        Raises NotFoundError if the note does not exist.
        """
        note = self.store.get_note(user_id, note_id)
        inherited = note.prerequisite_ids
        report = CascadeReport(note_id=note_id)

        for dependent in self.store.find_notes_with_prerequisite(user_id, note_id):
            spliced = splice_prerequisites(
                dependent.id, dependent.prerequisite_ids, note_id, inherited
            )
            try:
                self.store.update_note_prerequisites(user_id, dependent.id, spliced)
            except GraphError:
                logger.exception(
                    "Failed to rewire dependent note",
                    extra={"user_id": user_id, "note_id": note_id, "dependent_id": dependent.id},
                )
                report.failed.append(dependent.id)
                continue
            report.updated.append(dependent.id)

        self.store.delete_note(user_id, note_id)
        report.links_removed = self.store.delete_links_for_note(user_id, note_id)

        logger.info(
            "Note deleted",
            extra={
                "user_id": user_id,
                "note_id": note_id,
                "dependents_updated": len(report.updated),
                "dependents_failed": len(report.failed),
                "links_removed": report.links_removed,
            },
        )
        return report


__all__ = ["DeletionCascade", "splice_prerequisites"]
