"""HTTP API routes for note operations."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...models.link import Link, LinkEditRequest, LinkEditResult, NextAdd, PrerequisiteAdd
from ...models.note import CascadeReport, Note, NoteCreate, NoteSummary, NoteUpdate
from ...services.cascade import DeletionCascade
from ...services.link_rules import LinkEditor
from ...services.store import NoteStore, get_note_store
from ..middleware import get_user_id

router = APIRouter()

UserId = Annotated[str, Depends(get_user_id)]
Store = Annotated[NoteStore, Depends(get_note_store)]


def _summary(note: Note) -> NoteSummary:
    return NoteSummary(id=note.id, title=note.title, topics=note.topics, updated=note.updated)


@router.get("/api/notes", response_model=list[NoteSummary])
async def list_notes(user_id: UserId, store: Store):
    """List all notes, most recently updated first."""
    return [_summary(note) for note in store.list_notes(user_id)]


@router.post("/api/notes", response_model=Note, status_code=status.HTTP_201_CREATED)
async def create_note(create: NoteCreate, user_id: UserId, store: Store):
    """Create a new note."""
    return store.create_note(user_id, create)


@router.get("/api/notes/search", response_model=list[NoteSummary])
async def search_notes(
    user_id: UserId,
    store: Store,
    q: str = Query(..., description="Case-insensitive title substring"),
):
    """Search notes by title."""
    try:
        notes = store.search_notes(user_id, q)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return [_summary(note) for note in notes]


@router.get("/api/notes/{note_id}", response_model=Note)
async def get_note(note_id: str, user_id: UserId, store: Store):
    """Get a note with resolved prerequisites."""
    return store.get_note(user_id, note_id)


@router.put("/api/notes/{note_id}", response_model=Note)
async def update_note(note_id: str, update: NoteUpdate, user_id: UserId, store: Store):
    """Update a note; omitted fields are left unchanged."""
    return store.update_note(user_id, note_id, update)


@router.delete("/api/notes/{note_id}", response_model=CascadeReport)
async def delete_note(note_id: str, user_id: UserId, store: Store):
    """Delete a note and splice it out of every dependent's prerequisites."""
    return DeletionCascade(store).delete_note(user_id, note_id)


@router.get("/api/notes/{note_id}/links", response_model=list[Link])
async def get_note_links(note_id: str, user_id: UserId, store: Store):
    """Explicit links where the note is either endpoint."""
    return store.links_for_note(user_id, note_id)


@router.post("/api/notes/{note_id}/prerequisites", response_model=Note)
async def add_prerequisite(note_id: str, payload: PrerequisiteAdd, user_id: UserId, store: Store):
    return LinkEditor(store).add_prerequisite(user_id, note_id, payload.prerequisite_id)


@router.delete("/api/notes/{note_id}/prerequisites/{prereq_id}", response_model=Note)
async def remove_prerequisite(note_id: str, prereq_id: str, user_id: UserId, store: Store):
    return LinkEditor(store).remove_prerequisite(user_id, note_id, prereq_id)


@router.post("/api/notes/{note_id}/next", response_model=Note)
async def add_next(note_id: str, payload: NextAdd, user_id: UserId, store: Store):
    """Insert this note directly before ``next_id``; returns the updated next note."""
    return LinkEditor(store).add_next(user_id, note_id, payload.next_id)


@router.post("/api/notes/{note_id}/link-edit", response_model=LinkEditResult)
async def apply_link_edit(
    note_id: str, payload: LinkEditRequest, user_id: UserId, store: Store
):
    """Apply a prerequisite and/or next-note edit in one request."""
    return LinkEditor(store).apply_link_edit(
        user_id, note_id, prerequisite_id=payload.prerequisite_id, next_id=payload.next_id
    )


__all__ = ["router"]
