"""HTTP API routes for explicit note-to-note links."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from ...models.link import Link, LinkCreate
from ...services.store import NoteStore, get_note_store
from ..middleware import get_user_id

router = APIRouter()

UserId = Annotated[str, Depends(get_user_id)]
Store = Annotated[NoteStore, Depends(get_note_store)]


@router.get("/api/links", response_model=list[Link])
async def list_links(user_id: UserId, store: Store):
    return store.list_links(user_id)


@router.post("/api/links", response_model=Link, status_code=status.HTTP_201_CREATED)
async def create_link(payload: LinkCreate, user_id: UserId, store: Store):
    """Create a directed link; both notes must exist and the pair must be new."""
    return store.create_link(user_id, payload.source, payload.target)


@router.delete("/api/links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(link_id: str, user_id: UserId, store: Store):
    store.delete_link(user_id, link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
