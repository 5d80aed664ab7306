"""HTTP API routes for topics."""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from ...models.topic import Topic, TopicCreate
from ...services.store import NoteStore, get_note_store
from ..middleware import get_user_id

router = APIRouter()

UserId = Annotated[str, Depends(get_user_id)]
Store = Annotated[NoteStore, Depends(get_note_store)]


@router.get("/api/topics", response_model=list[Topic])
async def list_topics(user_id: UserId, store: Store):
    return store.list_topics(user_id)


@router.post("/api/topics", response_model=Topic, status_code=status.HTTP_201_CREATED)
async def create_topic(payload: TopicCreate, response: Response, user_id: UserId, store: Store):
    """Create a topic; an existing topic with the same name is returned with 200."""
    topic, created = store.create_topic(user_id, payload.name)
    if not created:
        response.status_code = status.HTTP_200_OK
    return topic


@router.get("/api/topics/search", response_model=list[Topic])
async def search_topics(
    user_id: UserId,
    store: Store,
    q: Optional[str] = Query(None, description="Case-insensitive name substring"),
):
    return store.search_topics(user_id, q)


@router.get("/api/topics/{topic_id}", response_model=Topic)
async def get_topic(topic_id: str, user_id: UserId, store: Store):
    return store.get_topic(user_id, topic_id)


@router.delete("/api/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_topic(topic_id: str, user_id: UserId, store: Store):
    """Delete a topic; its notes stay and simply lose the membership."""
    store.delete_topic(user_id, topic_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
