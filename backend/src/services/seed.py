"""Seed a demo topic graph for first-run exploration."""

from __future__ import annotations

import logging
from typing import Dict

from ..models.note import ContentBlock, NoteCreate
from .config import AppConfig, get_config
from .database import DatabaseService
from .store import NoteStore

logger = logging.getLogger(__name__)

# Titles reference earlier entries by title; order matters.
DEMO_NOTES = [
    {
        "title": "Arithmetic",
        "topics": ["Foundations"],
        "prerequisites": [],
        "body": "Addition, subtraction, multiplication and division of numbers.",
    },
    {
        "title": "Linear Equations",
        "topics": ["Algebra"],
        "prerequisites": ["Arithmetic"],
        "body": "Equations of the form ax + b = 0 and how to isolate x.",
    },
    {
        "title": "Quadratics",
        "topics": ["Algebra"],
        "prerequisites": ["Linear Equations"],
        "body": "Equations of the form ax^2 + bx + c = 0; factoring and the quadratic formula.",
    },
    {
        "title": "Functions",
        "topics": ["Algebra", "Calculus"],
        "prerequisites": ["Linear Equations"],
        "body": "Mappings from inputs to outputs; domain, range and composition.",
    },
    {
        "title": "Limits",
        "topics": ["Calculus"],
        "prerequisites": ["Functions"],
        "body": "The value a function approaches as its input approaches a point.",
    },
]


def seed_demo_graph(store: NoteStore, user_id: str) -> int:
    """Create the demo notes for ``user_id`` unless the user already has topics."""
    if store.list_topics(user_id):
        logger.info("Demo graph skipped, user already has topics", extra={"user_id": user_id})
        return 0

    logger.info("Seeding demo graph", extra={"user_id": user_id})
    ids_by_title: Dict[str, str] = {}
    for note_data in DEMO_NOTES:
        note = store.create_note(
            user_id,
            NoteCreate(
                title=note_data["title"],
                blocks=[ContentBlock(type="text", value=note_data["body"])],
                topic_names=note_data["topics"],
                prerequisites=[ids_by_title[title] for title in note_data["prerequisites"]],
            ),
        )
        ids_by_title[note.title] = note.id

    logger.info(
        "Demo graph seeded", extra={"user_id": user_id, "notes_created": len(ids_by_title)}
    )
    return len(ids_by_title)


def init_and_seed(user_id: str | None = None, config: AppConfig | None = None) -> None:
    """
    Initialize the database schema and, when enabled, seed the demo graph.

    Called on application startup.
    """
    config = config or get_config()
    db_service = DatabaseService(config.database_path)
    db_path = db_service.initialize()
    logger.info("Database initialized", extra={"db_path": str(db_path)})

    if not config.seed_demo_data:
        return
    seed_demo_graph(NoteStore(db_service), user_id or config.default_user_id)


__all__ = ["DEMO_NOTES", "seed_demo_graph", "init_and_seed"]
