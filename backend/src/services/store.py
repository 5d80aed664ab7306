"""SQLite-backed store for topics, notes, prerequisites and explicit links."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
import json
import logging
import re
import sqlite3
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple
import uuid

from ..models.link import Link
from ..models.note import ContentBlock, Note, NoteCreate, NoteUpdate, ResolvedPrerequisite
from ..models.topic import Topic
from .config import get_config
from .database import DatabaseService
from .errors import ConflictError, InvalidReferenceError, NotFoundError, UpstreamFailureError

logger = logging.getLogger(__name__)

ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def new_id() -> str:
    return uuid.uuid4().hex


def _dedupe(values: Iterable[str]) -> List[str]:
    # Preserve order but drop duplicates
    seen: Dict[str, None] = {}
    for value in values:
        if value not in seen:
            seen[value] = None
    return list(seen.keys())


def normalize_prerequisites(note_id: Optional[str], prereq_ids: Sequence[str]) -> List[str]:
    """
    Validate a prerequisite id list before it is persisted.

    Raises InvalidReferenceError for malformed ids or a self-reference.
    Duplicates are dropped, keeping the first occurrence.
    """
    cleaned: List[str] = []
    for prereq_id in prereq_ids:
        if not isinstance(prereq_id, str) or not ID_PATTERN.match(prereq_id):
            raise InvalidReferenceError(
                f"Malformed prerequisite id: {prereq_id!r}", detail={"prerequisite_id": prereq_id}
            )
        if note_id is not None and prereq_id == note_id:
            raise InvalidReferenceError(
                "A note cannot be a prerequisite of itself", detail={"note_id": note_id}
            )
        cleaned.append(prereq_id)
    return _dedupe(cleaned)


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class NoteStore:
    """Persistence for one database file; every call is partitioned by user_id."""

    def __init__(self, db_service: DatabaseService | None = None) -> None:
        self.db_service = db_service or DatabaseService()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self.db_service.connect()
        except sqlite3.Error as exc:
            logger.exception("Could not open database", extra={"db_path": str(self.db_service.db_path)})
            raise UpstreamFailureError("Database unavailable") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            logger.exception("Database query failed: %s", exc)
            raise UpstreamFailureError("Database query failed") from exc
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Topics
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_topic(row: sqlite3.Row) -> Topic:
        return Topic(
            id=row["topic_id"],
            user_id=row["user_id"],
            name=row["name"],
            created=datetime.fromisoformat(row["created"]),
        )

    def list_topics(self, user_id: str) -> List[Topic]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM topics WHERE user_id = ? ORDER BY name ASC",
                (user_id,),
            ).fetchall()
        return [self._row_to_topic(row) for row in rows]

    def find_topic(self, user_id: str, topic_id: str) -> Optional[Topic]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM topics WHERE user_id = ? AND topic_id = ?",
                (user_id, topic_id),
            ).fetchone()
        return self._row_to_topic(row) if row else None

    def get_topic(self, user_id: str, topic_id: str) -> Topic:
        topic = self.find_topic(user_id, topic_id)
        if topic is None:
            raise NotFoundError("Topic not found", detail={"topic_id": topic_id})
        return topic

    def _get_or_create_topic(
        self, conn: sqlite3.Connection, user_id: str, name: str
    ) -> Tuple[str, bool]:
        row = conn.execute(
            "SELECT topic_id FROM topics WHERE user_id = ? AND name = ?",
            (user_id, name),
        ).fetchone()
        if row is not None:
            return row["topic_id"], False
        topic_id = new_id()
        conn.execute(
            "INSERT INTO topics (user_id, topic_id, name, created) VALUES (?, ?, ?, ?)",
            (user_id, topic_id, name, _utcnow_iso()),
        )
        return topic_id, True

    def create_topic(self, user_id: str, name: str) -> Tuple[Topic, bool]:
        """Create a topic, or return the existing one with the same name.

        Returns (topic, created).
        """
        name = name.strip()
        if not name:
            raise InvalidReferenceError("Topic name cannot be empty")
        with self._connection() as conn:
            with conn:
                topic_id, created = self._get_or_create_topic(conn, user_id, name)
        if created:
            logger.info("Topic created", extra={"user_id": user_id, "topic_id": topic_id})
        return self.get_topic(user_id, topic_id), created

    def find_or_create_topics(self, user_id: str, names: Sequence[str]) -> List[str]:
        """Resolve topic names to ids, creating the missing ones."""
        with self._connection() as conn:
            with conn:
                return self._resolve_topic_names(conn, user_id, names)

    def _resolve_topic_names(
        self, conn: sqlite3.Connection, user_id: str, names: Sequence[str]
    ) -> List[str]:
        topic_ids: List[str] = []
        for name in names:
            cleaned = (name or "").strip()
            if not cleaned:
                continue
            topic_id, _ = self._get_or_create_topic(conn, user_id, cleaned)
            topic_ids.append(topic_id)
        return topic_ids

    def search_topics(self, user_id: str, query: Optional[str]) -> List[Topic]:
        if not query or not query.strip():
            return self.list_topics(user_id)
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM topics
                WHERE user_id = ? AND instr(lower(name), lower(?)) > 0
                ORDER BY name ASC
                """,
                (user_id, query.strip()),
            ).fetchall()
        return [self._row_to_topic(row) for row in rows]

    def delete_topic(self, user_id: str, topic_id: str) -> None:
        """Delete a topic and unlink it from every note."""
        with self._connection() as conn:
            with conn:
                deleted = conn.execute(
                    "DELETE FROM topics WHERE user_id = ? AND topic_id = ?",
                    (user_id, topic_id),
                ).rowcount
                if not deleted:
                    raise NotFoundError("Topic not found", detail={"topic_id": topic_id})
                conn.execute(
                    "DELETE FROM note_topics WHERE user_id = ? AND topic_id = ?",
                    (user_id, topic_id),
                )
        logger.info("Topic deleted", extra={"user_id": user_id, "topic_id": topic_id})

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def _memberships(self, conn: sqlite3.Connection, user_id: str) -> Dict[str, List[str]]:
        rows = conn.execute(
            """
            SELECT note_id, topic_id FROM note_topics
            WHERE user_id = ?
            ORDER BY note_id, position
            """,
            (user_id,),
        ).fetchall()
        memberships: Dict[str, List[str]] = {}
        for row in rows:
            memberships.setdefault(row["note_id"], []).append(row["topic_id"])
        return memberships

    def _load_notes(
        self, conn: sqlite3.Connection, user_id: str, rows: Sequence[sqlite3.Row]
    ) -> List[Note]:
        """Hydrate note rows with topics and resolved prerequisites."""
        if not rows:
            return []
        note_ids = {row["note_id"] for row in rows}
        memberships = self._memberships(conn, user_id)

        # Dangling prerequisite ids drop out of the join.
        prereq_rows = conn.execute(
            """
            SELECT p.note_id, p.prereq_id, n.title
            FROM note_prerequisites p
            JOIN notes n ON n.user_id = p.user_id AND n.note_id = p.prereq_id
            WHERE p.user_id = ?
            ORDER BY p.note_id, p.position
            """,
            (user_id,),
        ).fetchall()
        prerequisites: Dict[str, List[ResolvedPrerequisite]] = {}
        for row in prereq_rows:
            if row["note_id"] not in note_ids:
                continue
            prerequisites.setdefault(row["note_id"], []).append(
                ResolvedPrerequisite(
                    id=row["prereq_id"],
                    title=row["title"],
                    topics=list(memberships.get(row["prereq_id"], [])),
                )
            )

        return [
            Note(
                id=row["note_id"],
                user_id=row["user_id"],
                title=row["title"],
                blocks=[ContentBlock(**block) for block in json.loads(row["blocks"] or "[]")],
                topics=list(memberships.get(row["note_id"], [])),
                prerequisites=prerequisites.get(row["note_id"], []),
                created=datetime.fromisoformat(row["created"]),
                updated=datetime.fromisoformat(row["updated"]),
            )
            for row in rows
        ]

    def _validate_topic_ids(
        self, conn: sqlite3.Connection, user_id: str, topic_ids: Sequence[str]
    ) -> List[str]:
        unique = _dedupe(topic_ids)
        if not unique:
            return []
        row = conn.execute(
            f"""
            SELECT COUNT(*) AS count FROM topics
            WHERE user_id = ? AND topic_id IN ({_placeholders(len(unique))})
            """,
            (user_id, *unique),
        ).fetchone()
        if int(row["count"]) != len(unique):
            raise InvalidReferenceError("Some topics do not exist", detail={"topics": unique})
        return unique

    def _validate_prerequisites(
        self,
        conn: sqlite3.Connection,
        user_id: str,
        note_id: Optional[str],
        prereq_ids: Sequence[str],
    ) -> List[str]:
        unique = normalize_prerequisites(note_id, prereq_ids)
        if not unique:
            return []
        row = conn.execute(
            f"""
            SELECT COUNT(*) AS count FROM notes
            WHERE user_id = ? AND note_id IN ({_placeholders(len(unique))})
            """,
            (user_id, *unique),
        ).fetchone()
        if int(row["count"]) != len(unique):
            raise InvalidReferenceError(
                "Some prerequisites do not exist", detail={"prerequisites": unique}
            )
        return unique

    def _write_topics(
        self, conn: sqlite3.Connection, user_id: str, note_id: str, topic_ids: Sequence[str]
    ) -> None:
        conn.execute(
            "DELETE FROM note_topics WHERE user_id = ? AND note_id = ?",
            (user_id, note_id),
        )
        conn.executemany(
            "INSERT INTO note_topics (user_id, note_id, topic_id, position) VALUES (?, ?, ?, ?)",
            [(user_id, note_id, topic_id, index) for index, topic_id in enumerate(topic_ids)],
        )

    def _write_prerequisites(
        self, conn: sqlite3.Connection, user_id: str, note_id: str, prereq_ids: Sequence[str]
    ) -> None:
        conn.execute(
            "DELETE FROM note_prerequisites WHERE user_id = ? AND note_id = ?",
            (user_id, note_id),
        )
        conn.executemany(
            """
            INSERT INTO note_prerequisites (user_id, note_id, prereq_id, position)
            VALUES (?, ?, ?, ?)
            """,
            [(user_id, note_id, prereq_id, index) for index, prereq_id in enumerate(prereq_ids)],
        )

    def create_note(self, user_id: str, create: NoteCreate) -> Note:
        note_id = new_id()
        now = _utcnow_iso()
        with self._connection() as conn:
            with conn:
                topic_ids = self._validate_topic_ids(conn, user_id, create.topics)
                topic_ids = _dedupe(
                    topic_ids + self._resolve_topic_names(conn, user_id, create.topic_names)
                )
                prereq_ids = self._validate_prerequisites(conn, user_id, None, create.prerequisites)
                conn.execute(
                    """
                    INSERT INTO notes (user_id, note_id, title, blocks, created, updated)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        user_id,
                        note_id,
                        create.title,
                        json.dumps([block.model_dump() for block in create.blocks]),
                        now,
                        now,
                    ),
                )
                self._write_topics(conn, user_id, note_id, topic_ids)
                self._write_prerequisites(conn, user_id, note_id, prereq_ids)

        logger.info(
            "Note created",
            extra={
                "user_id": user_id,
                "note_id": note_id,
                "topics_count": len(topic_ids),
                "prerequisites_count": len(prereq_ids),
            },
        )
        return self.get_note(user_id, note_id)

    def find_note(self, user_id: str, note_id: str) -> Optional[Note]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT * FROM notes WHERE user_id = ? AND note_id = ?",
                (user_id, note_id),
            ).fetchone()
            if row is None:
                return None
            return self._load_notes(conn, user_id, [row])[0]

    def get_note(self, user_id: str, note_id: str) -> Note:
        note = self.find_note(user_id, note_id)
        if note is None:
            raise NotFoundError("Note not found", detail={"note_id": note_id})
        return note

    def list_notes(self, user_id: str) -> List[Note]:
        """All notes, most recently updated first."""
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM notes WHERE user_id = ? ORDER BY updated DESC, rowid DESC",
                (user_id,),
            ).fetchall()
            return self._load_notes(conn, user_id, rows)

    def search_notes(self, user_id: str, query: str) -> List[Note]:
        """Case-insensitive title substring search."""
        if not query or not query.strip():
            raise ValueError("Search query cannot be empty")
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM notes
                WHERE user_id = ? AND instr(lower(title), lower(?)) > 0
                ORDER BY updated DESC, rowid DESC
                """,
                (user_id, query.strip()),
            ).fetchall()
            return self._load_notes(conn, user_id, rows)

    def update_note(self, user_id: str, note_id: str, update: NoteUpdate) -> Note:
        with self._connection() as conn:
            with conn:
                self._require_note(conn, user_id, note_id)
                assignments: List[str] = []
                params: List[str] = []
                if update.title is not None:
                    assignments.append("title = ?")
                    params.append(update.title)
                if update.blocks is not None:
                    assignments.append("blocks = ?")
                    params.append(json.dumps([block.model_dump() for block in update.blocks]))
                assignments.append("updated = ?")
                params.append(_utcnow_iso())
                conn.execute(
                    f"UPDATE notes SET {', '.join(assignments)} WHERE user_id = ? AND note_id = ?",
                    (*params, user_id, note_id),
                )

                if update.topics is not None or update.topic_names is not None:
                    topic_ids = self._validate_topic_ids(conn, user_id, update.topics or [])
                    topic_ids = _dedupe(
                        topic_ids
                        + self._resolve_topic_names(conn, user_id, update.topic_names or [])
                    )
                    self._write_topics(conn, user_id, note_id, topic_ids)

                if update.prerequisites is not None:
                    prereq_ids = self._validate_prerequisites(
                        conn, user_id, note_id, update.prerequisites
                    )
                    self._write_prerequisites(conn, user_id, note_id, prereq_ids)

        logger.info("Note updated", extra={"user_id": user_id, "note_id": note_id})
        return self.get_note(user_id, note_id)

    def update_note_prerequisites(
        self, user_id: str, note_id: str, prerequisites: Sequence[str]
    ) -> Note:
        """Replace a note's prerequisite list."""
        with self._connection() as conn:
            with conn:
                self._require_note(conn, user_id, note_id)
                prereq_ids = self._validate_prerequisites(conn, user_id, note_id, prerequisites)
                self._write_prerequisites(conn, user_id, note_id, prereq_ids)
                conn.execute(
                    "UPDATE notes SET updated = ? WHERE user_id = ? AND note_id = ?",
                    (_utcnow_iso(), user_id, note_id),
                )
        logger.info(
            "Note prerequisites updated",
            extra={"user_id": user_id, "note_id": note_id, "prerequisites": prereq_ids},
        )
        return self.get_note(user_id, note_id)

    def delete_note(self, user_id: str, note_id: str) -> None:
        """Remove the note row, its topic memberships and its own prerequisite rows.

        References held by other notes are left to the caller (see DeletionCascade).
        """
        with self._connection() as conn:
            with conn:
                deleted = conn.execute(
                    "DELETE FROM notes WHERE user_id = ? AND note_id = ?",
                    (user_id, note_id),
                ).rowcount
                if not deleted:
                    raise NotFoundError("Note not found", detail={"note_id": note_id})
                conn.execute(
                    "DELETE FROM note_topics WHERE user_id = ? AND note_id = ?",
                    (user_id, note_id),
                )
                conn.execute(
                    "DELETE FROM note_prerequisites WHERE user_id = ? AND note_id = ?",
                    (user_id, note_id),
                )

    def find_notes_by_topic(self, user_id: str, topic_id: str) -> List[Note]:
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT n.* FROM notes n
                JOIN note_topics t ON t.user_id = n.user_id AND t.note_id = n.note_id
                WHERE n.user_id = ? AND t.topic_id = ?
                ORDER BY n.rowid
                """,
                (user_id, topic_id),
            ).fetchall()
            return self._load_notes(conn, user_id, rows)

    def find_all_notes(self, user_id: str) -> List[Note]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM notes WHERE user_id = ? ORDER BY rowid",
                (user_id,),
            ).fetchall()
            return self._load_notes(conn, user_id, rows)

    def find_notes_with_prerequisite(self, user_id: str, prereq_id: str) -> List[Note]:
        """Notes that list ``prereq_id`` among their prerequisites (its dependents)."""
        with self._connection() as conn:
            rows = conn.execute(
                """
                SELECT n.* FROM notes n
                JOIN note_prerequisites p ON p.user_id = n.user_id AND p.note_id = n.note_id
                WHERE n.user_id = ? AND p.prereq_id = ?
                ORDER BY n.rowid
                """,
                (user_id, prereq_id),
            ).fetchall()
            return self._load_notes(conn, user_id, rows)

    def _require_note(self, conn: sqlite3.Connection, user_id: str, note_id: str) -> None:
        row = conn.execute(
            "SELECT 1 FROM notes WHERE user_id = ? AND note_id = ?",
            (user_id, note_id),
        ).fetchone()
        if row is None:
            raise NotFoundError("Note not found", detail={"note_id": note_id})

    # ------------------------------------------------------------------
    # Explicit links
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_link(row: sqlite3.Row) -> Link:
        return Link(
            id=row["link_id"],
            user_id=row["user_id"],
            source=row["source_id"],
            target=row["target_id"],
            created=datetime.fromisoformat(row["created"]),
        )

    def list_links(self, user_id: str) -> List[Link]:
        with self._connection() as conn:
            rows = conn.execute(
                "SELECT * FROM links WHERE user_id = ? ORDER BY rowid",
                (user_id,),
            ).fetchall()
        return [self._row_to_link(row) for row in rows]

    def create_link(self, user_id: str, source: str, target: str) -> Link:
        if source == target:
            raise InvalidReferenceError("A note cannot link to itself", detail={"note_id": source})
        link_id = new_id()
        with self._connection() as conn:
            with conn:
                for role, note_id in (("Source", source), ("Target", target)):
                    if not conn.execute(
                        "SELECT 1 FROM notes WHERE user_id = ? AND note_id = ?",
                        (user_id, note_id),
                    ).fetchone():
                        raise NotFoundError(f"{role} note not found", detail={"note_id": note_id})
                existing = conn.execute(
                    "SELECT 1 FROM links WHERE user_id = ? AND source_id = ? AND target_id = ?",
                    (user_id, source, target),
                ).fetchone()
                if existing:
                    raise ConflictError(
                        "Link already exists", detail={"source": source, "target": target}
                    )
                conn.execute(
                    """
                    INSERT INTO links (user_id, link_id, source_id, target_id, created)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user_id, link_id, source, target, _utcnow_iso()),
                )
            row = conn.execute(
                "SELECT * FROM links WHERE user_id = ? AND link_id = ?",
                (user_id, link_id),
            ).fetchone()
        return self._row_to_link(row)

    def delete_link(self, user_id: str, link_id: str) -> None:
        with self._connection() as conn:
            with conn:
                deleted = conn.execute(
                    "DELETE FROM links WHERE user_id = ? AND link_id = ?",
                    (user_id, link_id),
                ).rowcount
        if not deleted:
            raise NotFoundError("Link not found", detail={"link_id": link_id})

    def links_for_note(self, user_id: str, note_id: str) -> List[Link]:
        with self._connection() as conn:
            self._require_note(conn, user_id, note_id)
            rows = conn.execute(
                """
                SELECT * FROM links
                WHERE user_id = ? AND (source_id = ? OR target_id = ?)
                ORDER BY rowid
                """,
                (user_id, note_id, note_id),
            ).fetchall()
        return [self._row_to_link(row) for row in rows]

    def delete_links_for_note(self, user_id: str, note_id: str) -> int:
        """Delete every link where the note is either endpoint; returns the count."""
        with self._connection() as conn:
            with conn:
                return conn.execute(
                    "DELETE FROM links WHERE user_id = ? AND (source_id = ? OR target_id = ?)",
                    (user_id, note_id, note_id),
                ).rowcount


def get_note_store() -> NoteStore:
    """FastAPI dependency returning a store bound to the configured database."""
    return NoteStore(DatabaseService(get_config().database_path))


__all__ = ["NoteStore", "get_note_store", "normalize_prerequisites", "new_id", "ID_PATTERN"]
