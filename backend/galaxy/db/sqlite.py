import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from galaxy.config import settings
from galaxy.models.flashcard import (
    AtlasCard,
    CardDraft,
    Category,
    Flashcard,
    KnowledgeNode,
    normalize_category,
)
from galaxy.models.review import ReviewQueueEntry

logger = logging.getLogger(__name__)

_db_path: Path | None = None

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS knowledge_nodes (
    id             TEXT PRIMARY KEY,
    content        TEXT NOT NULL,
    source_context TEXT DEFAULT '',
    category       TEXT NOT NULL DEFAULT 'note',
    is_mastered    INTEGER DEFAULT 0,
    interval_days  INTEGER DEFAULT 0,
    next_review_at TEXT NOT NULL DEFAULT (datetime('now')),
    created_at     TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_nodes_review ON knowledge_nodes(next_review_at);

CREATE TABLE IF NOT EXISTS flashcards (
    id          TEXT PRIMARY KEY,
    node_id     TEXT NOT NULL REFERENCES knowledge_nodes(id) ON DELETE CASCADE,
    front       TEXT NOT NULL,
    back        TEXT NOT NULL,
    created_at  TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_flashcards_node ON flashcards(node_id);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);

CREATE TABLE IF NOT EXISTS settings (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL DEFAULT '',
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO settings(key, value) VALUES ('llm_model', '');
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        await db.commit()


def is_initialized() -> bool:
    return _db_path is not None


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def format_timestamp(moment: datetime) -> str:
    """UTC text timestamp; lexical order matches time order."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(TIMESTAMP_FORMAT)


def _now() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def _row_to_node(row: aiosqlite.Row) -> KnowledgeNode:
    d = dict(row)
    d["is_mastered"] = bool(d["is_mastered"])
    d["source_context"] = d.get("source_context") or ""
    d["category"] = normalize_category(d["category"])
    return KnowledgeNode(**d)


# --- Knowledge nodes + flashcards ---


async def create_node(
    db: aiosqlite.Connection,
    content: str,
    category: Category,
    source_context: str = "",
) -> KnowledgeNode:
    """Insert a node that is due immediately and has never been reviewed."""
    node_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO knowledge_nodes
           (id, content, source_context, category, is_mastered,
            interval_days, next_review_at, created_at)
           VALUES (?, ?, ?, ?, 0, 0, ?, ?)""",
        (node_id, content, source_context, category.value, now, now),
    )
    await db.commit()
    return await get_node(db, node_id)  # type: ignore[return-value]


async def get_node(db: aiosqlite.Connection, node_id: str) -> KnowledgeNode | None:
    cursor = await db.execute("SELECT * FROM knowledge_nodes WHERE id = ?", (node_id,))
    row = await cursor.fetchone()
    return _row_to_node(row) if row else None


async def create_flashcard(
    db: aiosqlite.Connection, node_id: str, front: str, back: str
) -> Flashcard:
    card_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        "INSERT INTO flashcards (id, node_id, front, back, created_at) VALUES (?, ?, ?, ?, ?)",
        (card_id, node_id, front, back, now),
    )
    await db.commit()
    return await get_flashcard(db, card_id)  # type: ignore[return-value]


async def get_flashcard(db: aiosqlite.Connection, card_id: str) -> Flashcard | None:
    cursor = await db.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,))
    row = await cursor.fetchone()
    return Flashcard(**dict(row)) if row else None


async def insert_node_with_cards(
    db: aiosqlite.Connection,
    category: Category,
    cards: list[CardDraft],
    source_text: str,
) -> list[str]:
    """One node per card: node content is the card front. Returns the node IDs."""
    source_context = source_text[:50]
    node_ids: list[str] = []
    for card in cards:
        node = await create_node(db, card.front, category, source_context)
        await create_flashcard(db, node.id, card.front, card.back)
        node_ids.append(node.id)
    return node_ids


async def count_nodes(db: aiosqlite.Connection) -> int:
    cursor = await db.execute("SELECT COUNT(*) FROM knowledge_nodes")
    row = await cursor.fetchone()
    return row[0] if row else 0


# --- Review ---


async def fetch_due_entries(
    db: aiosqlite.Connection,
    now: datetime | None = None,
    limit: int = 50,
) -> list[ReviewQueueEntry]:
    """
    Cards whose node is due (next_review_at <= now), in card insertion order.

    The inner join drops cards whose node no longer exists.
    """
    moment = format_timestamp(now) if now is not None else _now()
    cursor = await db.execute(
        """SELECT f.id AS card_id, f.node_id, f.front, f.back,
                  n.category, n.interval_days
           FROM flashcards f
           JOIN knowledge_nodes n ON n.id = f.node_id
           WHERE n.next_review_at <= ?
           ORDER BY f.rowid ASC
           LIMIT ?""",
        (moment, limit),
    )
    rows = await cursor.fetchall()
    return [
        ReviewQueueEntry(
            card_id=row["card_id"],
            node_id=row["node_id"],
            front=row["front"],
            back=row["back"],
            category=normalize_category(row["category"]),
            interval_days=row["interval_days"] or 0,
        )
        for row in rows
    ]


async def update_node_schedule(
    db: aiosqlite.Connection,
    node_id: str,
    interval_days: int,
    next_review_at: datetime,
) -> bool:
    cursor = await db.execute(
        "UPDATE knowledge_nodes SET interval_days = ?, next_review_at = ? WHERE id = ?",
        (interval_days, format_timestamp(next_review_at), node_id),
    )
    await db.commit()
    return (cursor.rowcount or 0) > 0


async def persist_interval(node_id: str, interval_days: int, next_review_at: datetime) -> None:
    """Write a graded schedule on its own connection. Raises on failure."""
    updated = False
    async for db in get_db():
        updated = await update_node_schedule(db, node_id, interval_days, next_review_at)
    if not updated:
        raise LookupError(f"Knowledge node {node_id} not found")


# --- Atlas ---


async def list_atlas_cards(db: aiosqlite.Connection, limit: int = 100) -> list[AtlasCard]:
    """All cards with their node's category and mastery, newest first."""
    cursor = await db.execute(
        """SELECT f.id, f.node_id, f.front, f.back,
                  n.category, n.is_mastered, n.created_at
           FROM flashcards f
           JOIN knowledge_nodes n ON n.id = f.node_id
           ORDER BY f.created_at DESC, f.rowid DESC
           LIMIT ?""",
        (limit,),
    )
    rows = await cursor.fetchall()
    return [
        AtlasCard(
            id=row["id"],
            node_id=row["node_id"],
            front=row["front"],
            back=row["back"],
            category=normalize_category(row["category"]),
            is_mastered=bool(row["is_mastered"]),
            created_at=row["created_at"],
        )
        for row in rows
    ]


async def delete_card_and_node(db: aiosqlite.Connection, card_id: str) -> bool:
    """
    Delete a card together with its node.

    Deleting the node removes its cards through the cascade. Tables created
    without the cascade reject that delete; then every card of the node goes
    first and the node second.
    """
    card = await get_flashcard(db, card_id)
    if card is None:
        return False

    try:
        await db.execute("DELETE FROM knowledge_nodes WHERE id = ?", (card.node_id,))
        await db.commit()
    except aiosqlite.IntegrityError as e:
        await db.rollback()
        logger.info("Cascade delete refused for node %s (%s), deleting its cards first", card.node_id, e)
        await db.execute("DELETE FROM flashcards WHERE node_id = ?", (card.node_id,))
        await db.execute("DELETE FROM knowledge_nodes WHERE id = ?", (card.node_id,))
        await db.commit()
    return True


# --- Settings key-value store ---


async def get_setting(db: aiosqlite.Connection, key: str) -> str | None:
    cursor = await db.execute("SELECT value FROM settings WHERE key = ?", (key,))
    row = await cursor.fetchone()
    return row[0] if row else None


async def set_setting(db: aiosqlite.Connection, key: str, value: str) -> None:
    now = _now()
    await db.execute(
        "INSERT INTO settings(key, value, updated_at) VALUES (?, ?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
        (key, value, now),
    )
    await db.commit()


async def get_all_settings(db: aiosqlite.Connection) -> dict[str, str]:
    cursor = await db.execute("SELECT key, value FROM settings")
    rows = await cursor.fetchall()
    return {row[0]: row[1] for row in rows}
