from datetime import datetime, timedelta, timezone

import aiosqlite
import pytest

from galaxy.db.sqlite import (
    count_nodes,
    create_flashcard,
    create_node,
    delete_card_and_node,
    fetch_due_entries,
    get_flashcard,
    get_node,
    get_setting,
    init_sqlite,
    insert_node_with_cards,
    persist_interval,
    set_setting,
    update_node_schedule,
)
from galaxy.models.flashcard import CardDraft, Category


def _utcnow():
    return datetime.now(timezone.utc)


async def _add_card(db, front="front", back="back", category=Category.NOTE):
    node = await create_node(db, front, category)
    card = await create_flashcard(db, node.id, front, back)
    return node, card


@pytest.mark.unit
async def test_new_node_is_unreviewed_and_due_now(db):
    node, card = await _add_card(db, "hola", "hello", Category.LANGUAGE)
    assert node.interval_days == 0
    assert node.is_mastered is False

    entries = await fetch_due_entries(db)
    assert len(entries) == 1
    entry = entries[0]
    assert (entry.card_id, entry.node_id) == (card.id, node.id)
    assert entry.category is Category.LANGUAGE
    assert entry.interval_days == 0


@pytest.mark.unit
async def test_insert_node_with_cards_creates_one_node_per_card(db):
    text = "x" * 80
    drafts = [CardDraft(front="q1", back="a1"), CardDraft(front="q2", back="a2")]
    node_ids = await insert_node_with_cards(db, Category.CODE, drafts, text)

    assert len(node_ids) == 2
    assert await count_nodes(db) == 2
    node = await get_node(db, node_ids[0])
    assert node.content == "q1"
    assert node.category is Category.CODE
    assert node.source_context == "x" * 50


@pytest.mark.unit
async def test_future_nodes_are_not_due(db):
    node, _ = await _add_card(db)
    await update_node_schedule(db, node.id, 3, _utcnow() + timedelta(days=3))

    assert await fetch_due_entries(db) == []
    later = await fetch_due_entries(db, now=_utcnow() + timedelta(days=4))
    assert [e.node_id for e in later] == [node.id]
    assert later[0].interval_days == 3


@pytest.mark.unit
async def test_due_entries_keep_arrival_order_and_limit(db):
    cards = [(await _add_card(db, f"q{i}"))[1] for i in range(4)]
    entries = await fetch_due_entries(db, limit=3)
    assert [e.card_id for e in entries] == [c.id for c in cards[:3]]


@pytest.mark.unit
async def test_cards_without_node_are_never_due(db):
    await db.execute("PRAGMA foreign_keys=OFF")
    await db.execute(
        "INSERT INTO flashcards (id, node_id, front, back) VALUES ('orphan', 'gone', 'f', 'b')"
    )
    await db.commit()
    await db.execute("PRAGMA foreign_keys=ON")
    _, card = await _add_card(db)

    entries = await fetch_due_entries(db)
    assert [e.card_id for e in entries] == [card.id]


@pytest.mark.unit
async def test_persist_interval_updates_node(db):
    node, _ = await _add_card(db)
    due = datetime(2031, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    await persist_interval(node.id, 10, due)

    refreshed = await get_node(db, node.id)
    assert refreshed.interval_days == 10
    assert refreshed.next_review_at == "2031-01-02 03:04:05"


@pytest.mark.unit
async def test_persist_interval_unknown_node_raises(db):
    with pytest.raises(LookupError):
        await persist_interval("missing", 1, _utcnow())


@pytest.mark.unit
async def test_delete_removes_card_and_node(db):
    node, card = await _add_card(db)
    assert await delete_card_and_node(db, card.id) is True
    assert await get_flashcard(db, card.id) is None
    assert await get_node(db, node.id) is None


@pytest.mark.unit
async def test_delete_unknown_card(db):
    assert await delete_card_and_node(db, "missing") is False


@pytest.mark.unit
async def test_delete_falls_back_when_cascade_is_missing(tmp_path):
    # Tables from before the cascade was declared
    async with aiosqlite.connect(tmp_path / "legacy.db") as db:
        db.row_factory = aiosqlite.Row
        await db.executescript(
            """
            PRAGMA foreign_keys=ON;
            CREATE TABLE knowledge_nodes (id TEXT PRIMARY KEY, content TEXT);
            CREATE TABLE flashcards (
                id TEXT PRIMARY KEY,
                node_id TEXT NOT NULL REFERENCES knowledge_nodes(id),
                front TEXT, back TEXT, created_at TEXT
            );
            INSERT INTO knowledge_nodes VALUES ('n1', 'q');
            INSERT INTO flashcards VALUES ('c1', 'n1', 'q', 'a', '2026-01-01 00:00:00');
            """
        )
        await db.commit()

        assert await delete_card_and_node(db, "c1") is True

        cursor = await db.execute("SELECT COUNT(*) FROM knowledge_nodes")
        assert (await cursor.fetchone())[0] == 0
        cursor = await db.execute("SELECT COUNT(*) FROM flashcards")
        assert (await cursor.fetchone())[0] == 0


@pytest.mark.unit
async def test_fallback_deletes_every_card_of_the_node(tmp_path):
    async with aiosqlite.connect(tmp_path / "legacy.db") as db:
        db.row_factory = aiosqlite.Row
        await db.executescript(
            """
            PRAGMA foreign_keys=ON;
            CREATE TABLE knowledge_nodes (id TEXT PRIMARY KEY, content TEXT);
            CREATE TABLE flashcards (
                id TEXT PRIMARY KEY,
                node_id TEXT NOT NULL REFERENCES knowledge_nodes(id),
                front TEXT, back TEXT, created_at TEXT
            );
            INSERT INTO knowledge_nodes VALUES ('n1', 'q');
            INSERT INTO knowledge_nodes VALUES ('n2', 'other');
            INSERT INTO flashcards VALUES ('c1', 'n1', 'q', 'a', '2026-01-01 00:00:00');
            INSERT INTO flashcards VALUES ('c2', 'n1', 'q again', 'a', '2026-01-01 00:00:01');
            INSERT INTO flashcards VALUES ('c3', 'n2', 'other', 'b', '2026-01-01 00:00:02');
            """
        )
        await db.commit()

        assert await delete_card_and_node(db, "c1") is True

        cursor = await db.execute("SELECT id FROM knowledge_nodes")
        assert [row[0] for row in await cursor.fetchall()] == ["n2"]
        cursor = await db.execute("SELECT id FROM flashcards")
        assert [row[0] for row in await cursor.fetchall()] == ["c3"]


@pytest.mark.unit
async def test_schema_init_is_idempotent(data_dir, db):
    await init_sqlite(data_dir)
    cursor = await db.execute("SELECT MAX(version) FROM schema_version")
    assert (await cursor.fetchone())[0] == 1
    assert await get_setting(db, "llm_model") == ""


@pytest.mark.unit
async def test_settings_round_trip(db):
    assert await get_setting(db, "llm_model") == ""
    await set_setting(db, "llm_model", "deepseek-reasoner")
    assert await get_setting(db, "llm_model") == "deepseek-reasoner"
