import json
from unittest.mock import AsyncMock

import pytest

from galaxy.db.sqlite import count_nodes, fetch_due_entries
from galaxy.models.flashcard import Category
from galaxy.services import flashcard_generator
from galaxy.services.flashcard_generator import (
    ClassificationError,
    capture_text,
    parse_classification,
)
from galaxy.services.llm_service import LLMUnavailableError

MOCK_RESULT = {
    "category": "English",
    "flashcards": [
        {"front": "serendipity", "back": "a happy accident"},
        {"front": "  ", "back": "dropped: blank front"},
        {"front": "ephemeral", "back": "lasting a very short time"},
    ],
}


@pytest.mark.unit
def test_parse_maps_aliases_and_drops_blank_cards():
    parsed = parse_classification(MOCK_RESULT)
    assert parsed.category is Category.LANGUAGE
    assert [c.front for c in parsed.cards] == ["serendipity", "ephemeral"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw, expected",
    [("code", Category.CODE), ("NOTE", Category.NOTE), ("recipe", Category.NOTE), (None, Category.NOTE)],
)
def test_parse_normalizes_category(raw, expected):
    assert parse_classification({"category": raw}).category is expected


@pytest.mark.unit
def test_parse_rejects_non_object():
    with pytest.raises(ClassificationError):
        parse_classification(["not", "an", "object"])


@pytest.mark.unit
@pytest.mark.parametrize(
    "result",
    [
        {"category": 5},
        {"category": ["code"]},
        {"category": "code", "flashcards": 3},
        {"category": "code", "flashcards": {"front": "q", "back": "a"}},
    ],
)
def test_parse_rejects_misshapen_fields(result):
    with pytest.raises(ClassificationError):
        parse_classification(result)


@pytest.mark.unit
async def test_capture_stores_one_node_per_card(db, monkeypatch):
    fake = AsyncMock(return_value=MOCK_RESULT)
    monkeypatch.setattr(flashcard_generator, "chat_json", fake)

    result = await capture_text(db, "Words from today's reading: serendipity, ephemeral")

    assert result.category is Category.LANGUAGE
    assert len(result.node_ids) == 2
    assert "Language" in result.message
    assert await count_nodes(db) == 2
    entries = await fetch_due_entries(db)
    assert [e.front for e in entries] == ["serendipity", "ephemeral"]
    system_prompt, user_prompt = fake.await_args.args
    assert "code" in system_prompt and "language" in system_prompt
    assert user_prompt.startswith("Words from today's reading")


@pytest.mark.unit
async def test_capture_with_no_cards(db, monkeypatch):
    monkeypatch.setattr(
        flashcard_generator, "chat_json", AsyncMock(return_value={"category": "note", "flashcards": []})
    )
    result = await capture_text(db, "hmm")
    assert result.node_ids == []
    assert await count_nodes(db) == 0


@pytest.mark.unit
async def test_invalid_json_becomes_classification_error(db, monkeypatch):
    error = json.JSONDecodeError("Expecting value", "not json", 0)
    monkeypatch.setattr(flashcard_generator, "chat_json", AsyncMock(side_effect=error))
    with pytest.raises(ClassificationError):
        await capture_text(db, "some text")
    assert await count_nodes(db) == 0


@pytest.mark.unit
async def test_llm_unavailable_propagates(db, monkeypatch):
    monkeypatch.setattr(
        flashcard_generator, "chat_json", AsyncMock(side_effect=LLMUnavailableError("no key"))
    )
    with pytest.raises(LLMUnavailableError):
        await capture_text(db, "some text")
