"""
Text capture: classification + flashcard extraction.

  1. Calls the LLM via llm_service.chat_json()
  2. Parses {"category": "code|language|note", "flashcards": [{"front", "back"}]}
  3. Inserts one knowledge node + one flashcard per extracted pair

LLMUnavailableError propagates to the caller; unusable model output is
reported as ClassificationError. Nothing is written when either happens.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import aiosqlite

from galaxy.db.sqlite import insert_node_with_cards
from galaxy.models.flashcard import CaptureResult, CardDraft, Category, normalize_category
from galaxy.services.llm_service import chat_json

logger = logging.getLogger(__name__)

MAX_INPUT_CHARS = 6000

SYSTEM_PROMPT = (
    "You are a personal knowledge-base assistant. Analyze the text the user pastes.\n"
    "1. Classify it as exactly one category: 'code' (source code, stack traces, "
    "error messages), 'language' (vocabulary, phrases or sentences being learned), "
    "or 'note' (any other note).\n"
    "2. Extract the key facts as flashcards with a short prompt on the front and "
    "the answer on the back.\n"
    "Respond ONLY with valid JSON in exactly this structure:\n"
    '{"category": "note", "flashcards": [{"front": "string", "back": "string"}]}'
)

CATEGORY_LABELS = {
    Category.CODE: "Code",
    Category.LANGUAGE: "Language",
    Category.NOTE: "Notes",
}


class ClassificationError(Exception):
    """The model answered, but not with something usable."""


@dataclass
class Classification:
    category: Category
    cards: list[CardDraft]


def _user_prompt(text: str) -> str:
    return text[:MAX_INPUT_CHARS]


def parse_classification(result: dict) -> Classification:
    if not isinstance(result, dict):
        raise ClassificationError(f"Expected a JSON object, got {type(result).__name__}")

    category = result.get("category")
    if category is not None and not isinstance(category, str):
        raise ClassificationError(f"Expected a category string, got {type(category).__name__}")
    raw_cards = result.get("flashcards") or []
    if not isinstance(raw_cards, list):
        raise ClassificationError(f"Expected a flashcards list, got {type(raw_cards).__name__}")

    cards: list[CardDraft] = []
    for card in raw_cards:
        if not isinstance(card, dict):
            continue
        front = str(card.get("front") or "").strip()
        back = str(card.get("back") or "").strip()
        if not front or not back:
            continue
        cards.append(CardDraft(front=front, back=back))

    return Classification(category=normalize_category(category), cards=cards)


async def classify_text(text: str) -> Classification:
    try:
        result = await chat_json(SYSTEM_PROMPT, _user_prompt(text))
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Model returned invalid JSON: {e}") from e
    return parse_classification(result)


async def capture_text(db: aiosqlite.Connection, text: str) -> CaptureResult:
    """Classify `text` and store every extracted card under its own node."""
    classification = await classify_text(text)
    node_ids = await insert_node_with_cards(db, classification.category, classification.cards, text)
    logger.info(
        "Captured %d cards into category %s", len(node_ids), classification.category.value
    )

    label = CATEGORY_LABELS[classification.category]
    if node_ids:
        message = f"Captured {len(node_ids)} new stars into the [{label}] sector."
    else:
        message = "Nothing worth remembering was found in that text."
    return CaptureResult(
        category=classification.category,
        cards=classification.cards,
        node_ids=node_ids,
        message=message,
    )
