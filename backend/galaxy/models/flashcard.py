from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, field_validator


class Category(str, Enum):
    CODE = "code"
    LANGUAGE = "language"
    NOTE = "note"


# Labels the model sometimes answers with instead of the canonical ones
_CATEGORY_ALIASES = {"english": Category.LANGUAGE}


def normalize_category(raw: str | None) -> Category:
    """Lower-case a category tag; unknown or missing tags become NOTE."""
    value = (raw or "").strip().lower()
    if value in _CATEGORY_ALIASES:
        return _CATEGORY_ALIASES[value]
    try:
        return Category(value)
    except ValueError:
        return Category.NOTE


class KnowledgeNode(BaseModel):
    id: str
    content: str
    source_context: str
    category: Category
    is_mastered: bool       # stored, never promoted by review
    interval_days: int      # 0 = never successfully reviewed
    next_review_at: str     # UTC "YYYY-MM-DD HH:MM:SS"; due when <= now
    created_at: str


class Flashcard(BaseModel):
    id: str
    node_id: str
    front: str
    back: str
    created_at: str


class AtlasCard(BaseModel):
    """A flashcard joined with the node it belongs to."""

    id: str
    node_id: str
    front: str
    back: str
    category: Category
    is_mastered: bool
    created_at: str


class CategoryStats(BaseModel):
    total: int
    code: int
    language: int
    note: int


class AtlasResponse(BaseModel):
    items: list[AtlasCard]
    total: int
    stats: CategoryStats


class CardDraft(BaseModel):
    front: str
    back: str


class CaptureRequest(BaseModel):
    text: str

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value


class CaptureResult(BaseModel):
    category: Category
    cards: list[CardDraft]
    node_ids: list[str]
    message: str
