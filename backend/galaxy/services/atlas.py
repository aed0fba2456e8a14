from __future__ import annotations

from collections import Counter

from galaxy.models.flashcard import AtlasCard, Category, CategoryStats

ALL_CATEGORIES = "all"


def filter_atlas(
    cards: list[AtlasCard],
    search: str = "",
    category: str = ALL_CATEGORIES,
) -> list[AtlasCard]:
    """Case-insensitive match on front + back, optionally narrowed to one category."""
    needle = search.lower()
    wanted = category.lower()
    return [
        card
        for card in cards
        if needle in (card.front + card.back).lower()
        and (wanted == ALL_CATEGORIES or card.category.value == wanted)
    ]


def category_stats(cards: list[AtlasCard]) -> CategoryStats:
    counts = Counter(card.category for card in cards)
    return CategoryStats(
        total=len(cards),
        code=counts[Category.CODE],
        language=counts[Category.LANGUAGE],
        note=counts[Category.NOTE],
    )
