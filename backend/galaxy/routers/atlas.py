import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Query

from galaxy.config import settings
from galaxy.db.sqlite import delete_card_and_node, get_db, list_atlas_cards
from galaxy.models.flashcard import AtlasResponse
from galaxy.services.atlas import ALL_CATEGORIES, category_stats, filter_atlas

router = APIRouter()

_CATEGORY_PATTERN = "^(all|code|language|note)$"


@router.get("/", response_model=AtlasResponse)
async def get_atlas(
    search: str = Query(default=""),
    category: str = Query(default=ALL_CATEGORIES, pattern=_CATEGORY_PATTERN),
    db: aiosqlite.Connection = Depends(get_db),
) -> AtlasResponse:
    """Every stored card, newest first; stats always cover the unfiltered set."""
    cards = await list_atlas_cards(db, limit=settings.atlas_limit)
    items = filter_atlas(cards, search=search, category=category)
    return AtlasResponse(items=items, total=len(items), stats=category_stats(cards))


@router.delete("/cards/{card_id}", status_code=204)
async def delete_card(
    card_id: str,
    db: aiosqlite.Connection = Depends(get_db),
) -> None:
    """Delete a card and its knowledge node. Irreversible."""
    deleted = await delete_card_and_node(db, card_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Flashcard not found")
