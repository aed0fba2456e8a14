import aiosqlite
from fastapi import APIRouter, Depends, Query

from galaxy.config import settings
from galaxy.db.sqlite import count_nodes, get_db
from galaxy.models.galaxy import StarCount, StarField
from galaxy.services.starfield import build_starfield

router = APIRouter()


@router.get("/stars", response_model=StarCount)
async def get_star_count(db: aiosqlite.Connection = Depends(get_db)) -> StarCount:
    return StarCount(total_stars=await count_nodes(db))


@router.get("/starfield", response_model=StarField)
async def get_starfield(
    seed: int | None = Query(default=None),
    frame: int = Query(default=0, ge=0),
    db: aiosqlite.Connection = Depends(get_db),
) -> StarField:
    """Particles for the background canvas: base stars plus one per knowledge node."""
    total = await count_nodes(db)
    return build_starfield(total, base_count=settings.base_star_count, seed=seed, frame=frame)
