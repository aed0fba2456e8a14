import logging

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException

from galaxy.db.sqlite import get_db
from galaxy.models.flashcard import CaptureRequest, CaptureResult
from galaxy.services.flashcard_generator import ClassificationError, capture_text
from galaxy.services.llm_service import LLMUnavailableError

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=CaptureResult, status_code=201)
async def capture(
    body: CaptureRequest,
    db: aiosqlite.Connection = Depends(get_db),
) -> CaptureResult:
    """Classify pasted text with the LLM and store the extracted flashcards."""
    try:
        return await capture_text(db, body.text)
    except LLMUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e)) from e
    except ClassificationError as e:
        logger.warning("Classification failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e)) from e
