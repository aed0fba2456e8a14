"""
Review router.

Endpoints:
  POST   /review/session           enter review mode: fetch due cards, build a session
  GET    /review/session           current session view
  POST   /review/session/reveal    show the back of the current card
  POST   /review/session/grade     grade the revealed card, schedule it, advance
  DELETE /review/session           leave review mode (in-flight writes keep running)
  GET    /review/writes/{id}       outcome of the interval write started by a grade
"""
from __future__ import annotations

import aiosqlite
from fastapi import APIRouter, Depends, HTTPException, Request

from galaxy.config import settings
from galaxy.db.sqlite import fetch_due_entries, get_db
from galaxy.models.review import (
    GradeRequest,
    GradeResponse,
    Outcome,
    ReviewView,
    SessionState,
    WriteStatus,
)
from galaxy.services.review_session import ReviewDesk, ReviewSession

router = APIRouter()


def get_desk(request: Request) -> ReviewDesk:
    return request.app.state.review_desk


def _require_session(desk: ReviewDesk) -> ReviewSession:
    if desk.session is None:
        raise HTTPException(status_code=404, detail="No review session in progress")
    return desk.session


def _grade_message(outcome: Outcome, interval_days: int, state: SessionState) -> str:
    if state is SessionState.COMPLETE:
        return "Review complete!"
    if outcome is Outcome.REMEMBERED:
        unit = "day" if interval_days == 1 else "days"
        return f"Remembered! See you in {interval_days} {unit}."
    return "No worries, see you tomorrow."


@router.post("/session", response_model=ReviewView)
async def enter_review(
    desk: ReviewDesk = Depends(get_desk),
    db: aiosqlite.Connection = Depends(get_db),
) -> ReviewView:
    """Rebuild the session from the cards that are due right now."""
    entries = await fetch_due_entries(db, limit=settings.review_batch_limit)
    return desk.enter(entries).view()


@router.get("/session", response_model=ReviewView)
async def get_review(desk: ReviewDesk = Depends(get_desk)) -> ReviewView:
    return _require_session(desk).view()


@router.post("/session/reveal", response_model=ReviewView)
async def reveal_card(desk: ReviewDesk = Depends(get_desk)) -> ReviewView:
    session = _require_session(desk)
    session.reveal()
    return session.view()


@router.post("/session/grade", response_model=GradeResponse)
async def grade_card(
    body: GradeRequest,
    desk: ReviewDesk = Depends(get_desk),
) -> GradeResponse:
    session = _require_session(desk)
    receipt = session.grade(body.outcome)
    if receipt is None:
        raise HTTPException(
            status_code=409, detail="Reveal the current card before grading it"
        )
    return GradeResponse(
        receipt=receipt,
        message=_grade_message(body.outcome, receipt.interval_days, session.state),
        session=session.view(),
    )


@router.delete("/session", status_code=204)
async def leave_review(desk: ReviewDesk = Depends(get_desk)) -> None:
    desk.leave()


@router.get("/writes/{write_id}", response_model=WriteStatus)
async def get_write(write_id: str, desk: ReviewDesk = Depends(get_desk)) -> WriteStatus:
    status = desk.tracker.get(write_id)
    if status is None:
        raise HTTPException(status_code=404, detail="Write not found")
    return status
