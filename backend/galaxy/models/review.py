from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from galaxy.models.flashcard import Category


class Outcome(str, Enum):
    REMEMBERED = "remembered"
    FORGOTTEN = "forgotten"


class SessionState(str, Enum):
    EMPTY = "empty"
    SHOWING = "showing"
    COMPLETE = "complete"


class ReviewQueueEntry(BaseModel):
    """A due flashcard joined with its node's category and interval. Never persisted."""

    card_id: str
    node_id: str
    front: str
    back: str
    category: Category
    interval_days: int


class ReviewView(BaseModel):
    state: SessionState
    index: int | None = None
    total: int
    revealed: bool = False
    card: ReviewQueueEntry | None = None


class GradeRequest(BaseModel):
    outcome: Outcome


class GradeReceipt(BaseModel):
    card_id: str
    node_id: str
    outcome: Outcome
    interval_days: int
    next_due_at: datetime
    write_id: str


class GradeResponse(BaseModel):
    receipt: GradeReceipt
    message: str
    session: ReviewView


class WriteState(str, Enum):
    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"


class WriteStatus(BaseModel):
    write_id: str
    node_id: str
    state: WriteState
    error: str | None = None
