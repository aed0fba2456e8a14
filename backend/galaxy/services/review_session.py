"""
Review session state machine.

    EMPTY                                   (no due cards)
    SHOWING(i, revealed=False) --reveal-->  SHOWING(i, revealed=True)
    SHOWING(i, revealed=True)  --grade-->   SHOWING(i+1, False) | COMPLETE

EMPTY and COMPLETE are terminal; the only way out is building a new session.
Invalid calls (reveal/grade in a terminal state, grade before reveal) are
no-ops: reveal() and grade() return None and the cursor does not move.

Grading schedules the owning node through scheduler.schedule_review and hands
the write to a WriteTracker. The write runs as its own task; the transition
never waits for it, and its outcome is read from the tracker by write id.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine, Sequence
from datetime import datetime
from typing import Any

from galaxy.models.review import (
    GradeReceipt,
    Outcome,
    ReviewQueueEntry,
    ReviewView,
    SessionState,
)
from galaxy.services.scheduler import schedule_review
from galaxy.services.task_registry import WriteTracker

logger = logging.getLogger(__name__)

PersistInterval = Callable[[str, int, datetime], Coroutine[Any, Any, Any]]


class ReviewSession:
    def __init__(
        self,
        entries: Sequence[ReviewQueueEntry],
        persist: PersistInterval,
        tracker: WriteTracker,
    ) -> None:
        self._entries: tuple[ReviewQueueEntry, ...] = tuple(entries)
        self._persist = persist
        self._tracker = tracker
        self._index = 0
        self._revealed = False
        self._state = SessionState.SHOWING if self._entries else SessionState.EMPTY

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def index(self) -> int | None:
        return self._index if self._state is SessionState.SHOWING else None

    @property
    def revealed(self) -> bool:
        return self._state is SessionState.SHOWING and self._revealed

    @property
    def entries(self) -> tuple[ReviewQueueEntry, ...]:
        return self._entries

    @property
    def current(self) -> ReviewQueueEntry | None:
        if self._state is not SessionState.SHOWING:
            return None
        return self._entries[self._index]

    def reveal(self) -> ReviewQueueEntry | None:
        """Show the back of the current card. Idempotent while showing."""
        if self._state is not SessionState.SHOWING:
            logger.debug("reveal() ignored in state %s", self._state.value)
            return None
        self._revealed = True
        return self._entries[self._index]

    def grade(self, outcome: Outcome, now: datetime | None = None) -> GradeReceipt | None:
        """
        Grade the current, revealed card and advance.

        Returns None without any effect unless the card is revealed.
        """
        if self._state is not SessionState.SHOWING or not self._revealed:
            logger.debug("grade() ignored: state=%s revealed=%s", self._state.value, self._revealed)
            return None

        entry = self._entries[self._index]
        result = schedule_review(entry.interval_days, outcome, now=now)
        write_id = self._tracker.start(
            entry.node_id,
            self._persist(entry.node_id, result.interval_days, result.next_due_at),
        )

        self._revealed = False
        if self._index + 1 < len(self._entries):
            self._index += 1
        else:
            self._state = SessionState.COMPLETE

        return GradeReceipt(
            card_id=entry.card_id,
            node_id=entry.node_id,
            outcome=outcome,
            interval_days=result.interval_days,
            next_due_at=result.next_due_at,
            write_id=write_id,
        )

    def view(self) -> ReviewView:
        return ReviewView(
            state=self._state,
            index=self.index,
            total=len(self._entries),
            revealed=self.revealed,
            card=self.current,
        )


def build_session(
    entries: Sequence[ReviewQueueEntry],
    persist: PersistInterval,
    tracker: WriteTracker,
) -> ReviewSession:
    return ReviewSession(entries, persist, tracker)


class ReviewDesk:
    """
    Owns the one review session that exists at a time, plus the write tracker.

    Held on the application state and passed to route handlers; entering
    review mode replaces the session, leaving discards it. Writes already
    started keep running after the session is gone.
    """

    def __init__(self, persist: PersistInterval, tracker: WriteTracker | None = None) -> None:
        self._persist = persist
        self.tracker = tracker or WriteTracker()
        self.session: ReviewSession | None = None

    def enter(self, entries: Sequence[ReviewQueueEntry]) -> ReviewSession:
        self.session = build_session(entries, self._persist, self.tracker)
        logger.info("Review session built with %d due cards", len(self.session.entries))
        return self.session

    def leave(self) -> bool:
        had_session = self.session is not None
        self.session = None
        return had_session
