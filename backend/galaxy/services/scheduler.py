"""
Review interval scheduling.

A single multiplier rule, simpler than SM-2:
  - Forgotten            -> 1 day
  - Remembered, first    -> 1 day
  - Remembered, interval -> ceil(interval * 2.5) days
No ease factor, no cap, no jitter.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from galaxy.models.review import Outcome

GROWTH_FACTOR = 2.5
MIN_INTERVAL_DAYS = 1


@dataclass(frozen=True)
class ScheduleResult:
    interval_days: int
    next_due_at: datetime


def next_interval(previous_interval_days: int, outcome: Outcome) -> int:
    if previous_interval_days < 0:
        raise ValueError(f"interval must be non-negative, got {previous_interval_days}")
    if outcome is Outcome.FORGOTTEN or previous_interval_days == 0:
        return MIN_INTERVAL_DAYS
    return math.ceil(previous_interval_days * GROWTH_FACTOR)


def schedule_review(
    previous_interval_days: int,
    outcome: Outcome,
    now: datetime | None = None,
) -> ScheduleResult:
    """
    Compute the new interval and next due time for one graded review.

    `now` defaults to the current UTC time; the due time is always
    exactly `now + interval_days`.
    """
    interval = next_interval(previous_interval_days, outcome)
    base = now if now is not None else datetime.now(timezone.utc)
    return ScheduleResult(interval_days=interval, next_due_at=base + timedelta(days=interval))
