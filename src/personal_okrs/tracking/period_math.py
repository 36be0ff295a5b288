"""Period calendar math — week counts and the current week of a period.

Weeks are Monday-aligned: a period starting on a Wednesday is still in
week 1 until the following Sunday. All functions are pure and accept
either dates or datetimes (time of day is ignored).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from personal_okrs.tracking.clock import Clock
from personal_okrs.tracking.models import Period

logger = logging.getLogger(__name__)

NOT_STARTED = "not-started"
ACTIVE = "active"
COMPLETED = "completed"


@dataclass
class PeriodContext:
    """Everything a view needs to agree on "what week is it"."""

    start_date: date
    end_date: date
    total_weeks: int
    current_week: int
    name: str


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def total_weeks(start_date: date | datetime, end_date: date | datetime) -> int:
    """Number of weeks in the inclusive range, rounded up. Inverted ranges give 0."""
    days = (_as_date(end_date) - _as_date(start_date)).days + 1
    if days <= 0:
        return 0
    return math.ceil(days / 7)


def week_start(day: date | datetime) -> date:
    """Monday of the week containing day."""
    day = _as_date(day)
    return day - timedelta(days=day.weekday())


def current_week(
    start_date: date | datetime,
    end_date: date | datetime,
    now: date | datetime,
) -> int:
    """1-based week of now within the period.

    Returns 0 before the period starts and the last week once it has ended.
    """
    start, end, today = _as_date(start_date), _as_date(end_date), _as_date(now)
    weeks = total_weeks(start, end)

    if today < start:
        return 0
    if today > end:
        return weeks

    weeks_since_start = (week_start(today) - week_start(start)).days // 7
    return min(weeks_since_start + 1, weeks)


def period_status(
    start_date: date | datetime,
    end_date: date | datetime,
    now: date | datetime,
) -> str:
    """Classify a period as not-started, active or completed relative to now."""
    today = _as_date(now)
    if today < _as_date(start_date):
        return NOT_STARTED
    if today > _as_date(end_date):
        return COMPLETED
    return ACTIVE


def week_start_for_week(start_date: date | datetime, week_number: int) -> date:
    """Monday that begins the given 1-based week of a period."""
    return week_start(start_date) + timedelta(weeks=max(week_number, 1) - 1)


def week_of_date(start_date: date | datetime, day: date | datetime) -> int:
    """Unclamped 1-based week of day counted in 7-day steps from start_date."""
    return (_as_date(day) - _as_date(start_date)).days // 7 + 1


def get_period_context(period: Period | None, clock: Clock) -> PeriodContext:
    """Canonical period context for the active period.

    With no active period the context collapses to today with zero weeks.
    """
    today = clock.today()
    if period is None:
        return PeriodContext(
            start_date=today,
            end_date=today,
            total_weeks=0,
            current_week=0,
            name="",
        )

    weeks = total_weeks(period.start_date, period.end_date)
    if weeks == 0:
        logger.debug("Period %r has an empty date range", period.name)

    return PeriodContext(
        start_date=period.start_date,
        end_date=period.end_date,
        total_weeks=weeks,
        current_week=current_week(period.start_date, period.end_date, today),
        name=period.name,
    )
