"""Recording weekly check-in values."""

from __future__ import annotations

from personal_okrs.tracking.clock import Clock
from personal_okrs.tracking.models import KeyResult, WeeklyCheckIn, WeeklyProgress
from personal_okrs.tracking.period_math import PeriodContext, week_of_date, week_start
from personal_okrs.tracking.status import STATUSES, week_status


def record_progress(
    key_result: KeyResult,
    value: float,
    context: PeriodContext,
    clock: Clock,
    status_override: str | None = None,
) -> WeeklyProgress:
    """Build the progress entry for this week's check-in.

    The entry is stamped with the Monday of the clock's current week. Its
    status is the override when one is given, otherwise the status of the
    new value at the period's current week.
    """
    if status_override in STATUSES:
        status = status_override
    else:
        status = week_status(
            key_result, context.current_week, value, context.start_date, context.end_date,
        )
    return WeeklyProgress(
        week_start_date=week_start(clock.today()),
        value=value,
        recorded_at=clock.now(),
        status=status,
    )


def upsert_progress(entries: list[WeeklyProgress], entry: WeeklyProgress) -> list[WeeklyProgress]:
    """New history list where entry replaces any entry for the same week."""
    kept = [e for e in entries if e.week_start_date != entry.week_start_date]
    kept.append(entry)
    return kept


def completed_weeks(check_ins: list[WeeklyCheckIn], context: PeriodContext) -> set[int]:
    """Week numbers that already have a check-in, clamped to the period."""
    if context.total_weeks <= 0:
        return set()
    return {
        min(max(week_of_date(context.start_date, ci.week_start_date), 1), context.total_weeks)
        for ci in check_ins
    }
