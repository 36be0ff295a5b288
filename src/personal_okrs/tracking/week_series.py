"""Per-week chart series for a key result — expected vs. actual with status dots.

Weeks without an entry carry forward the most recent earlier value up to
the current week; future weeks stay empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from personal_okrs.tracking.models import KeyResult, WeeklyProgress
from personal_okrs.tracking.period_math import current_week as week_of, total_weeks
from personal_okrs.tracking.status import ON_TRACK, status_from_targets
from personal_okrs.tracking.trajectory import resolve_targets, target_for_week


@dataclass
class WeekPoint:
    """One week of the chart."""

    week: int
    expected: float
    actual: float | None  # None for future weeks
    status: str | None


def latest_entry_per_week(
    entries: list[WeeklyProgress],
    period_start: date | datetime,
    period_end: date | datetime,
) -> dict[int, WeeklyProgress]:
    """Map week number -> most recently recorded entry for that week.

    Entries dated before the period (week 0) count as week 1, which keeps
    old history visible after the period dates are edited.
    """
    by_week: dict[int, WeeklyProgress] = {}
    for entry in entries:
        week = week_of(period_start, period_end, entry.week_start_date)
        if week == 0:
            week = 1
        existing = by_week.get(week)
        if existing is None or entry.recorded_at > existing.recorded_at:
            by_week[week] = entry
    return by_week


def build_week_series(
    key_result: KeyResult,
    period_start: date | datetime,
    period_end: date | datetime,
    current_week: int,
) -> list[WeekPoint]:
    """Build the chart series for weeks 1..total_weeks."""
    weeks = total_weeks(period_start, period_end)
    targets = resolve_targets(key_result, weeks)
    by_week = latest_entry_per_week(key_result.weekly_progress, period_start, period_end)

    series: list[WeekPoint] = []
    for week in range(1, weeks + 1):
        actual: float | None = None
        status: str | None = None

        entry = by_week.get(week)
        if entry is not None:
            actual = entry.value
            status = entry.status
        elif week <= current_week:
            actual = 0
            for earlier in range(week - 1, 0, -1):
                if earlier in by_week:
                    actual = by_week[earlier].value
                    status = by_week[earlier].status
                    break

        if week <= current_week and actual is not None and not status:
            status = status_from_targets(targets, week, actual)

        series.append(WeekPoint(
            week=week,
            expected=target_for_week(targets, week),
            actual=actual,
            status=status,
        ))
    return series


def series_status(series: list[WeekPoint], current_week: int) -> str:
    """Status shown for the current week; on-track when there is nothing to show."""
    for point in series:
        if point.week == current_week and point.status:
            return point.status
    return ON_TRACK


def chart_y_max(series: list[WeekPoint], target_value: float) -> float:
    """Upper bound of the chart's value axis with 10% headroom."""
    max_actual = max((p.actual or 0 for p in series), default=0)
    top = max(target_value or 0, max_actual)
    return top * 1.1 if top > 0 else 10
