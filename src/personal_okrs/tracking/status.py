"""Key result status classification.

Status is judged in weeks, not percentages: the recorded value is mapped
back onto the trajectory ("which week's target does this satisfy?") and
the gap to the week being evaluated decides the status.

    weeks behind < 1   -> on-track
    weeks behind < 2   -> needs-attention
    otherwise          -> behind
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from personal_okrs.tracking.models import KeyResult
from personal_okrs.tracking.period_math import total_weeks
from personal_okrs.tracking.trajectory import resolve_targets

ON_TRACK = "on-track"
NEEDS_ATTENTION = "needs-attention"
BEHIND = "behind"

# Best to worst; the worst status dominates when aggregating.
STATUSES = (ON_TRACK, NEEDS_ATTENTION, BEHIND)

NEEDS_ATTENTION_WEEKS = 1
BEHIND_WEEKS = 2

STATUS_COLORS = {
    ON_TRACK: "text-success-500",
    NEEDS_ATTENTION: "text-warning-500",
    BEHIND: "text-error-500",
}

STATUS_LABELS = {
    ON_TRACK: "On Track",
    NEEDS_ATTENTION: "Needs Attention",
    BEHIND: "Behind",
}


def current_progress(key_result: KeyResult) -> float:
    """Value of the most recently recorded progress entry, or 0."""
    if not key_result.weekly_progress:
        return 0
    latest = max(key_result.weekly_progress, key=lambda wp: wp.recorded_at)
    return latest.value


get_current_progress = current_progress


def equivalent_week(targets: list[float], actual_value: float) -> int:
    """Last week (1-based) whose target the value reaches, scanning in order.

    Stops at the first week whose target is above the value; 0 when even
    week 1 is out of reach. Non-monotonic manual curves are only scanned up
    to that first miss, so a later lower target does not count.
    """
    week = 0
    for i, target in enumerate(targets):
        if target <= actual_value:
            week = i + 1
        else:
            break
    return week


def classify_weeks_behind(weeks_behind: float) -> str:
    if weeks_behind < NEEDS_ATTENTION_WEEKS:
        return ON_TRACK
    if weeks_behind < BEHIND_WEEKS:
        return NEEDS_ATTENTION
    return BEHIND


def status_from_targets(targets: list[float], week_number: int, actual_value: float) -> str:
    """Status of actual_value at week_number against a precomputed trajectory."""
    return classify_weeks_behind(week_number - equivalent_week(targets, actual_value))


def week_status(
    key_result: KeyResult,
    week_number: int,
    actual_value: float,
    period_start: date | datetime,
    period_end: date | datetime,
) -> str:
    """Single source of truth for a key result's status in a given week."""
    targets = resolve_targets(key_result, total_weeks(period_start, period_end))
    return status_from_targets(targets, week_number, actual_value)


calculate_week_status = week_status


def status_rank(status: str | None) -> int:
    """Position in STATUSES; unknown or missing statuses rank as on-track."""
    try:
        return STATUSES.index(status)
    except ValueError:
        return 0


def worst_status(statuses: Iterable[str | None]) -> str:
    """The worst of several statuses. An empty collection is on-track."""
    worst = ON_TRACK
    for status in statuses:
        if status_rank(status) > status_rank(worst):
            worst = status
    return worst


def effective_status(key_result: KeyResult, computed: str) -> str:
    """A manual status override wins over the computed status."""
    if key_result.status_override in STATUSES:
        return key_result.status_override
    return computed


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, STATUS_COLORS[ON_TRACK])


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, STATUS_LABELS[ON_TRACK])
