"""Objective roll-up — overall status, status counts and completion."""

from __future__ import annotations

from dataclasses import dataclass, field

from personal_okrs.tracking.models import KeyResult, Objective
from personal_okrs.tracking.period_math import PeriodContext
from personal_okrs.tracking.status import (
    STATUSES,
    current_progress,
    effective_status,
    week_status,
    worst_status,
)


@dataclass
class KeyResultSnapshot:
    id: str | None
    description: str
    current_value: float
    target_value: float
    unit: str
    completion_pct: float
    status: str


@dataclass
class ObjectiveSummary:
    """Roll-up of an objective's key results at the current week."""

    id: str | None
    title: str
    overall_status: str
    status_counts: dict[str, int]
    overall_progress: float  # mean completion %, 0 with no key results
    key_results: list[KeyResultSnapshot] = field(default_factory=list)


def completion_pct(key_result: KeyResult, current: float | None = None) -> float:
    """Current progress as a percentage of the final target."""
    if current is None:
        current = current_progress(key_result)
    if not key_result.target_value or key_result.target_value <= 0:
        return 0.0
    return current / key_result.target_value * 100


def snapshot_key_result(key_result: KeyResult, context: PeriodContext) -> KeyResultSnapshot:
    current = current_progress(key_result)
    computed = week_status(
        key_result, context.current_week, current, context.start_date, context.end_date,
    )
    return KeyResultSnapshot(
        id=key_result.id,
        description=key_result.description,
        current_value=current,
        target_value=key_result.target_value,
        unit=key_result.unit,
        completion_pct=round(completion_pct(key_result, current), 1),
        status=effective_status(key_result, computed),
    )


def summarize_objective(objective: Objective, context: PeriodContext) -> ObjectiveSummary:
    """Summarise an objective: its status is the worst of its key results."""
    snapshots = [snapshot_key_result(kr, context) for kr in objective.key_results]

    counts = {s: 0 for s in STATUSES}
    for snap in snapshots:
        counts[snap.status] = counts.get(snap.status, 0) + 1

    if snapshots:
        overall_progress = sum(
            completion_pct(kr) for kr in objective.key_results
        ) / len(snapshots)
    else:
        overall_progress = 0.0

    return ObjectiveSummary(
        id=objective.id,
        title=objective.title,
        overall_status=worst_status(s.status for s in snapshots),
        status_counts=counts,
        overall_progress=round(overall_progress, 1),
        key_results=snapshots,
    )
