"""Plain data model for periods, objectives, key results and check-ins.

These are the canonical in-process shapes the tracking engine works on.
Storage rows and API payloads are normalised into them at the boundary
(see personal_okrs.db.okr_store).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

LINEAR = "linear"
MANUAL = "manual"
TARGET_MODES = (LINEAR, MANUAL)


@dataclass
class Period:
    """A named date range (e.g. a quarter), both bounds inclusive."""

    name: str
    start_date: date
    end_date: date
    is_active: bool = False
    id: str | None = None


@dataclass
class WeeklyProgress:
    """Cumulative progress recorded for the week starting on week_start_date."""

    week_start_date: date  # Monday
    value: float
    recorded_at: datetime
    status: str | None = None  # cached classification, may be missing on old rows


@dataclass
class KeyResult:
    """A measurable target with a cumulative numeric goal tracked weekly."""

    description: str
    target_value: float
    unit: str = ""
    target_mode: str = LINEAR
    weekly_targets: list[float] | None = None  # absolute cumulative values, manual mode only
    weekly_progress: list[WeeklyProgress] = field(default_factory=list)
    status_override: str | None = None
    status_override_reason: str | None = None
    id: str | None = None
    objective_id: str | None = None


@dataclass
class Objective:
    title: str
    description: str = ""
    key_results: list[KeyResult] = field(default_factory=list)
    id: str | None = None


@dataclass
class Reflection:
    """After-action review answers captured with a weekly check-in."""

    what_went_well: str = ""
    what_didnt_go_well: str = ""
    what_will_i_change: str = ""


@dataclass
class WeeklyCheckIn:
    week_start_date: date
    reflection: Reflection = field(default_factory=Reflection)
    progress_updates: dict[str, float] = field(default_factory=dict)  # key_result_id -> value
    completed_at: datetime | None = None
    id: str | None = None
