"""CRUD for periods, objectives and key results, plus row/payload normalisation.

This module is the persistence boundary: rows and JSON payloads (including
legacy camelCase keys from older clients) are converted here into the
canonical dataclasses of personal_okrs.tracking.models.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from personal_okrs.db.models import (
    CheckInRecord,
    KeyResultRecord,
    ObjectiveRecord,
    PeriodRecord,
    WeeklyProgressRecord,
)
from personal_okrs.tracking.clock import parse_iso_date
from personal_okrs.tracking.models import (
    LINEAR,
    TARGET_MODES,
    KeyResult,
    Objective,
    Period,
    Reflection,
    WeeklyCheckIn,
    WeeklyProgress,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_active_period(session: AsyncSession, user_id: str) -> PeriodRecord | None:
    """The user's active period, or None."""
    stmt = (
        select(PeriodRecord)
        .where(PeriodRecord.user_id == user_id, PeriodRecord.is_active.is_(True))
        .order_by(PeriodRecord.updated_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def get_period(session: AsyncSession, user_id: str, period_id: str) -> PeriodRecord | None:
    stmt = select(PeriodRecord).where(
        PeriodRecord.id == period_id, PeriodRecord.user_id == user_id,
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def set_active_period(session: AsyncSession, user_id: str, period_id: str) -> bool:
    """Make period_id the user's only active period. Returns False if not found."""
    period = await get_period(session, user_id, period_id)
    if period is None:
        return False

    await session.execute(
        update(PeriodRecord)
        .where(PeriodRecord.user_id == user_id, PeriodRecord.id != period_id)
        .values(is_active=False)
    )
    period.is_active = True
    await session.commit()
    logger.info("User %s activated period %s", user_id, period_id)
    return True


async def list_objectives(
    session: AsyncSession, user_id: str, period_id: str,
) -> list[ObjectiveRecord]:
    """Objectives of a period (key results and progress eagerly loaded), oldest first."""
    stmt = (
        select(ObjectiveRecord)
        .where(ObjectiveRecord.user_id == user_id, ObjectiveRecord.period_id == period_id)
        .order_by(ObjectiveRecord.created_at.asc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_key_result(
    session: AsyncSession, user_id: str, key_result_id: str,
) -> KeyResultRecord | None:
    stmt = select(KeyResultRecord).where(
        KeyResultRecord.id == key_result_id, KeyResultRecord.user_id == user_id,
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def add_weekly_progress(
    session: AsyncSession,
    key_result_id: str,
    entry: WeeklyProgress,
    commit: bool = True,
) -> WeeklyProgressRecord:
    """Insert or replace the progress row for entry's week.

    With commit=False the row is only flushed, so several writes can share
    one transaction.
    """
    stmt = select(WeeklyProgressRecord).where(
        WeeklyProgressRecord.key_result_id == key_result_id,
        WeeklyProgressRecord.week_start_date == entry.week_start_date,
    )
    result = await session.execute(stmt)
    row = result.scalars().first()

    if row is not None:
        row.value = entry.value
        row.status = entry.status
        row.recorded_at = entry.recorded_at
    else:
        row = WeeklyProgressRecord(
            key_result_id=key_result_id,
            week_start_date=entry.week_start_date,
            value=entry.value,
            status=entry.status,
            recorded_at=entry.recorded_at,
        )
        session.add(row)

    if not commit:
        await session.flush()
        return row
    await session.commit()
    await session.refresh(row)
    return row


async def list_check_ins(
    session: AsyncSession,
    user_id: str,
    period_id: str,
    limit: int | None = None,
) -> list[CheckInRecord]:
    """Check-ins of a period, newest week first."""
    stmt = (
        select(CheckInRecord)
        .where(CheckInRecord.user_id == user_id, CheckInRecord.period_id == period_id)
        .order_by(CheckInRecord.week_start_date.desc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def add_check_in(
    session: AsyncSession,
    user_id: str,
    period_id: str,
    check_in: WeeklyCheckIn,
) -> CheckInRecord:
    """Insert or replace the user's check-in for check_in's week, then commit."""
    stmt = select(CheckInRecord).where(
        CheckInRecord.user_id == user_id,
        CheckInRecord.period_id == period_id,
        CheckInRecord.week_start_date == check_in.week_start_date,
    )
    result = await session.execute(stmt)
    row = result.scalars().first()

    reflection = asdict(check_in.reflection)
    updates = [
        {"key_result_id": kr_id, "value": value}
        for kr_id, value in check_in.progress_updates.items()
    ]
    if row is not None:
        row.reflection = reflection
        row.progress_updates = updates
        row.completed_at = check_in.completed_at
    else:
        row = CheckInRecord(
            user_id=user_id,
            period_id=period_id,
            week_start_date=check_in.week_start_date,
            reflection=reflection,
            progress_updates=updates,
            completed_at=check_in.completed_at,
        )
        session.add(row)

    await session.commit()
    await session.refresh(row)
    logger.info("User %s checked in for week of %s", user_id, check_in.week_start_date)
    return row


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def _pick(payload: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present, non-None value among keys (canonical key first)."""
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return default


def _as_datetime(value: Any) -> datetime | None:
    """Timezone-aware datetime from a datetime, date or ISO string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        raw = str(value).strip()
        if not raw:
            return None
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _number(value: Any, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field} must be a number, got {value!r}") from None


def _float_list(values: Any) -> list[float] | None:
    if values is None:
        return None
    try:
        return [float(v) for v in values]
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed weekly targets: %r", values)
        return None


def _target_mode(value: Any) -> str:
    return value if value in TARGET_MODES else LINEAR


def progress_from_payload(payload: dict[str, Any]) -> WeeklyProgress | None:
    """Progress entry from a JSON payload; None when the week date is unusable.

    Raises ValueError when the value is not numeric.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"progress entries must be objects, got {payload!r}")
    week = parse_iso_date(_pick(payload, "week_start_date", "weekStartDate"))
    if week is None:
        logger.debug("Dropping progress entry without a week date: %r", payload)
        return None
    recorded = _as_datetime(_pick(payload, "recorded_at", "recordedAt")) or _EPOCH
    return WeeklyProgress(
        week_start_date=week,
        value=_number(_pick(payload, "value", default=0), "value"),
        recorded_at=recorded,
        status=payload.get("status") or None,
    )


def period_from_payload(payload: dict[str, Any]) -> Period | None:
    start = parse_iso_date(_pick(payload, "start_date", "startDate"))
    end = parse_iso_date(_pick(payload, "end_date", "endDate"))
    if start is None or end is None:
        return None
    return Period(
        name=payload.get("name") or "",
        start_date=start,
        end_date=end,
        is_active=bool(_pick(payload, "is_active", "isActive", default=False)),
        id=payload.get("id"),
    )


def key_result_from_payload(payload: dict[str, Any]) -> KeyResult:
    """Key result from a JSON payload. Raises ValueError for non-numeric values."""
    raw_progress = _pick(payload, "weekly_progress", "weeklyProgress", default=[])
    if not isinstance(raw_progress, list):
        raise ValueError("weekly_progress must be a list")
    progress = [p for p in (progress_from_payload(wp) for wp in raw_progress) if p is not None]
    return KeyResult(
        description=payload.get("description") or "",
        target_value=_number(_pick(payload, "target_value", "targetValue", default=0), "target_value"),
        unit=payload.get("unit") or "",
        target_mode=_target_mode(_pick(payload, "target_mode", "targetMode")),
        weekly_targets=_float_list(_pick(payload, "weekly_targets", "weeklyTargets")),
        weekly_progress=progress,
        status_override=_pick(payload, "status_override", "statusOverride"),
        status_override_reason=_pick(payload, "status_override_reason", "statusOverrideReason"),
        id=payload.get("id"),
        objective_id=_pick(payload, "objective_id", "objectiveId"),
    )


def period_from_row(row: PeriodRecord) -> Period:
    return Period(
        name=row.name,
        start_date=row.start_date,
        end_date=row.end_date,
        is_active=bool(row.is_active),
        id=row.id,
    )


def progress_from_row(row: WeeklyProgressRecord) -> WeeklyProgress:
    return WeeklyProgress(
        week_start_date=row.week_start_date,
        value=row.value,
        recorded_at=_as_datetime(row.recorded_at) or _EPOCH,
        status=row.status,
    )


def key_result_from_row(row: KeyResultRecord) -> KeyResult:
    return KeyResult(
        description=row.description,
        target_value=row.target_value or 0,
        unit=row.unit or "",
        target_mode=_target_mode(row.target_mode),
        weekly_targets=_float_list(row.weekly_targets),
        weekly_progress=[progress_from_row(wp) for wp in row.weekly_progress or []],
        status_override=row.status_override,
        status_override_reason=row.status_override_reason,
        id=row.id,
        objective_id=row.objective_id,
    )


def objective_from_row(row: ObjectiveRecord) -> Objective:
    return Objective(
        title=row.title,
        description=row.description or "",
        key_results=[key_result_from_row(kr) for kr in row.key_results or []],
        id=row.id,
    )


def check_in_from_row(row: CheckInRecord) -> WeeklyCheckIn:
    reflection = row.reflection or {}
    updates = {
        str(_pick(u, "key_result_id", "keyResultId")): float(u.get("value") or 0)
        for u in row.progress_updates or []
        if _pick(u, "key_result_id", "keyResultId") is not None
    }
    return WeeklyCheckIn(
        week_start_date=row.week_start_date,
        reflection=Reflection(
            what_went_well=reflection.get("what_went_well") or "",
            what_didnt_go_well=reflection.get("what_didnt_go_well") or "",
            what_will_i_change=reflection.get("what_will_i_change") or "",
        ),
        progress_updates=updates,
        completed_at=_as_datetime(row.completed_at),
        id=row.id,
    )
