"""Stateless tracking computations over key results supplied in the request."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from personal_okrs.action.dependencies import context_to_dict, get_clock, series_to_dict
from personal_okrs.db.okr_store import key_result_from_payload, period_from_payload
from personal_okrs.tracking.clock import Clock
from personal_okrs.tracking.models import LINEAR, TARGET_MODES, KeyResult
from personal_okrs.tracking.period_math import current_week, get_period_context, total_weeks
from personal_okrs.tracking.status import equivalent_week, status_label, week_status
from personal_okrs.tracking.trajectory import get_weekly_targets, retarget_weekly_targets
from personal_okrs.tracking.week_series import build_week_series

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracking", tags=["tracking"])


class PeriodContextRequest(BaseModel):
    period: dict


class TargetsRequest(BaseModel):
    key_result: dict
    total_weeks: int


class StatusRequest(BaseModel):
    key_result: dict
    week_number: int
    actual_value: float
    period_start: date
    period_end: date


class SeriesRequest(BaseModel):
    key_result: dict
    period_start: date
    period_end: date
    current_week: Optional[int] = None  # None = derive from the clock


class RetargetRequest(BaseModel):
    target_value: float
    total_weeks: int
    target_mode: str = LINEAR
    weekly_targets: Optional[list[float]] = None


def _key_result(payload: dict) -> KeyResult:
    try:
        return key_result_from_payload(payload)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/period-context")
async def period_context(body: PeriodContextRequest, clock: Clock = Depends(get_clock)) -> dict:
    """Total and current week for a period supplied by the caller."""
    period = period_from_payload(body.period)
    if period is None:
        raise HTTPException(status_code=400, detail="period needs start_date and end_date")
    return context_to_dict(get_period_context(period, clock), clock)


@router.post("/targets")
async def weekly_targets(body: TargetsRequest) -> dict:
    """Per-week target trajectory (manual if valid, else linear)."""
    kr = _key_result(body.key_result)
    return {"targets": get_weekly_targets(kr, body.total_weeks)}


@router.post("/status")
async def status(body: StatusRequest) -> dict:
    """Status of actual_value at week_number."""
    kr = _key_result(body.key_result)
    targets = get_weekly_targets(kr, total_weeks(body.period_start, body.period_end))
    result = week_status(kr, body.week_number, body.actual_value, body.period_start, body.period_end)
    equivalent = equivalent_week(targets, body.actual_value)
    return {
        "status": result,
        "label": status_label(result),
        "equivalent_week": equivalent,
        "weeks_behind": body.week_number - equivalent,
    }


@router.post("/series")
async def series(body: SeriesRequest, clock: Clock = Depends(get_clock)) -> dict:
    """Weekly expected/actual chart data with carried-forward values."""
    kr = _key_result(body.key_result)
    week = body.current_week
    if week is None:
        week = current_week(body.period_start, body.period_end, clock.today())
    points = build_week_series(kr, body.period_start, body.period_end, week)
    return series_to_dict(points, week, kr.target_value)


@router.post("/retarget")
async def retarget(body: RetargetRequest) -> dict:
    """Recompute weekly targets after the final target value changes."""
    if body.target_mode not in TARGET_MODES:
        raise HTTPException(status_code=400, detail=f"Unknown target mode: {body.target_mode}")
    targets = retarget_weekly_targets(
        body.weekly_targets, body.target_value, body.total_weeks, body.target_mode,
    )
    return {"target_mode": body.target_mode, "weekly_targets": targets}
