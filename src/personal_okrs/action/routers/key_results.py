"""Key result routes — recording check-in values and chart series."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from personal_okrs.action.dependencies import (
    apply_status_override,
    get_clock,
    get_user_id,
    load_active_period,
    series_to_dict,
)
from personal_okrs.db import okr_store
from personal_okrs.db.connection import get_session
from personal_okrs.tracking.checkin import record_progress
from personal_okrs.tracking.clock import Clock
from personal_okrs.tracking.period_math import get_period_context
from personal_okrs.tracking.status import STATUSES
from personal_okrs.tracking.week_series import build_week_series

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/key-results", tags=["key-results"])


class ProgressRequest(BaseModel):
    value: float
    status_override: Optional[str] = None
    status_override_reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("/{key_result_id}/progress")
async def add_progress(
    key_result_id: str,
    body: ProgressRequest,
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Record this week's cumulative value; the status is computed unless overridden."""
    if body.status_override is not None and body.status_override not in STATUSES:
        raise HTTPException(status_code=400, detail=f"Unknown status: {body.status_override}")

    try:
        row = await okr_store.get_key_result(session, user_id, key_result_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Key result not found")
        period = await load_active_period(session, user_id)
        if period is None:
            raise HTTPException(status_code=400, detail="No active period")

        ctx = get_period_context(period, clock)
        kr = okr_store.key_result_from_row(row)
        entry = record_progress(kr, body.value, ctx, clock, body.status_override)

        apply_status_override(row, body.status_override, body.status_override_reason)

        saved = await okr_store.add_weekly_progress(session, key_result_id, entry)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error recording progress for key result %s", key_result_id)
        await session.rollback()
        return JSONResponse({"error": "Failed to record progress"}, status_code=500)

    logger.info(
        "Recorded %s for key result %s (week %d, %s)",
        entry.value, key_result_id, ctx.current_week, entry.status,
    )
    return {
        "key_result_id": key_result_id,
        "week_start_date": saved.week_start_date.isoformat(),
        "value": saved.value,
        "status": saved.status,
        "current_week": ctx.current_week,
    }


@router.get("/{key_result_id}/series")
async def key_result_series(
    key_result_id: str,
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Chart series for a stored key result within the active period."""
    try:
        row = await okr_store.get_key_result(session, user_id, key_result_id)
        if row is None:
            raise HTTPException(status_code=404, detail="Key result not found")
        period = await load_active_period(session, user_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error loading key result %s", key_result_id)
        return JSONResponse({"error": "Failed to load key result"}, status_code=500)

    ctx = get_period_context(period, clock)
    kr = okr_store.key_result_from_row(row)
    points = build_week_series(kr, ctx.start_date, ctx.end_date, ctx.current_week)
    return series_to_dict(points, ctx.current_week, kr.target_value)
