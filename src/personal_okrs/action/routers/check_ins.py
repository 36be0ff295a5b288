"""Weekly check-in routes — submit this week's values and reflection, list history."""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from personal_okrs.action.dependencies import (
    apply_status_override,
    context_to_dict,
    get_clock,
    get_user_id,
    load_active_period,
)
from personal_okrs.db import okr_store
from personal_okrs.db.connection import get_session
from personal_okrs.tracking.checkin import completed_weeks, record_progress, upsert_progress
from personal_okrs.tracking.clock import Clock
from personal_okrs.tracking.models import Reflection, WeeklyCheckIn
from personal_okrs.tracking.objective_summary import completion_pct
from personal_okrs.tracking.period_math import get_period_context, week_start, week_start_for_week
from personal_okrs.tracking.status import STATUSES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/check-ins", tags=["check-ins"])


class ProgressUpdate(BaseModel):
    key_result_id: str
    value: float
    status_override: Optional[str] = None
    status_override_reason: Optional[str] = None


class ReflectionBody(BaseModel):
    what_went_well: str = ""
    what_didnt_go_well: str = ""
    what_will_i_change: str = ""


class CheckInRequest(BaseModel):
    reflection: ReflectionBody
    progress_updates: list[ProgressUpdate] = []


_REFLECTION_LABELS = {
    "what_went_well": "What went well",
    "what_didnt_go_well": "What didn't go well",
    "what_will_i_change": "What will I change",
}


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post("")
async def submit_check_in(
    body: CheckInRequest,
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Record each key result's value for this week, then save the reflection.

    Values and the check-in are written in one transaction; resubmitting in
    the same week replaces both.
    """
    for field, label in _REFLECTION_LABELS.items():
        if not getattr(body.reflection, field).strip():
            raise HTTPException(status_code=400, detail=f'Please fill in "{label}"')
    for update in body.progress_updates:
        if update.status_override is not None and update.status_override not in STATUSES:
            raise HTTPException(status_code=400, detail=f"Unknown status: {update.status_override}")

    try:
        period = await load_active_period(session, user_id)
        if period is None:
            raise HTTPException(status_code=400, detail="No active period")
        ctx = get_period_context(period, clock)

        results = []
        values = {}
        for update in body.progress_updates:
            row = await okr_store.get_key_result(session, user_id, update.key_result_id)
            if row is None:
                raise HTTPException(status_code=404, detail=f"Key result not found: {update.key_result_id}")

            kr = okr_store.key_result_from_row(row)
            entry = record_progress(kr, update.value, ctx, clock, update.status_override)
            apply_status_override(row, update.status_override, update.status_override_reason)
            await okr_store.add_weekly_progress(session, update.key_result_id, entry, commit=False)

            kr.weekly_progress = upsert_progress(kr.weekly_progress, entry)
            values[update.key_result_id] = entry.value
            results.append({
                "key_result_id": update.key_result_id,
                "value": entry.value,
                "status": entry.status,
                "completion_pct": completion_pct(kr),
            })

        check_in = WeeklyCheckIn(
            week_start_date=week_start(clock.today()),
            reflection=Reflection(**body.reflection.model_dump()),
            progress_updates=values,
            completed_at=clock.now(),
        )
        saved = await okr_store.add_check_in(session, user_id, period.id, check_in)
    except HTTPException:
        await session.rollback()
        raise
    except Exception:
        logger.exception("Error saving check-in for %s", user_id)
        await session.rollback()
        return JSONResponse({"error": "Failed to save check-in"}, status_code=500)

    return {
        "id": saved.id,
        "week_start_date": check_in.week_start_date.isoformat(),
        "current_week": ctx.current_week,
        "key_results": results,
    }


@router.get("")
async def check_in_history(
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Check-ins of the active period, newest first, with the per-week completion strip."""
    try:
        period = await load_active_period(session, user_id)
        if period is None:
            raise HTTPException(status_code=404, detail="No active period")
        rows = await okr_store.list_check_ins(session, user_id, period.id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error loading check-ins for %s", user_id)
        return JSONResponse({"error": "Failed to load check-ins"}, status_code=500)

    ctx = get_period_context(period, clock)
    check_ins = [okr_store.check_in_from_row(r) for r in rows]
    done = completed_weeks(check_ins, ctx)
    this_week = week_start(clock.today())

    return {
        "context": context_to_dict(ctx, clock),
        "current_week_completed": any(ci.week_start_date == this_week for ci in check_ins),
        "weeks": [
            {
                "week": week,
                "week_start_date": week_start_for_week(ctx.start_date, week).isoformat(),
                "completed": week in done,
            }
            for week in range(1, ctx.total_weeks + 1)
        ],
        "check_ins": [
            {
                "id": ci.id,
                "week_start_date": ci.week_start_date.isoformat(),
                "completed_at": ci.completed_at.isoformat() if ci.completed_at else None,
                "reflection": asdict(ci.reflection),
                "progress_updates": ci.progress_updates,
            }
            for ci in check_ins
        ],
    }
