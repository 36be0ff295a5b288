"""Coaching context route — what the coach model gets to see."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from personal_okrs.action.dependencies import get_clock, get_user_id, load_active_period
from personal_okrs.db import okr_store
from personal_okrs.db.connection import get_session
from personal_okrs.tracking.clock import Clock
from personal_okrs.tracking.coaching_context import (
    build_coaching_context,
    coach_prompt,
    concise_summary,
)
from personal_okrs.tracking.period_math import get_period_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coaching", tags=["coaching"])


@router.get("/context")
async def coaching_context(
    recent_check_ins: Optional[int] = Query(None, ge=0, le=52),
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Markdown + structured context for a coaching session on the active period."""
    limit = settings.coaching_recent_check_ins if recent_check_ins is None else recent_check_ins

    objectives = []
    check_ins = []
    try:
        period = await load_active_period(session, user_id)
        if period is not None:
            rows = await okr_store.list_objectives(session, user_id, period.id)
            objectives = [okr_store.objective_from_row(r) for r in rows]
            if limit > 0:
                ci_rows = await okr_store.list_check_ins(session, user_id, period.id, limit=limit)
                check_ins = [okr_store.check_in_from_row(r) for r in ci_rows]
    except Exception:
        logger.exception("Error building coaching context for %s", user_id)
        return JSONResponse({"error": "Failed to build coaching context"}, status_code=500)

    ctx = get_period_context(period, clock)
    built = build_coaching_context(period, objectives, check_ins, ctx, recent_check_ins=limit)
    return {
        "system_prompt": coach_prompt(settings),
        "summary": built.summary,
        "concise_summary": concise_summary(built.data),
        "data": built.data,
    }
