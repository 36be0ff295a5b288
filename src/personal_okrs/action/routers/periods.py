"""Active period routes — context and objective summaries."""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from personal_okrs.action.dependencies import (
    context_to_dict,
    get_clock,
    get_user_id,
    load_active_period,
)
from personal_okrs.db import okr_store
from personal_okrs.db.connection import get_session
from personal_okrs.tracking.clock import Clock
from personal_okrs.tracking.objective_summary import summarize_objective
from personal_okrs.tracking.period_math import get_period_context

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/periods", tags=["periods"])


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/active/context")
async def active_context(
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Canonical period context (dates, total weeks, current week) for the active period."""
    try:
        period = await load_active_period(session, user_id)
    except Exception:
        logger.exception("Error loading active period for %s", user_id)
        return JSONResponse({"error": "Failed to load active period"}, status_code=500)

    ctx = get_period_context(period, clock)
    result = context_to_dict(ctx, clock)
    result["period_id"] = period.id if period else None
    return result


@router.put("/{period_id}/activate")
async def activate(
    period_id: str,
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
) -> dict:
    """Make a period the user's single active period."""
    try:
        found = await okr_store.set_active_period(session, user_id, period_id)
    except Exception:
        logger.exception("Error activating period %s", period_id)
        await session.rollback()
        return JSONResponse({"error": "Failed to activate period"}, status_code=500)

    if not found:
        raise HTTPException(status_code=404, detail="Period not found")
    return {"status": "activated", "period_id": period_id}


@router.get("/active/objectives")
async def active_objectives(
    user_id: str = Depends(get_user_id),
    session: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> dict:
    """Objectives of the active period with status roll-ups at the current week."""
    try:
        period = await load_active_period(session, user_id)
        if period is None:
            raise HTTPException(status_code=404, detail="No active period")
        rows = await okr_store.list_objectives(session, user_id, period.id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Error loading objectives for %s", user_id)
        return JSONResponse({"error": "Failed to load objectives"}, status_code=500)

    ctx = get_period_context(period, clock)
    summaries = [
        asdict(summarize_objective(okr_store.objective_from_row(row), ctx))
        for row in rows
    ]
    return {"context": context_to_dict(ctx, clock), "objectives": summaries}
