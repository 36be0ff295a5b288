"""Shared dependencies for API routers — caller identity, clock, period loading."""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from personal_okrs.db import okr_store
from personal_okrs.tracking.clock import Clock, OverridableClock, clock_from_settings
from personal_okrs.tracking.models import Period
from personal_okrs.tracking.period_math import PeriodContext, period_status
from personal_okrs.tracking.week_series import WeekPoint, chart_y_max, series_status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Process clock (date override toggled from the settings screen)
# ---------------------------------------------------------------------------

_clock = clock_from_settings(settings)


def get_clock() -> OverridableClock:
    return _clock


# ---------------------------------------------------------------------------
# Caller identity
# ---------------------------------------------------------------------------


async def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """User id forwarded by the auth gateway; row-level security does the rest."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    return x_user_id.strip()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def load_active_period(session: AsyncSession, user_id: str) -> Optional[Period]:
    row = await okr_store.get_active_period(session, user_id)
    return okr_store.period_from_row(row) if row is not None else None


def apply_status_override(row, status_override: Optional[str], reason: Optional[str]) -> None:
    """Store a new override on a key result row; a plain value clears an old one."""
    if status_override is not None or row.status_override is not None:
        row.status_override = status_override
        row.status_override_reason = reason


def context_to_dict(ctx: PeriodContext, clock: Clock) -> dict:
    return {
        "name": ctx.name,
        "start_date": ctx.start_date.isoformat(),
        "end_date": ctx.end_date.isoformat(),
        "total_weeks": ctx.total_weeks,
        "current_week": ctx.current_week,
        "period_status": period_status(ctx.start_date, ctx.end_date, clock.today()),
    }


def series_to_dict(series: list[WeekPoint], current_week: int, target_value: float) -> dict:
    return {
        "current_week": current_week,
        "status": series_status(series, current_week),
        "y_axis_max": chart_y_max(series, target_value),
        "weeks": [asdict(p) for p in series],
    }
