"""Date override routes used by the settings screen."""

import logging
from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from personal_okrs.action.dependencies import get_clock
from personal_okrs.tracking.clock import OverridableClock

logger = logging.getLogger(__name__)

router = APIRouter(tags=["clock"])


class OverrideRequest(BaseModel):
    override_date: date


def _clock_state(clock: OverridableClock) -> dict:
    override = clock.override_date()
    return {
        "today": clock.today().isoformat(),
        "testing_mode": clock.is_testing_mode(),
        "override_date": override.isoformat() if override else None,
    }


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/clock")
async def get_clock_state(clock: OverridableClock = Depends(get_clock)) -> dict:
    """Current effective date and whether an override is active."""
    return _clock_state(clock)


@router.put("/clock/override")
async def set_override(
    body: OverrideRequest,
    clock: OverridableClock = Depends(get_clock),
) -> dict:
    """Pretend today is body.override_date for every date-dependent calculation."""
    clock.set_override(body.override_date)
    return _clock_state(clock)


@router.delete("/clock/override")
async def clear_override(clock: OverridableClock = Depends(get_clock)) -> dict:
    """Go back to the real date."""
    clock.use_real_date()
    return _clock_state(clock)
