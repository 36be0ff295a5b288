"""Target trajectories — expected cumulative value for each week of a period.

Pure functions. A trajectory is a list where index i holds the value that
should have been reached by the end of week i + 1.
"""

from __future__ import annotations

import logging

from personal_okrs.tracking.models import LINEAR, MANUAL, KeyResult

logger = logging.getLogger(__name__)


def linear_targets(target_value: float, total_weeks: int) -> list[float]:
    """Evenly ramp from 0 to target_value over total_weeks.

    The last element equals target_value exactly. Returns [] for
    total_weeks <= 0.
    """
    if total_weeks <= 0:
        return []
    targets = [target_value * (i + 1) / total_weeks for i in range(total_weeks)]
    targets[-1] = float(target_value)  # no float drift on the final target
    return targets


def resolve_targets(key_result: KeyResult, total_weeks: int) -> list[float]:
    """Weekly targets for a key result.

    Manual targets are used as-is when their length matches the period;
    otherwise (linear mode, missing or stale manual data) a linear ramp to
    the key result's target value is generated.
    """
    manual = key_result.weekly_targets
    if key_result.target_mode == MANUAL and manual is not None:
        if len(manual) == total_weeks:
            return list(manual)
        logger.debug(
            "Manual targets for %r have %d weeks, period has %d; using linear",
            key_result.description, len(manual), total_weeks,
        )
    return linear_targets(key_result.target_value or 0, total_weeks)


get_weekly_targets = resolve_targets


def retarget_weekly_targets(
    current_targets: list[float] | None,
    new_target_value: float,
    total_weeks: int,
    target_mode: str = LINEAR,
) -> list[float]:
    """Recompute per-week targets after the final target value changes.

    Linear mode always regenerates. Manual mode keeps the user's curve:
    with no values yet it starts from a linear ramp, otherwise every value
    is scaled by new_target / max(current) so the shape is preserved.
    """
    current = list(current_targets or [])
    if new_target_value is None or new_target_value <= 0:
        return current

    if target_mode != MANUAL or not current:
        return linear_targets(new_target_value, total_weeks)

    current_max = max(current)
    if current_max <= 0 or current_max == new_target_value:
        return current

    scale = new_target_value / current_max
    return [v * scale for v in current]


def target_for_week(targets: list[float], week_number: int) -> float:
    """Expected value for a 1-based week; 0.0 when outside the trajectory."""
    if 1 <= week_number <= len(targets):
        return targets[week_number - 1]
    return 0.0
