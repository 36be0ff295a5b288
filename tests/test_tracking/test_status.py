"""Tests for status classification — weeks-behind heuristic and aggregation."""

from datetime import date, datetime, timezone

import pytest

from personal_okrs.tracking.models import KeyResult, WeeklyProgress
from personal_okrs.tracking.status import (
    BEHIND,
    NEEDS_ATTENTION,
    ON_TRACK,
    STATUSES,
    calculate_week_status,
    classify_weeks_behind,
    current_progress,
    effective_status,
    equivalent_week,
    status_color,
    status_from_targets,
    status_label,
    week_status,
    worst_status,
)
from personal_okrs.tracking.trajectory import linear_targets

Q1_START = date(2025, 1, 1)
Q1_END = date(2025, 3, 31)


def _entry(week_start, value, recorded_day, status=None):
    return WeeklyProgress(
        week_start_date=week_start,
        value=value,
        recorded_at=datetime(2025, 1, recorded_day, 12, 0, tzinfo=timezone.utc),
        status=status,
    )


# ---------------------------------------------------------------------------
# current_progress
# ---------------------------------------------------------------------------


class TestCurrentProgress:
    def test_no_entries_is_zero(self):
        assert current_progress(KeyResult("Run", 100)) == 0

    def test_latest_recorded_wins(self):
        kr = KeyResult("Run", 100, weekly_progress=[
            _entry(date(2025, 1, 20), 30, 24),
            _entry(date(2025, 1, 6), 12, 10),
        ])
        assert current_progress(kr) == 30

    def test_recorded_at_beats_week_order(self):
        # A correction for an earlier week entered later is the current value
        kr = KeyResult("Run", 100, weekly_progress=[
            _entry(date(2025, 1, 13), 25, 15),
            _entry(date(2025, 1, 6), 18, 20),
        ])
        assert current_progress(kr) == 18


# ---------------------------------------------------------------------------
# equivalent_week / classification
# ---------------------------------------------------------------------------


class TestEquivalentWeek:
    def test_below_first_target(self):
        assert equivalent_week([10, 20, 30], 5) == 0

    def test_exact_match_counts(self):
        assert equivalent_week([10, 20, 30], 20) == 2

    def test_above_all(self):
        assert equivalent_week([10, 20, 30], 100) == 3

    def test_empty_trajectory(self):
        assert equivalent_week([], 50) == 0

    def test_stops_at_first_unmet_week(self):
        # Non-monotonic manual curve: week 3 is not reached even though week 4 is
        assert equivalent_week([10, 20, 50, 30], 35) == 2

    def test_later_lower_target_ignored_after_first_miss(self):
        assert equivalent_week([10, 5, 30], 7) == 0


class TestClassifyWeeksBehind:
    @pytest.mark.parametrize("weeks, expected", [
        (-3, ON_TRACK),
        (0, ON_TRACK),
        (0.5, ON_TRACK),
        (1, NEEDS_ATTENTION),
        (1.5, NEEDS_ATTENTION),
        (2, BEHIND),
        (7, BEHIND),
    ])
    def test_thresholds(self, weeks, expected):
        assert classify_weeks_behind(weeks) == expected


# ---------------------------------------------------------------------------
# week_status
# ---------------------------------------------------------------------------


class TestWeekStatus:
    def test_on_track_scenario(self):
        kr = KeyResult("Run", target_value=100)
        assert week_status(kr, 5, 40, Q1_START, Q1_END) == ON_TRACK

    def test_behind_scenario(self):
        kr = KeyResult("Run", target_value=100)
        assert week_status(kr, 5, 20, Q1_START, Q1_END) == BEHIND

    def test_needs_attention(self):
        # 31 reaches week 4's 30.77 but not week 5's 38.46
        kr = KeyResult("Run", target_value=100)
        assert week_status(kr, 5, 31, Q1_START, Q1_END) == NEEDS_ATTENTION

    def test_week_zero_is_on_track(self):
        kr = KeyResult("Run", target_value=100)
        assert week_status(kr, 0, 0, Q1_START, Q1_END) == ON_TRACK

    def test_uses_manual_targets(self):
        manual = [0.0] * 12 + [100.0]  # back-loaded: nothing due until the last week
        kr = KeyResult("Launch", target_value=100, target_mode="manual", weekly_targets=manual)
        assert week_status(kr, 10, 0, Q1_START, Q1_END) == ON_TRACK

    def test_empty_period_trends_behind(self):
        kr = KeyResult("Run", target_value=100)
        assert week_status(kr, 3, 50, date(2025, 2, 1), date(2025, 1, 1)) == BEHIND

    def test_alias(self):
        assert calculate_week_status is week_status

    def test_monotonic_in_actual_value(self):
        targets = linear_targets(100, 13)
        for week in range(0, 14):
            ranks = [
                STATUSES.index(status_from_targets(targets, week, value))
                for value in range(0, 121, 3)
            ]
            assert ranks == sorted(ranks, reverse=True)


# ---------------------------------------------------------------------------
# Aggregation and display
# ---------------------------------------------------------------------------


class TestWorstStatus:
    def test_behind_dominates(self):
        assert worst_status([ON_TRACK, BEHIND, NEEDS_ATTENTION]) == BEHIND

    def test_needs_attention_over_on_track(self):
        assert worst_status([ON_TRACK, NEEDS_ATTENTION]) == NEEDS_ATTENTION

    def test_empty_is_on_track(self):
        assert worst_status([]) == ON_TRACK

    def test_accepts_generator(self):
        assert worst_status(s for s in [ON_TRACK, ON_TRACK]) == ON_TRACK


class TestEffectiveStatus:
    def test_override_wins(self):
        kr = KeyResult("Run", 100, status_override=ON_TRACK)
        assert effective_status(kr, BEHIND) == ON_TRACK

    def test_no_override(self):
        assert effective_status(KeyResult("Run", 100), BEHIND) == BEHIND

    def test_unknown_override_ignored(self):
        kr = KeyResult("Run", 100, status_override="great")
        assert effective_status(kr, NEEDS_ATTENTION) == NEEDS_ATTENTION


class TestDisplayLookups:
    def test_labels(self):
        assert status_label(ON_TRACK) == "On Track"
        assert status_label(NEEDS_ATTENTION) == "Needs Attention"
        assert status_label(BEHIND) == "Behind"

    def test_colors(self):
        assert status_color(BEHIND) == "text-error-500"
        assert status_color("unknown") == "text-success-500"
