"""HTTP tests for the stored-data routes — periods, key results, coaching.

The database is replaced by an AsyncMock session and patched okr_store
queries; rows are real (transient) ORM objects.
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from personal_okrs.db.connection import get_session
from personal_okrs.db.models import (
    CheckInRecord,
    KeyResultRecord,
    ObjectiveRecord,
    PeriodRecord,
    WeeklyProgressRecord,
)
from personal_okrs.tracking.clock import FixedClock, OverridableClock

HEADERS = {"X-User-Id": "u-1"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _period_row():
    return PeriodRecord(
        id="p-1", user_id="u-1", name="Q1 2025", is_active=True,
        start_date=date(2025, 1, 1), end_date=date(2025, 3, 31),
    )


def _key_result_row(kr_id="kr-1", target=100, value=None, status_override=None):
    row = KeyResultRecord(
        id=kr_id, user_id="u-1", objective_id="o-1", description=f"KR {kr_id}",
        target_value=target, unit="km", target_mode="linear", weekly_targets=None,
        status_override=status_override,
    )
    row.weekly_progress = []
    if value is not None:
        row.weekly_progress = [WeeklyProgressRecord(
            week_start_date=date(2025, 1, 27), value=value, status=None,
            recorded_at=datetime(2025, 1, 31, tzinfo=timezone.utc),
        )]
    return row


def _objective_row():
    row = ObjectiveRecord(id="o-1", user_id="u-1", period_id="p-1", title="Get fit", description="")
    row.key_results = [_key_result_row("kr-1", 100, 40), _key_result_row("kr-2", 10)]
    return row


@pytest.fixture()
def session():
    return AsyncMock()


@pytest.fixture()
def client(session):
    from fastapi.testclient import TestClient

    from personal_okrs.action.api import app
    from personal_okrs.action.dependencies import get_clock

    clock = OverridableClock(FixedClock(datetime(2025, 1, 29, 10, 0, tzinfo=timezone.utc)))

    async def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# /periods
# ---------------------------------------------------------------------------


class TestActiveContext:
    def test_requires_user(self, client):
        assert client.get("/periods/active/context").status_code == 401

    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    def test_context(self, mock_get, client):
        mock_get.return_value = _period_row()
        data = client.get("/periods/active/context", headers=HEADERS).json()
        assert data == {
            "name": "Q1 2025",
            "start_date": "2025-01-01",
            "end_date": "2025-03-31",
            "total_weeks": 13,
            "current_week": 5,
            "period_status": "active",
            "period_id": "p-1",
        }

    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    def test_no_active_period(self, mock_get, client):
        mock_get.return_value = None
        data = client.get("/periods/active/context", headers=HEADERS).json()
        assert data["total_weeks"] == 0
        assert data["current_week"] == 0
        assert data["period_id"] is None

    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    def test_storage_error(self, mock_get, client):
        mock_get.side_effect = Exception("connection refused")
        resp = client.get("/periods/active/context", headers=HEADERS)
        assert resp.status_code == 500
        assert "error" in resp.json()


class TestActivatePeriod:
    @patch("personal_okrs.db.okr_store.set_active_period", new_callable=AsyncMock)
    def test_activate(self, mock_set, client):
        mock_set.return_value = True
        resp = client.put("/periods/p-2/activate", headers=HEADERS)
        assert resp.status_code == 200
        mock_set.assert_awaited_once()

    @patch("personal_okrs.db.okr_store.set_active_period", new_callable=AsyncMock)
    def test_not_found(self, mock_set, client):
        mock_set.return_value = False
        assert client.put("/periods/nope/activate", headers=HEADERS).status_code == 404


class TestActiveObjectives:
    @patch("personal_okrs.db.okr_store.list_objectives", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    def test_summaries(self, mock_period, mock_objectives, client):
        mock_period.return_value = _period_row()
        mock_objectives.return_value = [_objective_row()]
        data = client.get("/periods/active/objectives", headers=HEADERS).json()
        objective = data["objectives"][0]
        assert objective["title"] == "Get fit"
        assert objective["overall_status"] == "behind"
        assert objective["status_counts"] == {"on-track": 1, "needs-attention": 0, "behind": 1}
        assert objective["overall_progress"] == 20.0
        assert data["context"]["current_week"] == 5

    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    def test_no_active_period(self, mock_period, client):
        mock_period.return_value = None
        assert client.get("/periods/active/objectives", headers=HEADERS).status_code == 404


# ---------------------------------------------------------------------------
# /key-results
# ---------------------------------------------------------------------------


class TestAddProgress:
    @patch("personal_okrs.db.okr_store.add_weekly_progress", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_key_result", new_callable=AsyncMock)
    def test_records_with_computed_status(self, mock_kr, mock_period, mock_add, client):
        mock_kr.return_value = _key_result_row()
        mock_period.return_value = _period_row()
        mock_add.side_effect = lambda session, kr_id, entry: WeeklyProgressRecord(
            key_result_id=kr_id, week_start_date=entry.week_start_date,
            value=entry.value, status=entry.status, recorded_at=entry.recorded_at,
        )

        resp = client.post("/key-results/kr-1/progress", json={"value": 31}, headers=HEADERS)

        assert resp.status_code == 200
        data = resp.json()
        assert data["week_start_date"] == "2025-01-27"
        assert data["status"] == "needs-attention"
        assert data["current_week"] == 5
        entry = mock_add.call_args.args[2]
        assert entry.recorded_at == datetime(2025, 1, 29, 10, 0, tzinfo=timezone.utc)

    @patch("personal_okrs.db.okr_store.add_weekly_progress", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_key_result", new_callable=AsyncMock)
    def test_override_is_stored_on_key_result(self, mock_kr, mock_period, mock_add, client):
        row = _key_result_row()
        mock_kr.return_value = row
        mock_period.return_value = _period_row()
        mock_add.side_effect = lambda session, kr_id, entry: WeeklyProgressRecord(
            key_result_id=kr_id, week_start_date=entry.week_start_date,
            value=entry.value, status=entry.status, recorded_at=entry.recorded_at,
        )

        body = {"value": 5, "status_override": "on-track", "status_override_reason": "Injury week"}
        data = client.post("/key-results/kr-1/progress", json=body, headers=HEADERS).json()

        assert data["status"] == "on-track"
        assert row.status_override == "on-track"
        assert row.status_override_reason == "Injury week"

    def test_unknown_override(self, client):
        body = {"value": 5, "status_override": "fine"}
        assert client.post("/key-results/kr-1/progress", json=body, headers=HEADERS).status_code == 400

    @patch("personal_okrs.db.okr_store.get_key_result", new_callable=AsyncMock)
    def test_missing_key_result(self, mock_kr, client):
        mock_kr.return_value = None
        resp = client.post("/key-results/nope/progress", json={"value": 1}, headers=HEADERS)
        assert resp.status_code == 404

    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_key_result", new_callable=AsyncMock)
    def test_no_active_period(self, mock_kr, mock_period, client):
        mock_kr.return_value = _key_result_row()
        mock_period.return_value = None
        resp = client.post("/key-results/kr-1/progress", json={"value": 1}, headers=HEADERS)
        assert resp.status_code == 400

    @patch("personal_okrs.db.okr_store.add_weekly_progress", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_key_result", new_callable=AsyncMock)
    def test_storage_error_rolls_back(self, mock_kr, mock_period, mock_add, client, session):
        mock_kr.return_value = _key_result_row()
        mock_period.return_value = _period_row()
        mock_add.side_effect = Exception("deadlock")
        resp = client.post("/key-results/kr-1/progress", json={"value": 1}, headers=HEADERS)
        assert resp.status_code == 500
        session.rollback.assert_awaited_once()


class TestKeyResultSeries:
    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_key_result", new_callable=AsyncMock)
    def test_series(self, mock_kr, mock_period, client):
        mock_kr.return_value = _key_result_row(value=40)
        mock_period.return_value = _period_row()
        data = client.get("/key-results/kr-1/series", headers=HEADERS).json()
        assert data["current_week"] == 5
        assert data["status"] == "on-track"
        assert data["weeks"][4]["actual"] == 40
        assert data["weeks"][5]["actual"] is None


# ---------------------------------------------------------------------------
# /coaching
# ---------------------------------------------------------------------------


class TestCoachingContext:
    @patch("personal_okrs.db.okr_store.list_check_ins", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.list_objectives", new_callable=AsyncMock)
    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    def test_context(self, mock_period, mock_objectives, mock_check_ins, client):
        mock_period.return_value = _period_row()
        mock_objectives.return_value = [_objective_row()]
        mock_check_ins.return_value = [CheckInRecord(
            id="c-1", week_start_date=date(2025, 1, 27),
            reflection={"what_went_well": "Long run"}, progress_updates=[],
        )]

        data = client.get("/coaching/context", headers=HEADERS).json()

        assert "## Current Period: Q1 2025" in data["summary"]
        assert "Long run" in data["summary"]
        assert data["concise_summary"] == (
            "Period: Q1 2025 | 1 objective(s) | 2 key result(s) | 1 recent check-in(s)"
        )
        assert data["system_prompt"]
        assert mock_check_ins.call_args.kwargs["limit"] == 3

    @patch("personal_okrs.db.okr_store.get_active_period", new_callable=AsyncMock)
    def test_no_period(self, mock_period, client):
        mock_period.return_value = None
        data = client.get("/coaching/context", headers=HEADERS).json()
        assert data["summary"].startswith("No context available")
        assert data["concise_summary"] == "No context"
