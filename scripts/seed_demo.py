"""Seed a demo user with one active quarter, an objective and two key results."""

import asyncio
import sys
from datetime import date, datetime, timezone

from personal_okrs.db.connection import async_session, engine
from personal_okrs.db.models import KeyResultRecord, ObjectiveRecord, PeriodRecord, WeeklyProgressRecord

DEMO_USER = "00000000-0000-0000-0000-000000000001"


async def seed(user_id: str) -> None:
    async with async_session() as session:
        period = PeriodRecord(
            user_id=user_id,
            name="Q1 2025",
            start_date=date(2025, 1, 1),
            end_date=date(2025, 3, 31),
            is_active=True,
        )
        session.add(period)
        await session.flush()

        objective = ObjectiveRecord(
            user_id=user_id,
            period_id=period.id,
            title="Get fit for the summer",
            description="Build a consistent training habit.",
        )
        session.add(objective)
        await session.flush()

        runs = KeyResultRecord(
            user_id=user_id,
            objective_id=objective.id,
            description="Run 100 km",
            target_value=100,
            unit="km",
            target_mode="linear",
        )
        gym = KeyResultRecord(
            user_id=user_id,
            objective_id=objective.id,
            description="Complete 36 gym sessions",
            target_value=36,
            unit="sessions",
            target_mode="manual",
            weekly_targets=[1, 3, 6, 9, 12, 15, 18, 21, 24, 27, 30, 33, 36],
        )
        session.add_all([runs, gym])
        await session.flush()

        session.add_all([
            WeeklyProgressRecord(
                key_result_id=runs.id,
                week_start_date=date(2025, 1, 6),
                value=12,
                recorded_at=datetime(2025, 1, 10, 18, 0, tzinfo=timezone.utc),
            ),
            WeeklyProgressRecord(
                key_result_id=runs.id,
                week_start_date=date(2025, 1, 27),
                value=40,
                status="on-track",
                recorded_at=datetime(2025, 1, 31, 18, 0, tzinfo=timezone.utc),
            ),
        ])
        await session.commit()
        print(f"[seed] Demo data created for user {user_id} (period {period.id})")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed(sys.argv[1] if len(sys.argv) > 1 else DEMO_USER))
