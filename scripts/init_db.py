"""Create the OKR tables. Pass --drop to rebuild them from scratch (destroys data)."""

import asyncio
import sys

from personal_okrs.db.connection import engine
from personal_okrs.db.models import Base


async def init(drop: bool = False) -> None:
    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    print(f"[init_db] Tables ready: {', '.join(sorted(Base.metadata.tables))}")
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init(drop="--drop" in sys.argv[1:]))
