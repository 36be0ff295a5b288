"""FastAPI application for the personal OKR tracker."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import settings

logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="Personal OKRs API", version="1.0.0")

# ---------------------------------------------------------------------------
# Include modular routers
# ---------------------------------------------------------------------------
from personal_okrs.action.routers.check_ins import router as check_ins_router  # noqa: E402
from personal_okrs.action.routers.clock import router as clock_router  # noqa: E402
from personal_okrs.action.routers.coaching import router as coaching_router  # noqa: E402
from personal_okrs.action.routers.key_results import router as key_results_router  # noqa: E402
from personal_okrs.action.routers.periods import router as periods_router  # noqa: E402
from personal_okrs.action.routers.tracking import router as tracking_router  # noqa: E402

app.include_router(clock_router)
app.include_router(tracking_router)
app.include_router(periods_router)
app.include_router(key_results_router)
app.include_router(check_ins_router)
app.include_router(coaching_router)


# CORS: lock down in production via CORS_ORIGINS (comma-separated).
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
