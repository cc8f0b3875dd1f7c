"""
rollcall.api.main — FastAPI application entry point
====================================================

Run with::

    uvicorn rollcall.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from rollcall.api.deps import get_engine  # noqa: E402
from rollcall.api.routes.agenda import router as agenda_router  # noqa: E402
from rollcall.api.routes.analytics import router as analytics_router  # noqa: E402
from rollcall.api.routes.ledger import router as ledger_router  # noqa: E402
from rollcall.api.routes.members import router as members_router  # noqa: E402
from rollcall.api.routes.settings import router as settings_router  # noqa: E402
from rollcall.database.engine import init_db  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle: create tables and seed defaults."""
    engine = app.dependency_overrides.get(get_engine, get_engine)()
    init_db(engine)
    logger.info("Rollcall API started, engine ready (%s)", engine.url.database)
    yield
    logger.info("Rollcall API shutting down")


app = FastAPI(
    title="Rollcall API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(members_router, prefix="/api")
app.include_router(ledger_router, prefix="/api")
app.include_router(analytics_router, prefix="/api")
app.include_router(agenda_router, prefix="/api")
app.include_router(settings_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
