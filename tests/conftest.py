"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of rollcall.api.deps, which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively; render it as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from rollcall.config import RollcallConfig  # noqa: E402
from rollcall.database.engine import init_db  # noqa: E402
from rollcall.database.models import AttendanceRecord, Member  # noqa: E402
from rollcall.engine.clock import to_epoch_ms  # noqa: E402

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for the PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


# ---------------------------------------------------------------------------
# Fixed wall clock for API tests: Friday 2026-02-20, 18:10 UTC
# ---------------------------------------------------------------------------
TEST_CONFIG = RollcallConfig(group_name="Test Meeting", timezone="UTC", dashboard_port=8000)
FIXED_NOW = datetime(2026, 2, 20, 18, 10, tzinfo=UTC)


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Rollcall tables.

    Default settings and gifts are seeded exactly as on a real startup.
    Uses StaticPool so the TestClient's worker threads share the same
    in-memory database.
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------
def add_member(engine: Engine, member_id: str, name: str | None = None, **profile) -> None:
    with Session(engine) as session:
        session.add(Member(id=member_id, name=name or f"Member {member_id}", **profile))
        session.commit()


def add_attendance(
    engine: Engine,
    member_id: str,
    date_str: str,
    points: int = 10,
    *,
    hour: int = 18,
    minute: int = 0,
) -> None:
    """Insert a check-in directly, bypassing scoring (UTC wall clock)."""
    year, month, day = (int(part) for part in date_str.split("-"))
    stamp = datetime(year, month, day, hour, minute, tzinfo=UTC)
    with Session(engine) as session:
        session.add(AttendanceRecord(
            member_id=member_id,
            timestamp=to_epoch_ms(stamp),
            date_str=date_str,
            points=points,
            method="manual",
        ))
        session.commit()


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
def make_token(role: str = "ADMIN", username: str = "FixtureAdmin", sub: str = "1") -> str:
    """Create a signed JWT.  Usable as both a fixture helper and a factory."""
    import jwt

    from rollcall.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "username": username, "role": role},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers() -> dict:
    return auth(make_token("ADMIN", "FixtureAdmin"))


@pytest.fixture
def servant_headers() -> dict:
    return auth(make_token("SERVANT", "mina", sub="2"))


@pytest.fixture
def client(db_engine: Engine):
    """FastAPI TestClient bound to the in-memory DB and the fixed clock."""
    from fastapi.testclient import TestClient

    from rollcall.api.deps import get_config, get_engine, get_now
    from rollcall.api.main import app

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: TEST_CONFIG
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()
