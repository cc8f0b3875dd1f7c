"""
rollcall.database.seed — Default Settings & Gift Seeder
========================================================

Baseline rows written on first startup so check-in and the store work out of
the box.  Idempotent: settings only insert missing keys, gifts only seed an
empty catalogue.  Admin edits are never overwritten.
"""

from __future__ import annotations

import json
import logging

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from rollcall.constants import DEFAULT_GIFTS, DEFAULT_MEETING_CONFIG
from rollcall.database.engine import get_session
from rollcall.database.models import GiftItem, Setting

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Default settings catalogue
# ---------------------------------------------------------------------------
DEFAULT_SETTINGS: dict[str, tuple[object, str, str]] = {
    "meeting.start_time": (
        DEFAULT_MEETING_CONFIG.start_time, "meeting", "Meeting start time (HH:MM, local)",
    ),
    "meeting.points_on_time": (
        DEFAULT_MEETING_CONFIG.points_on_time, "points", "Points for arriving on time or early",
    ),
    "meeting.points_late_15": (
        DEFAULT_MEETING_CONFIG.points_late_15, "points", "Points for arriving up to 15 minutes late",
    ),
    "meeting.points_late_30": (
        DEFAULT_MEETING_CONFIG.points_late_30, "points", "Points for arriving 16-30 minutes late",
    ),
    "meeting.points_late": (
        DEFAULT_MEETING_CONFIG.points_late, "points", "Points for arriving more than 30 minutes late",
    ),
}
"""Each entry maps ``key`` → ``(default_value, category, description)``."""


# ---------------------------------------------------------------------------
# Seeders
# ---------------------------------------------------------------------------
def seed_default_settings(engine: Engine) -> None:
    """Insert default settings that don't yet exist."""
    session = Session(engine)
    inserted = 0
    try:
        for key, (value, category, desc) in DEFAULT_SETTINGS.items():
            existing = session.get(Setting, key)
            if existing is None:
                session.add(Setting(
                    key=key,
                    value_json=json.dumps(value),
                    category=category,
                    description=desc,
                ))
                inserted += 1
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    if inserted:
        logger.info("Seeded %d default settings.", inserted)


def seed_default_gifts(engine: Engine) -> None:
    """Fill an empty gift catalogue with the default items."""
    with get_session(engine) as session:
        count = session.scalar(select(func.count()).select_from(GiftItem)) or 0
        if count:
            return
        for name, cost in DEFAULT_GIFTS:
            session.add(GiftItem(name=name, cost=cost))
    logger.info("Seeded %d default gifts.", len(DEFAULT_GIFTS))
