"""
rollcall.services.analytics_service — Snapshot loaders for the pure views
==========================================================================

Each function loads a snapshot of the roster and the attendance log in one
session, then hands it to the pure engine.  Nothing here writes.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, tzinfo

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from rollcall.constants import (
    BIRTHDAY_WINDOW_DAYS,
    DASHBOARD_ABSENCE_LIMIT,
    DASHBOARD_ABSENCE_LOOKBACK,
    DASHBOARD_MISS_THRESHOLD,
    FOLLOW_UP_DEFAULT_WEEKS,
    FOLLOW_UP_LOOKBACK,
    LEADERBOARD_DEFAULT_SIZE,
    SERVANT_FILTER_ALL,
    TREND_MEETING_COUNT,
)
from rollcall.database.models import AttendanceRecord, Member
from rollcall.engine import absence, insights
from rollcall.engine import leaderboard as leaderboard_engine
from rollcall.engine.absence import AbsenceEntry
from rollcall.engine.clock import local_date_str, now_utc, to_local
from rollcall.engine.leaderboard import LeaderboardEntry

logger = logging.getLogger(__name__)


def _snapshot(engine: Engine) -> tuple[list[AttendanceRecord], list[Member]]:
    """Detached copies of the attendance log and the roster."""
    with Session(engine, expire_on_commit=False) as session:
        records = list(session.scalars(
            select(AttendanceRecord).order_by(AttendanceRecord.timestamp, AttendanceRecord.id)
        ).all())
        roster = list(session.scalars(select(Member).order_by(Member.name, Member.id)).all())
        session.expunge_all()
    return records, roster


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------
def leaderboard(
    engine: Engine,
    period: str,
    *,
    tz: tzinfo,
    top_n: int = LEADERBOARD_DEFAULT_SIZE,
    now: datetime | None = None,
) -> list[LeaderboardEntry]:
    records, roster = _snapshot(engine)
    return leaderboard_engine.leaderboard(
        records, roster, period=period, now=now or now_utc(), tz=tz, top_n=top_n,
    )


# ---------------------------------------------------------------------------
# Absentees
# ---------------------------------------------------------------------------
def absentees(
    engine: Engine,
    *,
    tz: tzinfo,
    miss_threshold: int,
    lookback: int | None = None,
    servant_filter: str = SERVANT_FILTER_ALL,
    now: datetime | None = None,
) -> list[AbsenceEntry]:
    """General form: any threshold, lookback window and roster filter."""
    records, roster = _snapshot(engine)
    today = local_date_str(now or now_utc(), tz)
    return absence.find_absentees(
        records,
        roster,
        miss_threshold=miss_threshold,
        today=today,
        lookback=lookback,
        servant_filter=servant_filter,
    )


def dashboard_absentees(
    engine: Engine,
    *,
    tz: tzinfo,
    now: datetime | None = None,
) -> list[AbsenceEntry]:
    """Dashboard "recently missed" card: last 3 meetings, 2+ misses, top 5."""
    entries = absentees(
        engine,
        tz=tz,
        miss_threshold=DASHBOARD_MISS_THRESHOLD,
        lookback=DASHBOARD_ABSENCE_LOOKBACK,
        now=now,
    )
    return entries[:DASHBOARD_ABSENCE_LIMIT]


def follow_up_absentees(
    engine: Engine,
    *,
    tz: tzinfo,
    weeks: int = FOLLOW_UP_DEFAULT_WEEKS,
    servant_filter: str = SERVANT_FILTER_ALL,
    lookback: int | None = FOLLOW_UP_LOOKBACK,
    now: datetime | None = None,
) -> list[AbsenceEntry]:
    """Follow-up page: members who missed at least *weeks* meetings in a row."""
    return absentees(
        engine,
        tz=tz,
        miss_threshold=weeks,
        lookback=lookback,
        servant_filter=servant_filter,
        now=now,
    )


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------
def attendance_trend(engine: Engine, last_n: int = TREND_MEETING_COUNT) -> list[tuple[str, int]]:
    records, _ = _snapshot(engine)
    return insights.attendance_trend(records, last_n)


def upcoming_birthdays(
    engine: Engine,
    *,
    tz: tzinfo,
    days: int = BIRTHDAY_WINDOW_DAYS,
    now: datetime | None = None,
):
    _, roster = _snapshot(engine)
    today = to_local(now or now_utc(), tz).date()
    return insights.upcoming_birthdays(roster, today, days)


def random_attendee(
    engine: Engine,
    *,
    tz: tzinfo,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> Member | None:
    records, roster = _snapshot(engine)
    today = local_date_str(now or now_utc(), tz)
    picked = insights.pick_random_attendee(records, roster, today, rng)
    if picked is None:
        logger.info("Random draw requested with no check-ins on %s", today)
    return picked
