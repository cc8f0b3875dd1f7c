"""
rollcall.api.routes.analytics — Leaderboard, absentees, follow-ups, reports
============================================================================

Servants see their own follow-up list by default; admins see everyone.
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from rollcall.api.deps import get_current_user, get_engine, get_now, get_tz, http_error
from rollcall.api.routes.members import member_dict
from rollcall.constants import (
    BIRTHDAY_WINDOW_DAYS,
    FOLLOW_UP_DEFAULT_WEEKS,
    LEADERBOARD_DEFAULT_SIZE,
    RANK_BADGES,
    SERVANT_FILTER_ALL,
    TREND_MEETING_COUNT,
)
from rollcall.database.models import FollowUpKind, FollowUpLog, Role
from rollcall.engine.absence import AbsenceEntry
from rollcall.engine.leaderboard import PERIODS
from rollcall.services import analytics_service, followup_service

router = APIRouter(tags=["analytics"])


def _follow_up_dict(f: FollowUpLog) -> dict:
    return {
        "id": f.id,
        "member_id": f.member_id,
        "timestamp": f.timestamp,
        "note": f.note,
        "servant_name": f.servant_name,
        "kind": f.kind,
    }


def _absence_dict(entry: AbsenceEntry, latest: FollowUpLog | None = None) -> dict:
    return {
        "member": member_dict(entry.member),
        "consecutive_misses": entry.consecutive_misses,
        "last_attended": entry.last_attended,
        "last_follow_up": _follow_up_dict(latest) if latest else None,
    }


class FollowUpIn(BaseModel):
    member_id: str
    note: str = Field(min_length=1, max_length=2000)
    kind: FollowUpKind = FollowUpKind.CALL


# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------
@router.get("/leaderboard")
def get_leaderboard(
    period: str = Query("month", pattern="^(" + "|".join(PERIODS) + ")$"),
    limit: int = Query(LEADERBOARD_DEFAULT_SIZE, ge=1, le=100),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    tz: ZoneInfo = Depends(get_tz),
    now: datetime = Depends(get_now),
):
    entries = analytics_service.leaderboard(engine, period, tz=tz, top_n=limit, now=now)
    return {
        "period": period,
        "entries": [
            {
                "rank": e.rank,
                "badge": RANK_BADGES[e.rank - 1] if e.rank <= len(RANK_BADGES) else None,
                "member": member_dict(e.member),
                "points": e.points,
            }
            for e in entries
        ],
    }


# ---------------------------------------------------------------------------
# Absentees
# ---------------------------------------------------------------------------
@router.get("/absentees/dashboard")
def get_dashboard_absentees(
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    tz: ZoneInfo = Depends(get_tz),
    now: datetime = Depends(get_now),
):
    entries = analytics_service.dashboard_absentees(engine, tz=tz, now=now)
    return {"absentees": [_absence_dict(e) for e in entries]}


@router.get("/absentees")
def get_follow_up_list(
    weeks: int = Query(FOLLOW_UP_DEFAULT_WEEKS, ge=1, le=52),
    servant: str | None = Query(None, description="all, unassigned or a servant username"),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    tz: ZoneInfo = Depends(get_tz),
    now: datetime = Depends(get_now),
):
    """Follow-up list with each member's newest note."""
    if servant is None:
        servant = SERVANT_FILTER_ALL if user.get("role") == Role.ADMIN else user.get("username", "")
    entries = analytics_service.follow_up_absentees(
        engine, tz=tz, weeks=weeks, servant_filter=servant, now=now,
    )
    latest = followup_service.latest_follow_ups(engine, [e.member.id for e in entries])
    return {
        "weeks": weeks,
        "servant": servant,
        "absentees": [_absence_dict(e, latest.get(e.member.id)) for e in entries],
    }


@router.post("/follow-ups", status_code=201)
def create_follow_up(
    body: FollowUpIn,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    now: datetime = Depends(get_now),
):
    try:
        entry = followup_service.log_follow_up(
            engine,
            body.member_id,
            note=body.note,
            servant_name=user.get("username", ""),
            kind=body.kind,
            now=now,
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return _follow_up_dict(entry)


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
@router.get("/reports/trend")
def get_trend(
    meetings: int = Query(TREND_MEETING_COUNT, ge=1, le=52),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    trend = analytics_service.attendance_trend(engine, meetings)
    return {"trend": [{"date": d, "count": count} for d, count in trend]}


@router.get("/reports/birthdays")
def get_birthdays(
    days: int = Query(BIRTHDAY_WINDOW_DAYS, ge=0, le=366),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    tz: ZoneInfo = Depends(get_tz),
    now: datetime = Depends(get_now),
):
    upcoming = analytics_service.upcoming_birthdays(engine, tz=tz, days=days, now=now)
    return {
        "birthdays": [
            {"member": member_dict(m), "date": d.isoformat()} for m, d in upcoming
        ],
    }


@router.get("/reports/random-attendee")
def get_random_attendee(
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    tz: ZoneInfo = Depends(get_tz),
    now: datetime = Depends(get_now),
):
    picked = analytics_service.random_attendee(engine, tz=tz, now=now)
    return {"member": member_dict(picked) if picked else None}
