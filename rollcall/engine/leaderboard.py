"""
rollcall.engine.leaderboard — Ranked points per period
=======================================================

Pure aggregation over earn-events only; redemptions never lower a member's
leaderboard standing.  Recomputed on every call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, tzinfo

from rollcall.constants import LEADERBOARD_DEFAULT_SIZE
from rollcall.database.models import AttendanceRecord, Member
from rollcall.engine.clock import to_local

logger = logging.getLogger(__name__)

__all__ = ["PERIODS", "LeaderboardEntry", "leaderboard"]

PERIODS = ("month", "all")


@dataclass(frozen=True, slots=True)
class LeaderboardEntry:
    rank: int
    member: Member
    points: int


def _in_period(record: AttendanceRecord, period: str, now_local: datetime, tz: tzinfo) -> bool:
    if period == "all":
        return True
    stamped = to_local(record.timestamp, tz)
    return stamped.year == now_local.year and stamped.month == now_local.month


def leaderboard(
    records: Iterable[AttendanceRecord],
    roster: Sequence[Member],
    *,
    period: str,
    now: datetime,
    tz: tzinfo,
    top_n: int = LEADERBOARD_DEFAULT_SIZE,
) -> list[LeaderboardEntry]:
    """Top *top_n* members by summed attendance points.

    ``period="month"`` keeps records whose timestamp falls in *now*'s local
    calendar month and year; ``"all"`` keeps everything.  Members no longer
    on the roster are dropped.  Equal totals keep the order in which the
    member first appeared in *records*.
    """
    if period not in PERIODS:
        raise ValueError(f"Unknown leaderboard period {period!r}; expected one of {PERIODS}")

    now_local = to_local(now, tz)
    totals: dict[str, int] = {}
    for record in records:
        if _in_period(record, period, now_local, tz):
            totals[record.member_id] = totals.get(record.member_id, 0) + record.points

    members = {m.id: m for m in roster}
    joined = [
        (members[member_id], points)
        for member_id, points in totals.items()
        if member_id in members
    ]
    dropped = len(totals) - len(joined)
    if dropped:
        logger.debug("Leaderboard dropped %d ids missing from the roster", dropped)

    joined.sort(key=lambda pair: pair[1], reverse=True)
    return [
        LeaderboardEntry(rank=i + 1, member=member, points=points)
        for i, (member, points) in enumerate(joined[: max(top_n, 0)])
    ]
