"""
rollcall.engine.insights — Small dashboard calculations
========================================================

Attendance trend for the reports chart, upcoming birthdays for the dashboard
card, and the random draw among today's attendees.
"""

from __future__ import annotations

import random
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from rollcall.constants import BIRTHDAY_WINDOW_DAYS, TREND_MEETING_COUNT
from rollcall.database.models import AttendanceRecord, Member
from rollcall.engine.clock import parse_date_str

__all__ = ["attendance_trend", "pick_random_attendee", "upcoming_birthdays"]


def attendance_trend(
    records: Iterable[AttendanceRecord],
    last_n: int = TREND_MEETING_COUNT,
) -> list[tuple[str, int]]:
    """Head-count for the *last_n* most recent meeting dates, oldest first."""
    counts = Counter(r.date_str for r in records)
    dates = sorted(counts)[-last_n:] if last_n > 0 else []
    return [(d, counts[d]) for d in dates]


def _next_birthday(dob: date, today: date) -> date:
    year = today.year
    while True:
        try:
            candidate = dob.replace(year=year)
        except ValueError:
            # Feb 29 outside a leap year
            candidate = date(year, 3, 1)
        if candidate >= today:
            return candidate
        year += 1


def upcoming_birthdays(
    roster: Iterable[Member],
    today: date,
    days: int = BIRTHDAY_WINDOW_DAYS,
) -> list[tuple[Member, date]]:
    """Members whose next birthday falls within ``[today, today + days]``."""
    horizon = today + timedelta(days=days)
    upcoming = []
    for member in roster:
        if not member.dob:
            continue
        try:
            dob = parse_date_str(member.dob)
        except ValueError:
            continue
        nxt = _next_birthday(dob, today)
        if nxt <= horizon:
            upcoming.append((member, nxt))
    upcoming.sort(key=lambda pair: pair[1])
    return upcoming


def pick_random_attendee(
    records: Iterable[AttendanceRecord],
    roster: Sequence[Member],
    today: str,
    rng: random.Random | None = None,
) -> Member | None:
    """One member present today, chosen uniformly; ``None`` if nobody is in."""
    present_ids = {r.member_id for r in records if r.date_str == today}
    present = [m for m in roster if m.id in present_ids]
    if not present:
        return None
    return (rng or random).choice(present)
