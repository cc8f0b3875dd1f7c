"""
rollcall.engine.absence — Consecutive-miss detection
=====================================================

A "meeting" is any date that appears on at least one attendance record.  A
date where nobody checked in is therefore invisible here and never counts
against anyone's streak.

For each roster member the detector walks the meeting dates from newest to
oldest, counting dates the member missed, and stops at the first date they
attended.  The count is the length of the current absence run, not the total
number of absences.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from rollcall.constants import SERVANT_FILTER_ALL, SERVANT_FILTER_UNASSIGNED
from rollcall.database.models import AttendanceRecord, Member

__all__ = [
    "AbsenceEntry",
    "consecutive_misses",
    "filter_roster",
    "find_absentees",
    "meeting_dates",
]


@dataclass(frozen=True, slots=True)
class AbsenceEntry:
    member: Member
    consecutive_misses: int
    last_attended: str | None = None


def meeting_dates(records: Iterable[AttendanceRecord]) -> list[str]:
    """Distinct ``date_str`` values, most recent first.

    ``YYYY-MM-DD`` sorts lexicographically in calendar order.
    """
    return sorted({r.date_str for r in records}, reverse=True)


def consecutive_misses(attended: set[str], dates: Sequence[str]) -> int:
    """Length of the absence run at the head of *dates* (newest first)."""
    count = 0
    for date_str in dates:
        if date_str in attended:
            break
        count += 1
    return count


def filter_roster(roster: Iterable[Member], servant_filter: str) -> list[Member]:
    """Restrict the roster by responsible servant.

    ``"all"`` keeps everyone, ``"unassigned"`` keeps members with no
    responsible servant, any other value is matched against
    ``Member.responsible_servant``.
    """
    if servant_filter == SERVANT_FILTER_ALL:
        return list(roster)
    if servant_filter == SERVANT_FILTER_UNASSIGNED:
        return [m for m in roster if not m.responsible_servant]
    return [m for m in roster if m.responsible_servant == servant_filter]


def find_absentees(
    records: Iterable[AttendanceRecord],
    roster: Sequence[Member],
    *,
    miss_threshold: int,
    today: str,
    lookback: int | None = None,
    servant_filter: str = SERVANT_FILTER_ALL,
) -> list[AbsenceEntry]:
    """Members whose current absence run is at least *miss_threshold*.

    Parameters
    ----------
    records : every attendance record (snapshot; iterated once).
    roster : current members.  Records for ids not on the roster are ignored.
    miss_threshold : minimum run length to be reported.
    today : local ``YYYY-MM-DD``; members already checked in today are skipped.
    lookback : only the most recent *lookback* meeting dates are walked.
        ``None`` walks every known date.
    servant_filter : roster restriction applied before the walk.

    Returns entries sorted by run length, longest first.  Members with equal
    runs keep roster order.
    """
    records = list(records)
    dates = meeting_dates(records)
    if lookback is not None:
        dates = dates[: max(lookback, 0)]
    if not dates:
        return []

    attended_by_member: dict[str, set[str]] = {}
    for r in records:
        attended_by_member.setdefault(r.member_id, set()).add(r.date_str)

    result: list[AbsenceEntry] = []
    for member in filter_roster(roster, servant_filter):
        attended = attended_by_member.get(member.id, set())
        if today in attended:
            continue
        misses = consecutive_misses(attended, dates)
        if misses >= miss_threshold:
            result.append(AbsenceEntry(
                member=member,
                consecutive_misses=misses,
                last_attended=max(attended) if attended else None,
            ))

    result.sort(key=lambda e: e.consecutive_misses, reverse=True)
    return result
