"""
rollcall.engine.agenda — Active segment resolution
===================================================

Pure functions over a date's segment list.  ``active_segment`` depends only
on ``now`` and the list it is handed, so the dashboard can poll it once a
minute without keeping any state between calls.

Segments are half-open intervals ``[start_time, end_time)``: at 08:30 a
08:00–08:30 segment is over and an 08:30–09:00 segment is live.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, tzinfo

from rollcall.database.models import MeetingSegment
from rollcall.engine.clock import local_date_str, minutes_of_day, parse_hhmm
from rollcall.engine.errors import InvalidSegmentRange

__all__ = [
    "active_segment",
    "find_overlaps",
    "sort_segments",
    "validate_segment_range",
]


def sort_segments(segments: Iterable[MeetingSegment]) -> list[MeetingSegment]:
    """Order by ``start_time``.  Zero-padded ``HH:MM`` compares correctly as text."""
    return sorted(segments, key=lambda s: s.start_time)


def validate_segment_range(start_time: str, end_time: str) -> None:
    """Raise :class:`InvalidSegmentRange` unless ``start_time < end_time``."""
    try:
        start = parse_hhmm(start_time)
        end = parse_hhmm(end_time)
    except ValueError as exc:
        raise InvalidSegmentRange(start_time, end_time, str(exc)) from exc
    if start >= end:
        raise InvalidSegmentRange(start_time, end_time)


def find_overlaps(segments: Sequence[MeetingSegment]) -> list[tuple[MeetingSegment, MeetingSegment]]:
    """Pairs of segments whose intervals intersect, in start order.

    Overlaps are allowed; callers use this to warn, not to reject.
    """
    ordered = sort_segments(segments)
    overlaps = []
    for i, first in enumerate(ordered):
        for second in ordered[i + 1:]:
            if second.start_time >= first.end_time:
                break
            overlaps.append((first, second))
    return overlaps


def active_segment(
    now: datetime,
    date_str: str,
    segments: Sequence[MeetingSegment],
    tz: tzinfo,
) -> int | None:
    """Id of the segment running at *now*, or ``None``.

    Always ``None`` when *date_str* is not today's local date.  When segments
    overlap, the earliest-starting match wins.
    """
    if local_date_str(now, tz) != date_str:
        return None

    current = minutes_of_day(now, tz)
    for segment in sort_segments(segments):
        if parse_hhmm(segment.start_time) <= current < parse_hhmm(segment.end_time):
            return segment.id
    return None
