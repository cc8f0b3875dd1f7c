"""
rollcall.services.agenda_service — Meeting agenda CRUD
=======================================================

Segments are stored flat and grouped by ``date_str`` on read.  Start/end
ranges are validated on every write; overlapping segments are accepted but
logged, and the active-segment rule picks the earliest-starting match.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from rollcall.database.models import MeetingSegment
from rollcall.engine.agenda import (
    active_segment,
    find_overlaps,
    sort_segments,
    validate_segment_range,
)
from rollcall.engine.clock import now_utc, parse_date_str

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset({
    "date_str", "title", "start_time", "end_time", "servant_name", "notes", "icon",
})
_REQUIRED_FIELDS = ("date_str", "title", "start_time", "end_time")


def _load_date(session: Session, date_str: str) -> list[MeetingSegment]:
    return list(session.scalars(
        select(MeetingSegment).where(MeetingSegment.date_str == date_str)
    ).all())


def _warn_overlaps(session: Session, date_str: str) -> None:
    for first, second in find_overlaps(_load_date(session, date_str)):
        logger.warning(
            "Agenda %s: segment %s (%s-%s) overlaps %s (%s-%s)",
            date_str,
            first.id, first.start_time, first.end_time,
            second.id, second.start_time, second.end_time,
        )


def segments_for_date(engine: Engine, date_str: str) -> list[MeetingSegment]:
    """The agenda for *date_str*, ordered by start time."""
    with Session(engine, expire_on_commit=False) as session:
        segments = _load_date(session, date_str)
        session.expunge_all()
    return sort_segments(segments)


def agenda_with_active(
    engine: Engine,
    date_str: str,
    *,
    tz: tzinfo,
    now: datetime | None = None,
) -> tuple[list[MeetingSegment], int | None]:
    """Segments for *date_str* and the id of the one running now, if any."""
    segments = segments_for_date(engine, date_str)
    return segments, active_segment(now or now_utc(), date_str, segments, tz)


def add_segment(
    engine: Engine,
    *,
    date_str: str,
    title: str,
    start_time: str,
    end_time: str,
    servant_name: str | None = None,
    notes: str | None = None,
    icon: str | None = None,
) -> MeetingSegment:
    """Append a segment to a date's agenda.

    Raises :class:`~rollcall.engine.errors.InvalidSegmentRange` unless
    ``start_time < end_time``, and ``ValueError`` for a malformed date.
    """
    parse_date_str(date_str)
    validate_segment_range(start_time, end_time)
    if not title or not title.strip():
        raise ValueError("Segment title is required.")

    with Session(engine, expire_on_commit=False) as session:
        segment = MeetingSegment(
            date_str=date_str,
            title=title.strip(),
            start_time=start_time,
            end_time=end_time,
            servant_name=servant_name,
            notes=notes,
            icon=icon or "default",
        )
        session.add(segment)
        session.flush()
        _warn_overlaps(session, date_str)
        session.commit()
        session.refresh(segment)
        session.expunge(segment)

    logger.info("Segment %s added on %s (%s-%s)", segment.id, date_str, start_time, end_time)
    return segment


def update_segment(engine: Engine, segment_id: int, **changes) -> MeetingSegment | None:
    """Edit a segment in place.  Returns ``None`` if it does not exist."""
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown segment fields: {sorted(unknown)}")
    cleared = [name for name in _REQUIRED_FIELDS if name in changes and changes[name] is None]
    if cleared:
        raise ValueError(f"Segment fields cannot be cleared: {cleared}")
    if "title" in changes:
        if not changes["title"].strip():
            raise ValueError("Segment title is required.")
        changes["title"] = changes["title"].strip()

    with Session(engine, expire_on_commit=False) as session:
        segment = session.get(MeetingSegment, segment_id)
        if segment is None:
            return None
        start = changes.get("start_time", segment.start_time)
        end = changes.get("end_time", segment.end_time)
        validate_segment_range(start, end)
        if "date_str" in changes:
            parse_date_str(changes["date_str"])

        for key, value in changes.items():
            setattr(segment, key, value)
        session.flush()
        _warn_overlaps(session, segment.date_str)
        session.commit()
        session.refresh(segment)
        session.expunge(segment)
    return segment


def remove_segment(engine: Engine, segment_id: int) -> bool:
    with Session(engine) as session:
        segment = session.get(MeetingSegment, segment_id)
        if segment is None:
            return False
        session.delete(segment)
        session.commit()
    logger.info("Segment %s removed", segment_id)
    return True
