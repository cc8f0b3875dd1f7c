"""
rollcall.api.routes.agenda — Meeting agenda
============================================
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from rollcall.api.deps import (
    get_current_admin,
    get_current_user,
    get_engine,
    get_now,
    get_tz,
    http_error,
)
from rollcall.database.models import MeetingSegment
from rollcall.services import agenda_service

router = APIRouter(tags=["agenda"])


def _segment_dict(s: MeetingSegment) -> dict:
    return {
        "id": s.id,
        "date_str": s.date_str,
        "title": s.title,
        "start_time": s.start_time,
        "end_time": s.end_time,
        "servant_name": s.servant_name,
        "notes": s.notes,
        "icon": s.icon,
    }


class SegmentIn(BaseModel):
    date_str: str
    title: str = Field(min_length=1, max_length=200)
    start_time: str
    end_time: str
    servant_name: str | None = None
    notes: str | None = None
    icon: str | None = None


class SegmentPatch(BaseModel):
    date_str: str | None = None
    title: str | None = Field(None, min_length=1, max_length=200)
    start_time: str | None = None
    end_time: str | None = None
    servant_name: str | None = None
    notes: str | None = None
    icon: str | None = None


@router.get("/agenda/{date_str}")
def get_agenda(
    date_str: str,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    tz: ZoneInfo = Depends(get_tz),
    now: datetime = Depends(get_now),
):
    """Segments for a date plus the id of the one running now (today only)."""
    segments, active_id = agenda_service.agenda_with_active(engine, date_str, tz=tz, now=now)
    return {
        "date": date_str,
        "active_segment_id": active_id,
        "segments": [_segment_dict(s) for s in segments],
    }


@router.post("/agenda", status_code=201)
def create_segment(
    body: SegmentIn,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    try:
        segment = agenda_service.add_segment(engine, **body.model_dump())
    except ValueError as exc:
        raise http_error(exc) from exc
    return _segment_dict(segment)


@router.patch("/agenda/{segment_id}")
def patch_segment(
    segment_id: int,
    body: SegmentPatch,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    changes = body.model_dump(exclude_unset=True)
    try:
        segment = agenda_service.update_segment(engine, segment_id, **changes)
    except ValueError as exc:
        raise http_error(exc) from exc
    if segment is None:
        raise HTTPException(404, f"Segment not found: {segment_id}")
    return _segment_dict(segment)


@router.delete("/agenda/{segment_id}")
def delete_segment(
    segment_id: int,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    if not agenda_service.remove_segment(engine, segment_id):
        raise HTTPException(404, f"Segment not found: {segment_id}")
    return {"deleted": True}
