"""
rollcall.api.routes.ledger — Check-in, redemptions and the gift catalogue
==========================================================================
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query
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
from rollcall.api.routes.members import redemption_dict
from rollcall.database.models import AttendanceRecord, CheckInMethod, GiftItem
from rollcall.engine.clock import local_date_str
from rollcall.engine.scoring import score_points
from rollcall.services import gift_service, ledger_service, settings_service

router = APIRouter(tags=["ledger"])


def _attendance_dict(a: AttendanceRecord) -> dict:
    return {
        "id": a.id,
        "member_id": a.member_id,
        "timestamp": a.timestamp,
        "date_str": a.date_str,
        "points": a.points,
        "method": a.method,
    }


def _gift_dict(g: GiftItem) -> dict:
    return {"id": g.id, "name": g.name, "cost": g.cost}


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class CheckIn(BaseModel):
    member_id: str
    method: CheckInMethod = CheckInMethod.MANUAL


class RedemptionIn(BaseModel):
    member_id: str
    gift_label: str = Field(min_length=1, max_length=200)
    points_cost: int


class GiftIn(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    cost: int


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------
@router.post("/attendance", status_code=201)
def check_in(
    body: CheckIn,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    tz: ZoneInfo = Depends(get_tz),
    now: datetime = Depends(get_now),
):
    """Record a check-in at the current instant and report the arrival status."""
    config = settings_service.get_meeting_config(engine)
    try:
        record = ledger_service.record_attendance(
            engine, body.member_id, config=config, tz=tz, method=body.method, arrival=now,
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return {
        **_attendance_dict(record),
        "status": score_points(record.timestamp, config, tz).status.value,
    }


@router.get("/attendance")
def list_attendance(
    date: str | None = Query(None, description="YYYY-MM-DD, defaults to today"),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    tz: ZoneInfo = Depends(get_tz),
    now: datetime = Depends(get_now),
):
    date_str = date or local_date_str(now, tz)
    records = ledger_service.attendance_for_date(engine, date_str)
    return {"date": date_str, "records": [_attendance_dict(r) for r in records]}


@router.delete("/attendance/{record_id}")
def delete_attendance(
    record_id: int,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    if not ledger_service.delete_attendance(engine, record_id, actor=admin.get("username")):
        raise HTTPException(404, f"Attendance record not found: {record_id}")
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Redemptions
# ---------------------------------------------------------------------------
@router.post("/redemptions", status_code=201)
def redeem(
    body: RedemptionIn,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
    now: datetime = Depends(get_now),
):
    try:
        record = ledger_service.record_redemption(
            engine,
            body.member_id,
            body.gift_label,
            body.points_cost,
            servant_name=user.get("username"),
            now=now,
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return {
        **redemption_dict(record),
        "balance": ledger_service.current_balance(engine, body.member_id),
    }


@router.delete("/redemptions/{record_id}")
def delete_redemption(
    record_id: int,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    if not ledger_service.delete_redemption(engine, record_id, actor=admin.get("username")):
        raise HTTPException(404, f"Redemption not found: {record_id}")
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Gift catalogue
# ---------------------------------------------------------------------------
@router.get("/gifts")
def list_gifts(
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    return {"gifts": [_gift_dict(g) for g in gift_service.list_gifts(engine)]}


@router.post("/gifts", status_code=201)
def create_gift(
    body: GiftIn,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    try:
        gift = gift_service.save_gift(engine, name=body.name, cost=body.cost)
    except ValueError as exc:
        raise http_error(exc) from exc
    return _gift_dict(gift)


@router.put("/gifts/{gift_id}")
def update_gift(
    gift_id: int,
    body: GiftIn,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    try:
        gift = gift_service.save_gift(engine, name=body.name, cost=body.cost, gift_id=gift_id)
    except ValueError as exc:
        raise http_error(exc) from exc
    if gift is None:
        raise HTTPException(404, f"Gift not found: {gift_id}")
    return _gift_dict(gift)


@router.delete("/gifts/{gift_id}")
def delete_gift(
    gift_id: int,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    if not gift_service.delete_gift(engine, gift_id):
        raise HTTPException(404, f"Gift not found: {gift_id}")
    return {"deleted": True}
