"""
rollcall.api.routes.members — Roster and balances
==================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from rollcall.api.deps import get_current_admin, get_current_user, get_engine, http_error
from rollcall.database.models import Member, RedemptionRecord
from rollcall.engine.balance import PointsBalance
from rollcall.services import ledger_service, member_service

router = APIRouter(tags=["members"])


# ---------------------------------------------------------------------------
# Serializers (shared with the other route modules)
# ---------------------------------------------------------------------------
def member_dict(m: Member) -> dict:
    return {
        "id": m.id,
        "name": m.name,
        "phone": m.phone,
        "dob": m.dob,
        "college": m.college,
        "year": m.year,
        "responsible_servant": m.responsible_servant,
        "photo_url": m.photo_url,
        "has_face_id": bool(m.has_face_id),
        "fingerprint_count": m.fingerprint_count or 0,
    }


def redemption_dict(r: RedemptionRecord) -> dict:
    return {
        "id": r.id,
        "member_id": r.member_id,
        "gift_label": r.gift_label,
        "points_cost": r.points_cost,
        "timestamp": r.timestamp,
        "servant_name": r.servant_name,
    }


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class MemberIn(BaseModel):
    id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=200)
    phone: str | None = None
    dob: str | None = None
    address: str | None = None
    college: str | None = None
    year: str | None = None
    confession_father: str | None = None
    responsible_servant: str | None = None
    photo_url: str | None = None
    has_face_id: bool = False
    fingerprint_count: int = Field(0, ge=0)


class ServantAssignment(BaseModel):
    member_ids: list[str] = Field(min_length=1)
    servant: str | None = None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@router.get("/members")
def list_members(
    search: str | None = Query(None, max_length=100),
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    """Roster with balances, highest current balance first (store view).

    ``search`` keeps members whose name or phone contains the term.
    """
    return {
        "members": [
            {**member_dict(m), "points": balance.as_dict()}
            for m, balance in ledger_service.member_balances(engine, search)
        ],
    }


@router.post("/members", status_code=201)
def save_member(
    body: MemberIn,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    profile = body.model_dump(exclude={"id"}, exclude_unset=True)
    try:
        member = member_service.save_member(engine, body.id, **profile)
    except ValueError as exc:
        raise http_error(exc) from exc
    return member_dict(member)


@router.post("/members/assign-servant")
def assign_servant(
    body: ServantAssignment,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    """Bulk-set the responsible servant; other profile fields are untouched."""
    updated = member_service.assign_servant(
        engine, body.member_ids, body.servant, actor=admin.get("username"),
    )
    return {"updated": updated}


@router.delete("/members/{member_id}")
def delete_member(
    member_id: str,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    if not member_service.delete_member(engine, member_id, actor=admin.get("username")):
        raise HTTPException(404, f"Member not found: {member_id}")
    return {"deleted": True}


@router.get("/members/{member_id}/balance")
def get_balance(
    member_id: str,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    if member_service.get_member(engine, member_id) is None:
        raise HTTPException(404, f"Member not found: {member_id}")
    balance: PointsBalance = ledger_service.points_details(engine, member_id)
    return {"member_id": member_id, **balance.as_dict()}


@router.get("/members/{member_id}/redemptions")
def get_redemptions(
    member_id: str,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    return {
        "redemptions": [
            redemption_dict(r) for r in ledger_service.redemption_history(engine, member_id)
        ],
    }
