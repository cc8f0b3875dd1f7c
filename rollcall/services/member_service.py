"""
rollcall.services.member_service — Roster access
=================================================

The engine only reads members.  These helpers exist so the dashboard (and the
tests) can maintain the roster the ledger joins against.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, or_, select, true, update
from sqlalchemy.orm import Session

from rollcall.database.models import Member
from rollcall.services.audit import audited_delete

logger = logging.getLogger(__name__)

_PROFILE_FIELDS = frozenset({
    "name", "phone", "dob", "address", "college", "year", "confession_father",
    "responsible_servant", "photo_url", "has_face_id", "fingerprint_count",
})


def roster_filter(search: str | None):
    """WHERE clause matching *search* anywhere in a member's name or phone."""
    term = (search or "").strip()
    if not term:
        return true()
    return or_(
        Member.name.icontains(term, autoescape=True),
        Member.phone.icontains(term, autoescape=True),
    )


def list_members(engine: Engine, search: str | None = None) -> list[Member]:
    with Session(engine, expire_on_commit=False) as session:
        rows = list(session.scalars(
            select(Member).where(roster_filter(search)).order_by(Member.name, Member.id)
        ).all())
        session.expunge_all()
    return rows


def get_member(engine: Engine, member_id: str) -> Member | None:
    with Session(engine, expire_on_commit=False) as session:
        member = session.get(Member, member_id)
        if member is not None:
            session.expunge(member)
    return member


def save_member(engine: Engine, member_id: str, **profile) -> Member:
    """Insert or update a member's profile.  The id never changes."""
    unknown = set(profile) - _PROFILE_FIELDS
    if unknown:
        raise ValueError(f"Unknown member fields: {sorted(unknown)}")
    if not member_id:
        raise ValueError("Member id is required.")

    with Session(engine, expire_on_commit=False) as session:
        member = session.get(Member, member_id)
        if member is None:
            if not profile.get("name"):
                raise ValueError("Member name is required.")
            member = Member(id=member_id, **profile)
            session.add(member)
            logger.info("Member %s added", member_id)
        else:
            for key, value in profile.items():
                setattr(member, key, value)
        session.commit()
        session.refresh(member)
        session.expunge(member)
    return member


def delete_member(engine: Engine, member_id: str, *, actor: str | None = None) -> bool:
    """Remove a member.  Their ledger rows stay; aggregate views drop them."""
    with Session(engine) as session:
        deleted = audited_delete(
            session, Member, member_id, table_name="members", actor=actor,
        )
        session.commit()
    if deleted:
        logger.info("Member %s deleted by %s", member_id, actor or "system")
    return deleted


def assign_servant(
    engine: Engine,
    member_ids: list[str],
    servant: str | None,
    *,
    actor: str | None = None,
) -> int:
    """Set ``responsible_servant`` on every listed member in one statement.

    Other profile fields are left alone.  ``None`` or a blank name unassigns.
    Unknown ids are skipped; returns how many members were updated.
    """
    ids = sorted({m for m in member_ids if m})
    if not ids:
        return 0
    servant = (servant or "").strip() or None

    with Session(engine) as session:
        result = session.execute(
            update(Member).where(Member.id.in_(ids)).values(responsible_servant=servant)
        )
        session.commit()
    logger.info(
        "Responsible servant %r assigned to %d member(s) by %s",
        servant, result.rowcount, actor or "system",
    )
    return result.rowcount
