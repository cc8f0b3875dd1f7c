"""
rollcall.services.followup_service — Follow-up notes
=====================================================

Servants record a short note every time they call, visit or message an
absent member.  The newest note is shown next to the member on the
follow-up list.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from rollcall.database.models import FollowUpKind, FollowUpLog, Member
from rollcall.engine.clock import now_utc, to_epoch_ms
from rollcall.engine.errors import MemberNotFound

logger = logging.getLogger(__name__)


def log_follow_up(
    engine: Engine,
    member_id: str,
    *,
    note: str,
    servant_name: str,
    kind: FollowUpKind | str = FollowUpKind.CALL,
    now: datetime | None = None,
) -> FollowUpLog:
    if not note or not note.strip():
        raise ValueError("Follow-up note is required.")
    kind = FollowUpKind(kind)

    with Session(engine, expire_on_commit=False) as session:
        if session.get(Member, member_id) is None:
            raise MemberNotFound(member_id)
        entry = FollowUpLog(
            member_id=member_id,
            timestamp=to_epoch_ms(now or now_utc()),
            note=note.strip(),
            servant_name=servant_name,
            kind=kind.value,
        )
        session.add(entry)
        session.commit()
        session.refresh(entry)
        session.expunge(entry)

    logger.info("Follow-up (%s) logged for member %s by %s", kind, member_id, servant_name)
    return entry


def latest_follow_up(engine: Engine, member_id: str) -> FollowUpLog | None:
    with Session(engine, expire_on_commit=False) as session:
        entry = session.scalar(
            select(FollowUpLog)
            .where(FollowUpLog.member_id == member_id)
            .order_by(FollowUpLog.timestamp.desc(), FollowUpLog.id.desc())
            .limit(1)
        )
        if entry is not None:
            session.expunge(entry)
    return entry


def latest_follow_ups(engine: Engine, member_ids: list[str]) -> dict[str, FollowUpLog]:
    """Newest note per member, for rendering a whole follow-up list at once."""
    if not member_ids:
        return {}
    with Session(engine, expire_on_commit=False) as session:
        rows = session.scalars(
            select(FollowUpLog)
            .where(FollowUpLog.member_id.in_(member_ids))
            .order_by(FollowUpLog.timestamp, FollowUpLog.id)
        ).all()
        latest = {row.member_id: row for row in rows}
        session.expunge_all()
    return latest
