"""
rollcall.services.ledger_service — Earn/Spend Persistence
==========================================================

The only code that appends to or deletes from the two ledger tables.

* Check-in is a compare-and-append: look for an existing
  ``(member_id, date_str)`` row, then insert inside a SAVEPOINT.  If a
  concurrent writer wins the race, the ``uq_attendance_member_date``
  constraint fires and the IntegrityError becomes :class:`DuplicateCheckIn`.
* Redemption locks the member row (``SELECT … FOR UPDATE``) while it reads
  the balance, so two redemptions for the same member are serialized.
* Balances are summed from the rows on every read.  Deleting either kind of
  record needs no compensating write.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo

from sqlalchemy import Engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rollcall.database.models import (
    AttendanceRecord,
    CheckInMethod,
    Member,
    RedemptionRecord,
)
from rollcall.engine.balance import PointsBalance, compute_balance, compute_balances
from rollcall.engine.clock import local_date_str, now_utc, to_epoch_ms
from rollcall.engine.errors import (
    DuplicateCheckIn,
    InsufficientBalance,
    InvalidAmount,
    MemberNotFound,
)
from rollcall.engine.scoring import MeetingConfig, score_points
from rollcall.services.audit import audited_delete
from rollcall.services.member_service import roster_filter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Balance reads
# ---------------------------------------------------------------------------
def _member_balance(session: Session, member_id: str) -> PointsBalance:
    attendance = session.scalars(
        select(AttendanceRecord).where(AttendanceRecord.member_id == member_id)
    ).all()
    redemptions = session.scalars(
        select(RedemptionRecord).where(RedemptionRecord.member_id == member_id)
    ).all()
    return compute_balance(attendance, redemptions)


def points_details(engine: Engine, member_id: str) -> PointsBalance:
    """Earned, spent and current points for one member."""
    with Session(engine) as session:
        return _member_balance(session, member_id)


def current_balance(engine: Engine, member_id: str) -> int:
    return points_details(engine, member_id).current


def member_balances(
    engine: Engine,
    search: str | None = None,
) -> list[tuple[Member, PointsBalance]]:
    """Roster members matching *search* (all if empty) with their balance,
    highest current balance first."""
    with Session(engine, expire_on_commit=False) as session:
        members = list(session.scalars(
            select(Member).where(roster_filter(search)).order_by(Member.name)
        ).all())
        balances = compute_balances(
            session.scalars(select(AttendanceRecord)).all(),
            session.scalars(select(RedemptionRecord)).all(),
        )
        session.expunge_all()

    rows = [(m, balances.get(m.id, PointsBalance())) for m in members]
    rows.sort(key=lambda pair: pair[1].current, reverse=True)
    return rows


# ---------------------------------------------------------------------------
# Earn-events
# ---------------------------------------------------------------------------
def record_attendance(
    engine: Engine,
    member_id: str,
    *,
    config: MeetingConfig,
    tz: tzinfo,
    method: CheckInMethod | str = CheckInMethod.MANUAL,
    arrival: datetime | None = None,
) -> AttendanceRecord:
    """Score and append a check-in for *member_id*.

    Raises
    ------
    MemberNotFound
        If the member is not on the roster.
    DuplicateCheckIn
        If the member already has a record for the arrival's local date.
    """
    arrival = arrival or now_utc()
    date_str = local_date_str(arrival, tz)
    method = CheckInMethod(method)

    with Session(engine, expire_on_commit=False) as session:
        if session.get(Member, member_id) is None:
            raise MemberNotFound(member_id)

        existing = session.scalar(
            select(AttendanceRecord.id).where(
                AttendanceRecord.member_id == member_id,
                AttendanceRecord.date_str == date_str,
            )
        )
        if existing is not None:
            logger.info("Duplicate check-in rejected: member=%s date=%s", member_id, date_str)
            raise DuplicateCheckIn(member_id, date_str)

        score = score_points(arrival, config, tz)
        record = AttendanceRecord(
            member_id=member_id,
            timestamp=to_epoch_ms(arrival),
            date_str=date_str,
            points=score.points,
            method=method.value,
        )
        try:
            with session.begin_nested():   # SAVEPOINT
                session.add(record)
                session.flush()
        except IntegrityError as exc:
            # Another writer inserted the same (member, date) between our
            # check and our insert.
            logger.info("Concurrent duplicate check-in: member=%s date=%s", member_id, date_str)
            raise DuplicateCheckIn(member_id, date_str) from exc

        session.commit()
        session.refresh(record)
        session.expunge(record)

    logger.info(
        "Check-in: member=%s date=%s points=%d status=%s method=%s",
        member_id, date_str, record.points, score.status, method,
    )
    return record


def attendance_for_date(engine: Engine, date_str: str) -> list[AttendanceRecord]:
    """All check-ins for one local date, earliest first."""
    with Session(engine, expire_on_commit=False) as session:
        rows = list(session.scalars(
            select(AttendanceRecord)
            .where(AttendanceRecord.date_str == date_str)
            .order_by(AttendanceRecord.timestamp)
        ).all())
        session.expunge_all()
    return rows


def delete_attendance(engine: Engine, record_id: int, *, actor: str | None = None) -> bool:
    """Remove a check-in.  Its points disappear from the balance on next read."""
    with Session(engine) as session:
        deleted = audited_delete(
            session, AttendanceRecord, record_id,
            table_name="attendance_records", actor=actor,
        )
        session.commit()
    if deleted:
        logger.info("Attendance record %s deleted by %s", record_id, actor or "system")
    return deleted


# ---------------------------------------------------------------------------
# Spend-events
# ---------------------------------------------------------------------------
def record_redemption(
    engine: Engine,
    member_id: str,
    gift_label: str,
    points_cost: int,
    *,
    servant_name: str | None = None,
    now: datetime | None = None,
) -> RedemptionRecord:
    """Spend *points_cost* of a member's balance on *gift_label*.

    Raises
    ------
    InvalidAmount
        If ``points_cost <= 0``.
    MemberNotFound
        If the member is not on the roster.
    InsufficientBalance
        If the cost exceeds the current balance.  Nothing is written.
    """
    if points_cost <= 0:
        raise InvalidAmount(points_cost)

    with Session(engine, expire_on_commit=False) as session:
        member = session.get(Member, member_id, with_for_update=True)
        if member is None:
            raise MemberNotFound(member_id)

        balance = _member_balance(session, member_id).current
        if points_cost > balance:
            logger.info(
                "Redemption rejected: member=%s balance=%d cost=%d",
                member_id, balance, points_cost,
            )
            raise InsufficientBalance(member_id, balance, points_cost)

        record = RedemptionRecord(
            member_id=member_id,
            gift_label=gift_label,
            points_cost=points_cost,
            timestamp=to_epoch_ms(now or now_utc()),
            servant_name=servant_name,
        )
        session.add(record)
        session.commit()
        session.refresh(record)
        session.expunge(record)

    logger.info(
        "Redemption: member=%s gift=%r cost=%d balance_after=%d",
        member_id, gift_label, points_cost, balance - points_cost,
    )
    return record


def redemption_history(engine: Engine, member_id: str) -> list[RedemptionRecord]:
    """A member's redemptions, newest first."""
    with Session(engine, expire_on_commit=False) as session:
        rows = list(session.scalars(
            select(RedemptionRecord)
            .where(RedemptionRecord.member_id == member_id)
            .order_by(RedemptionRecord.timestamp.desc(), RedemptionRecord.id.desc())
        ).all())
        session.expunge_all()
    return rows


def delete_redemption(engine: Engine, record_id: int, *, actor: str | None = None) -> bool:
    """Remove a redemption.  The points return to the balance on next read."""
    with Session(engine) as session:
        deleted = audited_delete(
            session, RedemptionRecord, record_id,
            table_name="redemption_records", actor=actor,
        )
        session.commit()
    if deleted:
        logger.info("Redemption record %s deleted by %s", record_id, actor or "system")
    return deleted
