"""
rollcall.database.models — SQLAlchemy 2.0 Data Models
======================================================

Tables:
- members             — Roster of people who attend the meeting
- attendance_records  — Earn-events, one per member per meeting date
- redemption_records  — Spend-events against a member's points
- meeting_segments    — Date-scoped agenda entries
- gift_items          — Redemption catalogue
- follow_up_logs      — Notes left by servants after contacting a member
- settings            — Key/value tunables (meeting start time, point tiers)
- admin_log           — Append-only audit trail for administrative actions

Timestamps on the ledger tables are epoch milliseconds (UTC instants).
``date_str`` / ``start_time`` / ``end_time`` are local wall-clock strings in
the meeting's configured timezone.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Rollcall ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CheckInMethod(enum.StrEnum):
    """How a member was identified at the door.  Tag only, no scoring effect."""
    FACE = "face"
    FINGERPRINT = "fingerprint"
    MANUAL = "manual"


class FollowUpKind(enum.StrEnum):
    CALL = "call"
    VISIT = "visit"
    MESSAGE = "message"


class Role(enum.StrEnum):
    """Caller-supplied role; decides what is visible, not a security boundary."""
    ADMIN = "ADMIN"
    SERVANT = "SERVANT"


class AdminActionType(enum.StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


# ---------------------------------------------------------------------------
# Members — the roster
# ---------------------------------------------------------------------------
class Member(Base):
    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(30), default=None)
    dob: Mapped[str | None] = mapped_column(String(10), default=None)  # YYYY-MM-DD
    address: Mapped[str | None] = mapped_column(String(200), default=None)
    college: Mapped[str | None] = mapped_column(String(100), default=None)
    year: Mapped[str | None] = mapped_column(String(50), default=None)
    confession_father: Mapped[str | None] = mapped_column(String(100), default=None)
    responsible_servant: Mapped[str | None] = mapped_column(String(100), default=None)
    photo_url: Mapped[str | None] = mapped_column(Text, default=None)
    has_face_id: Mapped[bool] = mapped_column(Boolean, default=False)
    fingerprint_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_members_responsible_servant", "responsible_servant"),
    )

    def __repr__(self) -> str:
        return f"<Member id={self.id!r} name={self.name!r}>"


# ---------------------------------------------------------------------------
# AttendanceRecord — earn-event
# ---------------------------------------------------------------------------
class AttendanceRecord(Base):
    """One check-in.  ``points`` is computed once at creation, never rescored.

    ``member_id`` carries no foreign key: records survive the deletion of
    their member and aggregate views drop them on join.
    """
    __tablename__ = "attendance_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch ms
    date_str: Mapped[str] = mapped_column(String(10), nullable=False)
    points: Mapped[int] = mapped_column(Integer, nullable=False)
    method: Mapped[str] = mapped_column(
        String(20), nullable=False, default=CheckInMethod.MANUAL.value
    )

    __table_args__ = (
        # One check-in per member per meeting date, even under concurrent writers
        UniqueConstraint("member_id", "date_str", name="uq_attendance_member_date"),
        Index("ix_attendance_date", "date_str"),
        Index("ix_attendance_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<AttendanceRecord id={self.id} member={self.member_id!r} "
            f"date={self.date_str} points={self.points}>"
        )


# ---------------------------------------------------------------------------
# RedemptionRecord — spend-event
# ---------------------------------------------------------------------------
class RedemptionRecord(Base):
    __tablename__ = "redemption_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[str] = mapped_column(String(64), nullable=False)
    gift_label: Mapped[str] = mapped_column(String(200), nullable=False)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch ms
    servant_name: Mapped[str | None] = mapped_column(String(100), default=None)

    __table_args__ = (
        Index("ix_redemption_member_time", "member_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<RedemptionRecord id={self.id} member={self.member_id!r} "
            f"cost={self.points_cost}>"
        )


# ---------------------------------------------------------------------------
# MeetingSegment — one agenda entry on a given date
# ---------------------------------------------------------------------------
class MeetingSegment(Base):
    __tablename__ = "meeting_segments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date_str: Mapped[str] = mapped_column(String(10), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)  # HH:MM
    servant_name: Mapped[str | None] = mapped_column(String(100), default=None)
    notes: Mapped[str | None] = mapped_column(Text, default=None)
    icon: Mapped[str] = mapped_column(String(30), default="default")

    __table_args__ = (
        Index("ix_segments_date_start", "date_str", "start_time"),
    )

    def __repr__(self) -> str:
        return (
            f"<MeetingSegment id={self.id} date={self.date_str} "
            f"{self.start_time}-{self.end_time} title={self.title!r}>"
        )


# ---------------------------------------------------------------------------
# GiftItem — redemption catalogue
# ---------------------------------------------------------------------------
class GiftItem(Base):
    __tablename__ = "gift_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    cost: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<GiftItem id={self.id} name={self.name!r} cost={self.cost}>"


# ---------------------------------------------------------------------------
# FollowUpLog — pastoral follow-up notes
# ---------------------------------------------------------------------------
class FollowUpLog(Base):
    __tablename__ = "follow_up_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    member_id: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)  # epoch ms
    note: Mapped[str] = mapped_column(Text, nullable=False)
    servant_name: Mapped[str] = mapped_column(String(100), nullable=False)
    kind: Mapped[str] = mapped_column(
        String(20), nullable=False, default=FollowUpKind.CALL.value
    )

    __table_args__ = (
        Index("ix_follow_up_member_time", "member_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<FollowUpLog id={self.id} member={self.member_id!r} kind={self.kind}>"


# ---------------------------------------------------------------------------
# Setting — key/value tunables
# ---------------------------------------------------------------------------
class Setting(Base):
    """Key-value configuration store.

    The meeting start time and the four point tiers live here so admins can
    adjust them without redeploying.  Values are stored as JSON strings.
    """
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_settings_category", "category"),
    )

    def __repr__(self) -> str:
        return f"<Setting key={self.key!r} category={self.category!r}>"


# ---------------------------------------------------------------------------
# AdminLog — append-only audit trail
# ---------------------------------------------------------------------------
class AdminLog(Base):
    __tablename__ = "admin_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    actor: Mapped[str] = mapped_column(String(100), nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_table: Mapped[str] = mapped_column(String(50), nullable=False)
    target_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    before_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    after_snapshot: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_admin_log_target", "target_table", "target_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AdminLog id={self.id} actor={self.actor!r} action={self.action_type}>"
