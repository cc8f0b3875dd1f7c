"""
tests/test_ledger_service.py — Check-in & Redemption Integration Tests
=======================================================================
Service-level tests for ledger_service: one check-in per member per local
date, redemptions guarded by the derived balance, and audited deletes.

Uses an in-memory SQLite database via the shared conftest fixtures.
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from conftest import add_attendance, add_member
from rollcall.database.models import AdminLog, AttendanceRecord, RedemptionRecord
from rollcall.engine.errors import (
    DuplicateCheckIn,
    InsufficientBalance,
    InvalidAmount,
    MemberNotFound,
)
from rollcall.engine.scoring import MeetingConfig
from rollcall.services import ledger_service

UTC_TZ = ZoneInfo("UTC")
CONFIG = MeetingConfig()


@pytest.fixture
def engine(db_engine):
    """Re-use the shared conftest db_engine (SQLite, StaticPool)."""
    add_member(db_engine, "m1", "Mina")
    add_member(db_engine, "m2", "Marina")
    return db_engine


def _count(engine, model) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(model))


def _check_in(engine, member_id="m1", hour=18, minute=10, day=20):
    return ledger_service.record_attendance(
        engine,
        member_id,
        config=CONFIG,
        tz=UTC_TZ,
        arrival=datetime(2026, 2, day, hour, minute, tzinfo=UTC),
    )


# ===========================================================================
# Check-in
# ===========================================================================
class TestRecordAttendance:
    def test_scores_and_persists(self, engine):
        record = _check_in(engine)
        assert record.id is not None
        assert record.points == 7
        assert record.date_str == "2026-02-20"
        assert record.method == "manual"
        assert _count(engine, AttendanceRecord) == 1

    def test_duplicate_same_day_is_rejected(self, engine):
        _check_in(engine, hour=18, minute=0)
        with pytest.raises(DuplicateCheckIn) as excinfo:
            _check_in(engine, hour=19, minute=0)
        assert excinfo.value.date_str == "2026-02-20"
        assert _count(engine, AttendanceRecord) == 1

    def test_next_day_is_a_new_meeting(self, engine):
        _check_in(engine, day=20)
        _check_in(engine, day=27)
        assert _count(engine, AttendanceRecord) == 2

    def test_other_members_unaffected(self, engine):
        _check_in(engine, "m1")
        _check_in(engine, "m2")
        assert _count(engine, AttendanceRecord) == 2

    def test_unknown_member(self, engine):
        with pytest.raises(MemberNotFound):
            _check_in(engine, "ghost")
        assert _count(engine, AttendanceRecord) == 0

    def test_method_tag_is_stored(self, engine):
        record = ledger_service.record_attendance(
            engine, "m1", config=CONFIG, tz=UTC_TZ, method="face",
            arrival=datetime(2026, 2, 20, 17, 50, tzinfo=UTC),
        )
        assert record.method == "face"
        assert record.points == 10

    def test_invalid_method(self, engine):
        with pytest.raises(ValueError):
            ledger_service.record_attendance(
                engine, "m1", config=CONFIG, tz=UTC_TZ, method="retina",
            )

    def test_local_date_is_used(self, engine):
        """23:30 UTC on the 20th is a check-in for the 21st in Cairo."""
        record = ledger_service.record_attendance(
            engine, "m1", config=CONFIG, tz=ZoneInfo("Africa/Cairo"),
            arrival=datetime(2026, 2, 20, 23, 30, tzinfo=UTC),
        )
        assert record.date_str == "2026-02-21"

    def test_attendance_for_date(self, engine):
        _check_in(engine, "m2", minute=20)
        _check_in(engine, "m1", minute=5)
        _check_in(engine, "m1", day=27)
        rows = ledger_service.attendance_for_date(engine, "2026-02-20")
        assert [r.member_id for r in rows] == ["m1", "m2"]


# ===========================================================================
# Balance
# ===========================================================================
class TestBalance:
    def test_zero_for_new_member(self, engine):
        details = ledger_service.points_details(engine, "m1")
        assert (details.earned, details.spent, details.current) == (0, 0, 0)

    def test_earned_minus_spent(self, engine):
        add_attendance(engine, "m1", "2026-02-06", 30)
        add_attendance(engine, "m1", "2026-02-13", 30)
        ledger_service.record_redemption(engine, "m1", "Notebook", 50)
        details = ledger_service.points_details(engine, "m1")
        assert (details.earned, details.spent, details.current) == (60, 50, 10)

    def test_never_negative_over_mixed_activity(self, engine):
        """Check-ins, refused and accepted redemptions interleaved."""
        steps = [
            ("check_in", 18, 0),        # +10
            ("redeem", "Icon", 25),     # refused
            ("redeem", "Pen", 8),       # 2 left
            ("check_in", 18, 20),       # +4
            ("redeem", "Mug", 7),       # refused
            ("redeem", "Sticker", 6),   # 0 left
            ("redeem", "Sticker", 1),   # refused
            ("check_in", 19, 0),        # +1
        ]
        refused = 0
        for day, step in enumerate(steps, start=1):
            if step[0] == "check_in":
                _check_in(engine, hour=step[1], minute=step[2], day=day)
            else:
                try:
                    ledger_service.record_redemption(engine, "m1", step[1], step[2])
                except InsufficientBalance:
                    refused += 1
            assert ledger_service.current_balance(engine, "m1") >= 0

        details = ledger_service.points_details(engine, "m1")
        assert (details.earned, details.spent, details.current) == (15, 14, 1)
        assert refused == 3
        assert _count(engine, RedemptionRecord) == 2

    def test_member_balances_sorted_by_current(self, engine):
        add_attendance(engine, "m2", "2026-02-06", 10)
        add_attendance(engine, "m1", "2026-02-06", 4)
        rows = ledger_service.member_balances(engine)
        assert [(m.id, b.current) for m, b in rows] == [("m2", 10), ("m1", 4)]


# ===========================================================================
# Redemption
# ===========================================================================
class TestRecordRedemption:
    def test_insufficient_balance_writes_nothing(self, engine):
        add_attendance(engine, "m1", "2026-02-06", 50)
        with pytest.raises(InsufficientBalance) as excinfo:
            ledger_service.record_redemption(engine, "m1", "Icon", 60)
        assert excinfo.value.balance == 50
        assert ledger_service.current_balance(engine, "m1") == 50
        assert _count(engine, RedemptionRecord) == 0

    def test_exact_balance_can_be_spent(self, engine):
        add_attendance(engine, "m1", "2026-02-06", 50)
        record = ledger_service.record_redemption(
            engine, "m1", "Notebook", 50, servant_name="mina",
        )
        assert record.servant_name == "mina"
        assert ledger_service.current_balance(engine, "m1") == 0

    @pytest.mark.parametrize("cost", [0, -5])
    def test_non_positive_cost(self, engine, cost):
        with pytest.raises(InvalidAmount):
            ledger_service.record_redemption(engine, "m1", "Pen", cost)

    def test_unknown_member(self, engine):
        with pytest.raises(MemberNotFound):
            ledger_service.record_redemption(engine, "ghost", "Pen", 20)

    def test_history_newest_first(self, engine):
        add_attendance(engine, "m1", "2026-02-06", 100)
        ledger_service.record_redemption(
            engine, "m1", "Pen", 20, now=datetime(2026, 2, 6, 19, 0, tzinfo=UTC),
        )
        ledger_service.record_redemption(
            engine, "m1", "Chocolate", 30, now=datetime(2026, 2, 13, 19, 0, tzinfo=UTC),
        )
        history = ledger_service.redemption_history(engine, "m1")
        assert [r.gift_label for r in history] == ["Chocolate", "Pen"]


# ===========================================================================
# Deletes
# ===========================================================================
class TestDeletes:
    def test_deleting_attendance_lowers_balance(self, engine):
        record = _check_in(engine)
        assert ledger_service.current_balance(engine, "m1") == 7
        assert ledger_service.delete_attendance(engine, record.id, actor="admin") is True
        assert ledger_service.current_balance(engine, "m1") == 0

    def test_deleting_redemption_restores_points(self, engine):
        add_attendance(engine, "m1", "2026-02-06", 50)
        record = ledger_service.record_redemption(engine, "m1", "Pen", 20)
        assert ledger_service.delete_redemption(engine, record.id) is True
        assert ledger_service.current_balance(engine, "m1") == 50

    def test_delete_missing_returns_false(self, engine):
        assert ledger_service.delete_attendance(engine, 999) is False
        assert ledger_service.delete_redemption(engine, 999) is False

    def test_delete_is_audited(self, engine):
        record = _check_in(engine)
        ledger_service.delete_attendance(engine, record.id, actor="admin")
        with Session(engine) as session:
            log = session.scalars(select(AdminLog)).one()
        assert log.actor == "admin"
        assert log.action_type == "DELETE"
        assert log.target_table == "attendance_records"
        assert log.target_id == str(record.id)
        assert log.before_snapshot["points"] == 7
