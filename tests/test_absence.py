"""
tests/test_absence.py — Consecutive-Miss Detection
===================================================
Pure tests for engine.absence plus the dashboard / follow-up presets in
analytics_service, which run against the in-memory database.
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from conftest import add_attendance, add_member
from rollcall.database.models import AttendanceRecord, Member
from rollcall.engine.absence import (
    consecutive_misses,
    filter_roster,
    find_absentees,
    meeting_dates,
)
from rollcall.services import analytics_service

UTC_TZ = ZoneInfo("UTC")


def _rec(member_id: str, date_str: str) -> AttendanceRecord:
    return AttendanceRecord(member_id=member_id, date_str=date_str, timestamp=0, points=10)


@pytest.fixture
def roster() -> list[Member]:
    return [
        Member(id="a", name="Abanoub", responsible_servant="mina"),
        Member(id="b", name="Bishoy", responsible_servant="marina"),
        Member(id="c", name="Cyril", responsible_servant=None),
    ]


# ===========================================================================
# Building blocks
# ===========================================================================
class TestHelpers:
    def test_meeting_dates_distinct_and_descending(self):
        records = [_rec("a", "2026-02-06"), _rec("b", "2026-02-20"), _rec("a", "2026-02-20")]
        assert meeting_dates(records) == ["2026-02-20", "2026-02-06"]

    def test_streak_stops_at_first_attended_date(self):
        dates = ["2026-02-27", "2026-02-20", "2026-02-13", "2026-02-06"]
        assert consecutive_misses({"2026-02-13"}, dates) == 2
        assert consecutive_misses({"2026-02-27", "2026-02-06"}, dates) == 0
        assert consecutive_misses(set(), dates) == 4

    def test_filter_roster(self, roster):
        assert [m.id for m in filter_roster(roster, "all")] == ["a", "b", "c"]
        assert [m.id for m in filter_roster(roster, "unassigned")] == ["c"]
        assert [m.id for m in filter_roster(roster, "mina")] == ["a"]
        assert filter_roster(roster, "nobody") == []


# ===========================================================================
# find_absentees
# ===========================================================================
class TestFindAbsentees:
    def test_two_misses_after_attending_first_meeting(self, roster):
        records = [
            _rec("a", "2026-02-06"),
            _rec("b", "2026-02-06"), _rec("b", "2026-02-13"), _rec("b", "2026-02-20"),
            _rec("c", "2026-02-20"),
        ]
        result = find_absentees(records, roster, miss_threshold=2, today="2026-02-27")
        assert [(e.member.id, e.consecutive_misses) for e in result] == [("a", 2)]
        assert result[0].last_attended == "2026-02-06"

    def test_attended_latest_meeting_means_zero(self, roster):
        records = [_rec("a", "2026-02-06"), _rec("a", "2026-02-13"), _rec("b", "2026-02-06")]
        result = find_absentees(records, roster, miss_threshold=0, today="2026-02-27")
        misses = {e.member.id: e.consecutive_misses for e in result}
        assert misses["a"] == 0
        assert misses["b"] == 1

    def test_member_with_no_records_misses_every_date(self, roster):
        records = [_rec("a", "2026-02-06"), _rec("a", "2026-02-13")]
        result = find_absentees(records, roster, miss_threshold=2, today="2026-02-27")
        entry = next(e for e in result if e.member.id == "c")
        assert entry.consecutive_misses == 2
        assert entry.last_attended is None

    def test_present_today_is_skipped(self, roster):
        records = [_rec("b", "2026-02-06"), _rec("a", "2026-02-20")]
        result = find_absentees(records, roster, miss_threshold=1, today="2026-02-20")
        assert "a" not in {e.member.id for e in result}

    def test_lookback_caps_the_walk(self, roster):
        records = [_rec("b", d) for d in ("2026-01-30", "2026-02-06", "2026-02-13", "2026-02-20")]
        result = find_absentees(
            records, roster, miss_threshold=1, today="2026-02-27", lookback=3,
        )
        assert {e.member.id: e.consecutive_misses for e in result} == {"a": 3, "c": 3}

    def test_sorted_by_misses_desc_then_roster_order(self, roster):
        records = [
            _rec("b", "2026-02-06"),
            _rec("c", "2026-02-13"),
            _rec("b", "2026-02-20"),
        ]
        # a: 3 misses, c: 1 miss, b: attended latest
        result = find_absentees(records, roster, miss_threshold=0, today="2026-02-27")
        assert [e.member.id for e in result] == ["a", "c", "b"]

    def test_servant_filter(self, roster):
        records = [_rec("x", "2026-02-06"), _rec("x", "2026-02-13")]
        mine = find_absentees(
            records, roster, miss_threshold=2, today="2026-02-27", servant_filter="mina",
        )
        assert [e.member.id for e in mine] == ["a"]
        unassigned = find_absentees(
            records, roster, miss_threshold=2, today="2026-02-27", servant_filter="unassigned",
        )
        assert [e.member.id for e in unassigned] == ["c"]

    def test_no_meetings_yet(self, roster):
        assert find_absentees([], roster, miss_threshold=0, today="2026-02-27") == []


# ===========================================================================
# Service presets
# ===========================================================================
class TestPresets:
    @pytest.fixture
    def engine(self, db_engine):
        for i in range(1, 8):
            add_member(db_engine, f"m{i}", f"Member {i}")
        # Three meetings; only m1 keeps coming, m2 came to the first one.
        for date_str in ("2026-02-06", "2026-02-13", "2026-02-20"):
            add_attendance(db_engine, "m1", date_str)
        add_attendance(db_engine, "m2", "2026-02-06")
        return db_engine

    def test_dashboard_caps_at_five(self, engine):
        now = datetime(2026, 2, 27, 17, 0, tzinfo=UTC)
        result = analytics_service.dashboard_absentees(engine, tz=UTC_TZ, now=now)
        assert len(result) == 5
        assert all(e.consecutive_misses >= 2 for e in result)
        assert "m1" not in {e.member.id for e in result}

    def test_follow_up_weeks_threshold(self, engine):
        now = datetime(2026, 2, 27, 17, 0, tzinfo=UTC)
        result = analytics_service.follow_up_absentees(engine, tz=UTC_TZ, weeks=3, now=now)
        ids = {e.member.id for e in result}
        assert "m2" not in ids          # only two misses
        assert {"m3", "m7"} <= ids
