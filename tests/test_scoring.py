"""
tests/test_scoring.py — Arrival Scoring & Clock Helpers
========================================================
Pure-function tests for the points tiers and the local calendar helpers.
No database involved.
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from rollcall.engine.clock import (
    from_epoch_ms,
    local_date_str,
    minutes_of_day,
    parse_hhmm,
    to_epoch_ms,
)
from rollcall.engine.errors import InvalidMeetingConfig
from rollcall.engine.scoring import (
    ArrivalStatus,
    MeetingConfig,
    delta_minutes,
    score_points,
    validate_meeting_config,
)

UTC_TZ = ZoneInfo("UTC")
CAIRO = ZoneInfo("Africa/Cairo")
CONFIG = MeetingConfig()  # 18:00, 10/7/4/1


def _at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2026, 2, 20, hour, minute, second, tzinfo=UTC)


# ===========================================================================
# Tiers
# ===========================================================================
class TestScorePoints:
    def test_early_arrival_is_on_time(self):
        result = score_points(_at(17, 55), CONFIG, UTC_TZ)
        assert result.points == 10
        assert result.status == ArrivalStatus.ON_TIME

    def test_ten_minutes_late(self):
        result = score_points(_at(18, 10), CONFIG, UTC_TZ)
        assert (result.points, result.status) == (7, ArrivalStatus.SLIGHTLY_LATE)

    def test_forty_five_minutes_late(self):
        result = score_points(_at(18, 45), CONFIG, UTC_TZ)
        assert (result.points, result.status) == (1, ArrivalStatus.VERY_LATE)

    @pytest.mark.parametrize(
        ("hour", "minute", "points", "status"),
        [
            (18, 0, 10, ArrivalStatus.ON_TIME),
            (18, 1, 7, ArrivalStatus.SLIGHTLY_LATE),
            (18, 15, 7, ArrivalStatus.SLIGHTLY_LATE),
            (18, 16, 4, ArrivalStatus.MODERATELY_LATE),
            (18, 30, 4, ArrivalStatus.MODERATELY_LATE),
            (18, 31, 1, ArrivalStatus.VERY_LATE),
        ],
    )
    def test_boundaries_go_to_the_better_tier(self, hour, minute, points, status):
        result = score_points(_at(hour, minute), CONFIG, UTC_TZ)
        assert result.points == points
        assert result.status == status

    def test_seconds_are_dropped(self):
        """18:15:59 is still 15 whole minutes late."""
        assert score_points(_at(18, 15, 59), CONFIG, UTC_TZ).status == ArrivalStatus.SLIGHTLY_LATE

    def test_scoring_uses_local_wall_clock(self):
        """16:10 UTC is 18:10 in Cairo (UTC+2 in February)."""
        arrival = datetime(2026, 2, 20, 16, 10, tzinfo=UTC)
        assert delta_minutes(arrival, CONFIG, CAIRO) == 10
        assert score_points(arrival, CONFIG, CAIRO).points == 7

    def test_accepts_epoch_ms(self):
        ms = to_epoch_ms(_at(18, 20))
        assert score_points(ms, CONFIG, UTC_TZ).status == ArrivalStatus.MODERATELY_LATE

    def test_custom_tiers_and_start(self):
        config = MeetingConfig("19:30", 20, 15, 5, 0)
        result = score_points(_at(20, 10), config, UTC_TZ)
        assert result.points == 0
        assert result.status == ArrivalStatus.VERY_LATE

    @pytest.mark.parametrize(
        "config",
        [CONFIG, MeetingConfig("18:20", 15, 15, 6, 0)],
        ids=["defaults", "custom"],
    )
    def test_points_never_increase_with_lateness(self, config):
        """Every minute from 17:00 to 19:30 spans all four tiers."""
        arrivals = [_at(17 + m // 60, m % 60) for m in range(0, 151)]
        results = [score_points(a, config, UTC_TZ) for a in arrivals]
        points = [r.points for r in results]
        assert all(a >= b for a, b in zip(points, points[1:]))
        assert {r.status for r in results} == set(ArrivalStatus)

    def test_malformed_start_time_raises(self):
        """Only configs that passed validation are scored."""
        with pytest.raises(ValueError):
            score_points(_at(18, 0), MeetingConfig("6pm"), UTC_TZ)


# ===========================================================================
# Config validation
# ===========================================================================
class TestValidateMeetingConfig:
    def test_defaults_are_valid(self):
        validate_meeting_config(CONFIG)

    def test_equal_tiers_are_valid(self):
        validate_meeting_config(MeetingConfig("18:00", 5, 5, 5, 5))

    def test_rejects_increasing_tiers(self):
        with pytest.raises(InvalidMeetingConfig, match="must not increase"):
            validate_meeting_config(MeetingConfig("18:00", 5, 7, 4, 1))

    def test_rejects_negative_points(self):
        with pytest.raises(InvalidMeetingConfig, match="negative"):
            validate_meeting_config(MeetingConfig("18:00", 10, 7, 4, -1))

    @pytest.mark.parametrize("start", ["6pm", "9:00", "24:00", ""])
    def test_rejects_malformed_start_time(self, start):
        with pytest.raises(InvalidMeetingConfig):
            validate_meeting_config(MeetingConfig(start, 10, 7, 4, 1))

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_meeting_config(MeetingConfig("18:00", 1, 2, 3, 4))


# ===========================================================================
# Clock helpers
# ===========================================================================
class TestClock:
    def test_epoch_ms_round_trip(self):
        instant = _at(18, 0)
        assert from_epoch_ms(to_epoch_ms(instant)) == instant

    def test_naive_datetime_is_read_as_utc(self):
        assert to_epoch_ms(datetime(2026, 2, 20, 18, 0)) == to_epoch_ms(_at(18, 0))

    def test_local_date_differs_from_utc_date_near_midnight(self):
        """23:30 UTC on the 20th is already the 21st in Cairo."""
        late = datetime(2026, 2, 20, 23, 30, tzinfo=UTC)
        assert local_date_str(late, UTC_TZ) == "2026-02-20"
        assert local_date_str(late, CAIRO) == "2026-02-21"

    def test_minutes_of_day(self):
        assert minutes_of_day(_at(8, 30, 45), UTC_TZ) == 8 * 60 + 30

    def test_parse_hhmm(self):
        assert parse_hhmm("00:00") == 0
        assert parse_hhmm("23:59") == 23 * 60 + 59

    @pytest.mark.parametrize("value", ["8:30", "08:60", "25:00", "0830", None])
    def test_parse_hhmm_rejects(self, value):
        with pytest.raises(ValueError):
            parse_hhmm(value)
