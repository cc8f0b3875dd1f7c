"""
rollcall.engine.scoring — Arrival Time → Points
================================================

Pure calculation, no DB I/O.  The only input besides the arrival instant is
the :class:`MeetingConfig` snapshot read from the ``settings`` table.

Tiers (ties go to the better tier)::

    delta ≤ 0          → points_on_time   "on time"
    0  < delta ≤ 15    → points_late_15   "slightly late"
    15 < delta ≤ 30    → points_late_30   "moderately late"
    delta > 30         → points_late      "very late"

``delta`` is whole minutes between the arrival's local wall-clock time and
``start_time`` on the same local day.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, tzinfo

from rollcall.engine.clock import minutes_of_day, parse_hhmm
from rollcall.engine.errors import InvalidMeetingConfig

__all__ = [
    "ArrivalStatus",
    "MeetingConfig",
    "ScoreResult",
    "delta_minutes",
    "score_points",
    "validate_meeting_config",
]

SLIGHTLY_LATE_MINUTES = 15
MODERATELY_LATE_MINUTES = 30


class ArrivalStatus(enum.StrEnum):
    ON_TIME = "on time"
    SLIGHTLY_LATE = "slightly late"
    MODERATELY_LATE = "moderately late"
    VERY_LATE = "very late"


@dataclass(frozen=True, slots=True)
class MeetingConfig:
    """Meeting start time and the four point tiers.

    Monotonicity (``on_time ≥ late_15 ≥ late_30 ≥ late``) is checked by
    :func:`validate_meeting_config` when an admin saves, not at scoring time.
    """

    start_time: str = "18:00"
    points_on_time: int = 10
    points_late_15: int = 7
    points_late_30: int = 4
    points_late: int = 1


@dataclass(frozen=True, slots=True)
class ScoreResult:
    points: int
    status: ArrivalStatus


def delta_minutes(arrival: datetime | int, config: MeetingConfig, tz: tzinfo) -> int:
    """Minutes between local arrival time and the configured start time."""
    return minutes_of_day(arrival, tz) - parse_hhmm(config.start_time)


def score_points(arrival: datetime | int, config: MeetingConfig, tz: tzinfo) -> ScoreResult:
    """Map an arrival instant to ``(points, status)``.

    *config* must already have passed :func:`validate_meeting_config` (or
    come from ``settings_service.get_meeting_config``, which guarantees a
    parseable ``start_time``).  A malformed ``start_time`` raises
    ``ValueError``; any tier values are accepted.
    """
    delta = delta_minutes(arrival, config, tz)
    if delta <= 0:
        return ScoreResult(config.points_on_time, ArrivalStatus.ON_TIME)
    if delta <= SLIGHTLY_LATE_MINUTES:
        return ScoreResult(config.points_late_15, ArrivalStatus.SLIGHTLY_LATE)
    if delta <= MODERATELY_LATE_MINUTES:
        return ScoreResult(config.points_late_30, ArrivalStatus.MODERATELY_LATE)
    return ScoreResult(config.points_late, ArrivalStatus.VERY_LATE)


def validate_meeting_config(config: MeetingConfig) -> None:
    """Raise :class:`InvalidMeetingConfig` unless *config* is safe to save."""
    try:
        parse_hhmm(config.start_time)
    except ValueError as exc:
        raise InvalidMeetingConfig(str(exc)) from exc

    tiers = (
        config.points_on_time,
        config.points_late_15,
        config.points_late_30,
        config.points_late,
    )
    if any(p < 0 for p in tiers):
        raise InvalidMeetingConfig("Point tiers cannot be negative.")
    if not (tiers[0] >= tiers[1] >= tiers[2] >= tiers[3]):
        raise InvalidMeetingConfig(
            "Points must not increase with lateness "
            "(on time ≥ slightly late ≥ moderately late ≥ very late)."
        )
