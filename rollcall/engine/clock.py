"""
rollcall.engine.clock — Local calendar helpers
===============================================

Instants are stored as epoch milliseconds (UTC).  Everything that a human
reads off a wall clock — the meeting date, the start time, agenda slots — is
a local string in the meeting's timezone.  All conversions go through here so
no caller ever derives a ``date_str`` from a UTC date.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, tzinfo

__all__ = [
    "from_epoch_ms",
    "local_date_str",
    "minutes_of_day",
    "now_utc",
    "parse_date_str",
    "parse_hhmm",
    "to_epoch_ms",
    "to_local",
]

_HHMM = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def now_utc() -> datetime:
    return datetime.now(UTC)


def to_epoch_ms(instant: datetime) -> int:
    """Epoch milliseconds for an aware datetime.  Naive values are read as UTC."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return int(instant.timestamp() * 1000)


def from_epoch_ms(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=UTC)


def to_local(instant: datetime | int, tz: tzinfo) -> datetime:
    """Convert an aware datetime or epoch-ms value to *tz* wall-clock time."""
    if isinstance(instant, int):
        instant = from_epoch_ms(instant)
    elif instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(tz)


def local_date_str(instant: datetime | int, tz: tzinfo) -> str:
    """``YYYY-MM-DD`` of *instant* on the local calendar."""
    return to_local(instant, tz).date().isoformat()


def minutes_of_day(instant: datetime | int, tz: tzinfo) -> int:
    """Whole minutes since local midnight; seconds are dropped."""
    local = to_local(instant, tz)
    return local.hour * 60 + local.minute


def parse_hhmm(value: str) -> int:
    """Minutes since midnight for a zero-padded ``HH:MM`` string.

    Raises ``ValueError`` for anything else (``"9:00"``, ``"24:00"``, ``""``).
    """
    match = _HHMM.match(value or "")
    if match is None:
        raise ValueError(f"Expected a zero-padded HH:MM time, got {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def parse_date_str(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string; raises ``ValueError`` on bad input."""
    return date.fromisoformat(value)
