"""
rollcall.engine.errors — Validation failures raised by the ledger and agenda
=============================================================================

All of these are deterministic, caller-facing validation failures scoped to a
single operation.  None is retried and none is fatal to the process.  They
subclass :class:`ValueError` so service callers that only care about "bad
input" can keep catching that.
"""

from __future__ import annotations

__all__ = [
    "DuplicateCheckIn",
    "InsufficientBalance",
    "InvalidAmount",
    "InvalidMeetingConfig",
    "InvalidSegmentRange",
    "MemberNotFound",
    "RollcallError",
]


class RollcallError(ValueError):
    """Base class for every engine validation failure."""


class DuplicateCheckIn(RollcallError):
    def __init__(self, member_id: str, date_str: str) -> None:
        self.member_id = member_id
        self.date_str = date_str
        super().__init__(
            f"Member {member_id} is already checked in for {date_str}."
        )


class InsufficientBalance(RollcallError):
    def __init__(self, member_id: str, balance: int, points_cost: int) -> None:
        self.member_id = member_id
        self.balance = balance
        self.points_cost = points_cost
        super().__init__(
            f"Member {member_id} has {balance} points; "
            f"{points_cost} are needed for this redemption."
        )


class InvalidAmount(RollcallError):
    def __init__(self, amount: int) -> None:
        self.amount = amount
        super().__init__(f"Point amounts must be positive, got {amount}.")


class InvalidSegmentRange(RollcallError):
    def __init__(self, start_time: str, end_time: str, reason: str | None = None) -> None:
        self.start_time = start_time
        self.end_time = end_time
        super().__init__(
            reason
            or f"Segment must start before it ends ({start_time} → {end_time})."
        )


class MemberNotFound(RollcallError):
    def __init__(self, member_id: str) -> None:
        self.member_id = member_id
        super().__init__(f"Member not found: {member_id}")


class InvalidMeetingConfig(RollcallError):
    """Raised when an admin tries to save non-monotonic or malformed tiers."""
