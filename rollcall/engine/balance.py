"""
rollcall.engine.balance — Derived point balances
=================================================

A member's balance is never stored.  It is always
``Σ attendance.points − Σ redemption.points_cost`` over the current rows, so
deleting either kind of record is automatically reflected on the next read.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from rollcall.database.models import AttendanceRecord, RedemptionRecord

__all__ = ["PointsBalance", "compute_balance", "compute_balances"]


@dataclass(frozen=True, slots=True)
class PointsBalance:
    earned: int = 0
    spent: int = 0

    @property
    def current(self) -> int:
        return self.earned - self.spent

    def as_dict(self) -> dict[str, int]:
        return {"earned": self.earned, "spent": self.spent, "current": self.current}


def compute_balance(
    attendance: Iterable[AttendanceRecord],
    redemptions: Iterable[RedemptionRecord],
) -> PointsBalance:
    """Balance from one member's earn- and spend-events."""
    earned = sum(a.points for a in attendance)
    spent = sum(r.points_cost for r in redemptions)
    return PointsBalance(earned=earned, spent=spent)


def compute_balances(
    attendance: Iterable[AttendanceRecord],
    redemptions: Iterable[RedemptionRecord],
) -> dict[str, PointsBalance]:
    """Balances for every member id that appears on either side, in one pass each."""
    earned: dict[str, int] = {}
    spent: dict[str, int] = {}
    for a in attendance:
        earned[a.member_id] = earned.get(a.member_id, 0) + a.points
    for r in redemptions:
        spent[r.member_id] = spent.get(r.member_id, 0) + r.points_cost
    return {
        member_id: PointsBalance(earned=earned.get(member_id, 0), spent=spent.get(member_id, 0))
        for member_id in {**earned, **spent}
    }
