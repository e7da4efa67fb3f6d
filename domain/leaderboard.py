"""
Domain: Leaderboard slices.

A slice holds per-(period, retailer) counters. Slices only ever grow: each
scan or order event adds to the slice of the day it happened on.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .money import ZERO, round2


@dataclass(frozen=True, slots=True)
class LeaderboardIncrement:
    """Additive delta applied to one slice."""

    period: str
    retailer_id: str
    scans: int = 0
    orders: int = 0
    revenue: Decimal = ZERO

    def __post_init__(self) -> None:
        if self.scans < 0 or self.orders < 0 or self.revenue < ZERO:
            raise ValueError("Leaderboard increments must be non-negative")

    @property
    def is_empty(self) -> bool:
        return self.scans == 0 and self.orders == 0 and self.revenue == ZERO


@dataclass(frozen=True, slots=True)
class LeaderboardSlice:
    period: str
    retailer_id: str
    scan_count: int = 0
    order_count: int = 0
    revenue_total: Decimal = ZERO

    def plus(self, increment: LeaderboardIncrement) -> "LeaderboardSlice":
        if (increment.period, increment.retailer_id) != (self.period, self.retailer_id):
            raise ValueError("Increment does not belong to this leaderboard slice")
        return LeaderboardSlice(
            period=self.period,
            retailer_id=self.retailer_id,
            scan_count=self.scan_count + increment.scans,
            order_count=self.order_count + increment.orders,
            revenue_total=round2(self.revenue_total + increment.revenue),
        )


__all__ = ["LeaderboardIncrement", "LeaderboardSlice"]
