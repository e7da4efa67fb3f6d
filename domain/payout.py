"""
Domain: Payout jobs.

A payout job is the money owed to up to four parties for one order.

Invariants implemented here:
- At most one job per order (enforced by the store; see payout_job_repository).
- Cuts are never negative.
- retailer_cut + vendor_cut + sourcer_cut + tapify_cut == total_amount, within the
  cent-level remainder the four-party split is allowed to leave.
- Status transitions: pending -> paid | failed; priority_display -> failed.
  `paid` and `failed` are terminal; a failed job is never moved back to pending
  automatically.

Pure module: no I/O. Transitions return new instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from .money import CENT, ZERO
from .split import PayoutSplit
from .time import require_utc_timestamp

# Four independently rounded cuts can each be off by half a cent.
_MAX_ROUNDING_DRIFT = CENT * 2


class PayoutStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    PRIORITY_DISPLAY = "priority_display"

    @property
    def is_terminal(self) -> bool:
        return self in (PayoutStatus.PAID, PayoutStatus.FAILED)


_ALLOWED_TRANSITIONS = {
    PayoutStatus.PENDING: {PayoutStatus.PAID, PayoutStatus.FAILED},
    PayoutStatus.PRIORITY_DISPLAY: {PayoutStatus.FAILED},
    PayoutStatus.PAID: {PayoutStatus.FAILED},
    PayoutStatus.FAILED: set(),
}


@dataclass(frozen=True, slots=True)
class PayoutJob:
    """
    Immutable payout job for one order.

    A `paid` job may still move to `failed`: the rail reports transfer failures
    asynchronously, after the job was marked paid on issuance.
    """

    job_id: str
    order_id: str
    retailer_id: str
    vendor_id: str
    total_amount: Decimal
    retailer_cut: Decimal
    vendor_cut: Decimal
    sourcer_id: Optional[str] = None
    sourcer_cut: Decimal = ZERO
    tapify_cut: Decimal = ZERO
    status: PayoutStatus = PayoutStatus.PENDING
    source_uid: Optional[str] = None
    transfer_ids: Tuple[str, ...] = field(default_factory=tuple)
    date_paid: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        for name in ("total_amount", "retailer_cut", "vendor_cut", "sourcer_cut", "tapify_cut"):
            if getattr(self, name) < ZERO:
                raise ValueError(f"{name} must be >= 0")

        allocated = self.retailer_cut + self.vendor_cut + self.sourcer_cut + self.tapify_cut
        if abs(allocated - self.total_amount) > _MAX_ROUNDING_DRIFT:
            raise ValueError(
                f"cuts ({allocated}) do not add up to total_amount ({self.total_amount})"
            )

        if self.date_paid is not None:
            require_utc_timestamp("date_paid", self.date_paid)
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)

    @property
    def split(self) -> PayoutSplit:
        return PayoutSplit(
            total=self.total_amount,
            retailer_cut=self.retailer_cut,
            vendor_cut=self.vendor_cut,
            sourcer_cut=self.sourcer_cut,
            tapify_cut=self.tapify_cut,
        )

    @property
    def is_executable(self) -> bool:
        """Only pending jobs may be driven through the payment rail."""
        return self.status is PayoutStatus.PENDING

    def _transition(self, target: PayoutStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"Payout job cannot move from {self.status.value} to {target.value}")

    def paid(self, *, transfer_ids: Tuple[str, ...], paid_at: datetime) -> "PayoutJob":
        """Return a new job marked paid with the issued transfer ids."""

        require_utc_timestamp("paid_at", paid_at)
        self._transition(PayoutStatus.PAID)
        return replace(self, status=PayoutStatus.PAID, transfer_ids=tuple(transfer_ids), date_paid=paid_at)

    def failed(self) -> "PayoutJob":
        self._transition(PayoutStatus.FAILED)
        return replace(self, status=PayoutStatus.FAILED)


__all__ = ["PayoutStatus", "PayoutJob"]
