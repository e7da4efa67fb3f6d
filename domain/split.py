"""
Domain: revenue split between the parties of a sale.

Rules:
- retailer_cut = round2(total * 0.20) always.
- Without a sourcer (two-party split): vendor_cut = round2(total - retailer_cut),
  sourcer_cut = tapify_cut = 0. The vendor absorbs the rounding remainder, so
  retailer_cut + vendor_cut == total exactly.
- With a sourcer (four-party split): vendor 60%, sourcer 10%, platform 10%,
  each rounded half-up independently. The sum may differ from the total by a
  cent; this remainder is intentionally left unreconciled.

Pure module: no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .money import ZERO, round2

RETAILER_RATE = Decimal("0.20")
VENDOR_RATE_WITH_SOURCER = Decimal("0.60")
SOURCER_RATE = Decimal("0.10")
TAPIFY_RATE = Decimal("0.10")


@dataclass(frozen=True, slots=True)
class PayoutSplit:
    """Per-party cuts of one order total."""

    total: Decimal
    retailer_cut: Decimal
    vendor_cut: Decimal
    sourcer_cut: Decimal = ZERO
    tapify_cut: Decimal = ZERO

    @property
    def allocated(self) -> Decimal:
        """Sum of all cuts (may differ from total by a cent in the four-party split)."""
        return self.retailer_cut + self.vendor_cut + self.sourcer_cut + self.tapify_cut


def compute_split(total: Decimal, has_sourcer: bool) -> PayoutSplit:
    """
    Compute per-party cuts for an order total.

    Raises:
        ValueError: if total is negative.
    """

    if total < 0:
        raise ValueError("total must be >= 0")

    total = round2(total)
    retailer_cut = round2(total * RETAILER_RATE)

    if not has_sourcer:
        return PayoutSplit(
            total=total,
            retailer_cut=retailer_cut,
            vendor_cut=round2(total - retailer_cut),
        )

    return PayoutSplit(
        total=total,
        retailer_cut=retailer_cut,
        vendor_cut=round2(total * VENDOR_RATE_WITH_SOURCER),
        sourcer_cut=round2(total * SOURCER_RATE),
        tapify_cut=round2(total * TAPIFY_RATE),
    )
