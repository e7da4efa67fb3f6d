"""
Tests for `domain/split.py`.

Covers contract rules:
- Two-party split: retailer 20%, vendor takes the remainder, sum is exact.
- Four-party split: 20/60/10/10, each cut rounded half-up independently.
- Negative totals are rejected.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from domain.split import compute_split


@pytest.mark.parametrize("total", ["100.00", "33.33", "0.01", "19.99", "1234.57"])
def test_two_party_split_adds_up_exactly(total: str) -> None:
    """Verify retailer_cut + vendor_cut == total to the cent without a sourcer."""

    split = compute_split(Decimal(total), has_sourcer=False)

    assert split.retailer_cut + split.vendor_cut == Decimal(total)
    assert split.sourcer_cut == Decimal("0")
    assert split.tapify_cut == Decimal("0")


def test_two_party_split_rounds_retailer_half_up() -> None:
    split = compute_split(Decimal("33.33"), has_sourcer=False)

    assert split.retailer_cut == Decimal("6.67")
    assert split.vendor_cut == Decimal("26.66")


def test_four_party_split_uses_fixed_rates() -> None:
    split = compute_split(Decimal("100.00"), has_sourcer=True)

    assert split.retailer_cut == Decimal("20.00")
    assert split.vendor_cut == Decimal("60.00")
    assert split.sourcer_cut == Decimal("10.00")
    assert split.tapify_cut == Decimal("10.00")
    assert split.allocated == Decimal("100.00")


def test_four_party_split_keeps_rounding_remainder() -> None:
    """Each cut is rounded on its own, so the sum may exceed the total by a cent."""

    split = compute_split(Decimal("10.05"), has_sourcer=True)

    assert split.retailer_cut == Decimal("2.01")
    assert split.vendor_cut == Decimal("6.03")
    assert split.sourcer_cut == Decimal("1.01")
    assert split.tapify_cut == Decimal("1.01")
    assert split.allocated == Decimal("10.06")


def test_zero_total_gives_zero_cuts() -> None:
    split = compute_split(Decimal("0"), has_sourcer=True)

    assert split.allocated == Decimal("0")


def test_negative_total_is_rejected() -> None:
    with pytest.raises(ValueError):
        compute_split(Decimal("-1.00"), has_sourcer=False)
