"""
Tests for `domain/payout.py`.

Covers contract rules:
- Cuts are never negative and add up to the total (cent-level drift allowed).
- Status transitions: pending -> paid | failed; priority_display -> failed;
  paid -> failed (asynchronous rail failure); failed is terminal.
- Transitions return new instances.
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.payout import PayoutJob, PayoutStatus

PAID_AT = datetime(2025, 1, 2, 12, 0, tzinfo=timezone.utc)


def _job(**overrides) -> PayoutJob:
    values = dict(
        job_id="job-1",
        order_id="order-1",
        retailer_id="R1",
        vendor_id="V1",
        total_amount=Decimal("100.00"),
        retailer_cut=Decimal("20.00"),
        vendor_cut=Decimal("80.00"),
    )
    values.update(overrides)
    return PayoutJob(**values)


def test_negative_cut_is_rejected() -> None:
    with pytest.raises(ValueError):
        _job(retailer_cut=Decimal("-1.00"), vendor_cut=Decimal("101.00"))


def test_cuts_must_add_up_to_total() -> None:
    with pytest.raises(ValueError):
        _job(vendor_cut=Decimal("70.00"))


def test_four_party_rounding_drift_is_accepted() -> None:
    job = _job(
        total_amount=Decimal("10.05"),
        retailer_cut=Decimal("2.01"),
        vendor_cut=Decimal("6.03"),
        sourcer_id="S1",
        sourcer_cut=Decimal("1.01"),
        tapify_cut=Decimal("1.01"),
    )

    assert job.split.allocated == Decimal("10.06")


def test_paid_returns_new_job_with_transfers() -> None:
    job = _job()

    paid = job.paid(transfer_ids=("t-1", "t-2"), paid_at=PAID_AT)

    assert job.status is PayoutStatus.PENDING
    assert paid.status is PayoutStatus.PAID
    assert paid.transfer_ids == ("t-1", "t-2")
    assert paid.date_paid == PAID_AT


def test_paid_requires_utc_timestamp() -> None:
    with pytest.raises(ValueError):
        _job().paid(transfer_ids=(), paid_at=datetime(2025, 1, 1, tzinfo=timezone(timedelta(hours=1))))


def test_priority_display_job_cannot_be_paid() -> None:
    job = _job(status=PayoutStatus.PRIORITY_DISPLAY)

    assert not job.is_executable
    with pytest.raises(ValueError):
        job.paid(transfer_ids=(), paid_at=PAID_AT)
    assert job.failed().status is PayoutStatus.FAILED


def test_paid_job_can_fail_later() -> None:
    paid = _job().paid(transfer_ids=("t-1",), paid_at=PAID_AT)

    assert paid.failed().status is PayoutStatus.FAILED


def test_failed_is_terminal() -> None:
    failed = _job().failed()

    assert failed.status.is_terminal
    with pytest.raises(ValueError):
        failed.paid(transfer_ids=(), paid_at=PAID_AT)
    with pytest.raises(ValueError):
        failed.failed()


def test_payout_job_is_immutable() -> None:
    job = _job()

    with pytest.raises(FrozenInstanceError):
        job.status = PayoutStatus.PAID  # type: ignore[misc]
