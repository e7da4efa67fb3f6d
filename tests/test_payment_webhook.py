"""
Tests for payment rail events (`services/payment_webhook_service.py` and
`/api/v1/webhooks/dwolla`).

Covers contract rules:
- transfer_failed marks every job containing the transfer failed, audited.
- transfer_completed is recorded only.
- Unknown topics are ignored; processing errors answer 500.
"""

from __future__ import annotations

import pytest


@pytest.fixture
def paid_job(supabase):
    return supabase.seed(
        "payout_jobs",
        id="J1",
        order_id="o1",
        retailer_id="R1",
        vendor_id="V1",
        total_amount="100.00",
        retailer_cut="20.00",
        vendor_cut="80.00",
        status="paid",
        transfer_ids=["t-vendor", "t-retailer"],
    )


def test_transfer_failed_marks_job_failed(api_client, supabase, paid_job) -> None:
    response = api_client.post("/api/v1/webhooks/dwolla", json={"topic": "transfer_failed", "resourceId": "t-retailer"})

    assert response.status_code == 200
    assert response.json() == {"received": True}
    assert supabase.rows("payout_jobs")[0]["status"] == "failed"
    log = supabase.rows("logs")[0]
    assert log["action"] == "dwolla_transfer_failed"
    assert log["metadata"]["payout_job_ids"] == ["J1"]


def test_transfer_failed_for_unknown_transfer(container, supabase, paid_job) -> None:
    result = container.payment_events.handle("transfer_failed", "t-other")

    assert result.handled
    assert result.failed_job_ids == []
    assert supabase.rows("payout_jobs")[0]["status"] == "paid"


def test_transfer_completed_is_only_recorded(container, supabase, paid_job) -> None:
    result = container.payment_events.handle("transfer_completed", "t-vendor")

    assert result.handled
    assert supabase.rows("payout_jobs")[0]["status"] == "paid"
    assert supabase.rows("logs")[0]["action"] == "dwolla_transfer_completed"


def test_unknown_topic_is_ignored(api_client, supabase, paid_job) -> None:
    response = api_client.post("/api/v1/webhooks/dwolla", json={"topic": "customer_created", "resourceId": "c-1"})

    assert response.status_code == 200
    assert supabase.rows("logs") == []


def test_processing_error_returns_500(api_client, supabase, paid_job) -> None:
    supabase.fail("payout_jobs", "select")

    response = api_client.post("/api/v1/webhooks/dwolla", json={"topic": "transfer_failed", "resourceId": "t-vendor"})

    assert response.status_code == 500


def test_get_is_not_allowed(api_client) -> None:
    assert api_client.get("/api/v1/webhooks/dwolla").status_code == 405
