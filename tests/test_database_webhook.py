"""
Tests for database-change events (`services/database_webhook_service.py` and
`/api/v1/webhooks/supabase`).

Covers contract rules:
- Shared secret from X-Supabase-Signature, X-Api-Key or Authorization; 401 otherwise.
- (orders, INSERT): payout job ensured, leaderboard +1 order and +revenue.
- (scans, INSERT): UID last-scan metadata, scan counter, leaderboard +1 scan.
- Redelivery of the same row does not count twice, on the leaderboard or the UID.
- Other (table, type) pairs are ignored.
"""

from __future__ import annotations

import pytest

from conftest import SUPABASE_HOOK_SECRET

ORDER_EVENT = {
    "type": "INSERT",
    "table": "orders",
    "record": {
        "id": "order-1",
        "total": "50.00",
        "retailer_id": "R1",
        "vendor_id": "V1",
        "source_uid": "UID1",
        "processed_at": "2025-02-03T23:30:00Z",
    },
}

SCAN_EVENT = {
    "type": "INSERT",
    "table": "scans",
    "record": {
        "id": "scan-1",
        "uid": "UID1",
        "retailer_id": "R1",
        "timestamp": "2025-02-03T08:00:00Z",
        "ip_address": "203.0.113.7",
        "user_agent": "Mozilla/5.0",
    },
}


def _post(api_client, event, headers=None):
    return api_client.post(
        "/api/v1/webhooks/supabase",
        json=event,
        headers=headers if headers is not None else {"X-Supabase-Signature": SUPABASE_HOOK_SECRET},
    )


@pytest.mark.parametrize(
    "headers",
    [
        {"X-Supabase-Signature": SUPABASE_HOOK_SECRET},
        {"X-Api-Key": SUPABASE_HOOK_SECRET},
        {"Authorization": f"Bearer {SUPABASE_HOOK_SECRET}"},
    ],
)
def test_accepted_secret_headers(api_client, supabase, headers) -> None:
    supabase.seed("retailers", id="R1")

    assert _post(api_client, ORDER_EVENT, headers).status_code == 200


def test_bad_secret_is_rejected(api_client, supabase) -> None:
    assert _post(api_client, ORDER_EVENT, {"X-Api-Key": "nope"}).status_code == 401
    assert _post(api_client, ORDER_EVENT, {}).status_code == 401
    assert supabase.rows("payout_jobs") == []


def test_order_insert_creates_job_and_updates_leaderboard(api_client, supabase) -> None:
    supabase.seed("retailers", id="R1", sourcer_id="S1")

    response = _post(api_client, ORDER_EVENT)

    assert response.json() == {"received": True, "handled": True}
    job = supabase.rows("payout_jobs")[0]
    assert job["order_id"] == "order-1"
    assert job["sourcer_id"] == "S1"
    assert job["retailer_cut"] == "10.00"
    board = supabase.rows("leaderboards")[0]
    assert board["period"] == "2025-02-03"
    assert board["order_count"] == 1
    assert board["revenue_total"] == "50.00"
    assert "order_insert" in [row["action"] for row in supabase.rows("logs")]


def test_order_insert_keeps_existing_job(api_client, supabase) -> None:
    supabase.seed("retailers", id="R1")
    supabase.seed(
        "payout_jobs", id="J1", order_id="order-1", retailer_id="R1", vendor_id="V1",
        total_amount="50.00", retailer_cut="10.00", vendor_cut="40.00", status="pending", transfer_ids=[],
    )

    _post(api_client, ORDER_EVENT)

    assert len(supabase.rows("payout_jobs")) == 1


def test_redelivered_event_counts_once(api_client, supabase) -> None:
    supabase.seed("retailers", id="R1")

    _post(api_client, ORDER_EVENT)
    _post(api_client, ORDER_EVENT)

    board = supabase.rows("leaderboards")[0]
    assert board["order_count"] == 1
    assert board["revenue_total"] == "50.00"


def test_scan_insert_updates_uid_and_leaderboard(api_client, supabase) -> None:
    supabase.seed("uids", uid="UID1", is_claimed=True, retailer_id="R1", scan_count=4)

    _post(api_client, SCAN_EVENT)

    uid = supabase.rows("uids")[0]
    assert uid["scan_count"] == 5
    assert uid["last_scan_ip"] == "203.0.113.7"
    assert uid["last_scan_at"].startswith("2025-02-03T08:00:00")
    assert supabase.rpc_calls == [("increment_uid_scan_count", {"p_uid": "UID1"})]
    board = supabase.rows("leaderboards")[0]
    assert (board["scan_count"], board["order_count"]) == (1, 0)


def test_scans_and_orders_share_a_slice(api_client, supabase) -> None:
    supabase.seed("retailers", id="R1")
    supabase.seed("uids", uid="UID1", is_claimed=True, retailer_id="R1")

    _post(api_client, SCAN_EVENT)
    _post(api_client, ORDER_EVENT)

    boards = supabase.rows("leaderboards")
    assert len(boards) == 1
    assert (boards[0]["scan_count"], boards[0]["order_count"]) == (1, 1)


def test_other_pairs_are_ignored(api_client, supabase) -> None:
    response = _post(api_client, {"type": "UPDATE", "table": "orders", "record": {"id": "order-1"}})

    assert response.json() == {"received": True, "handled": False}
    assert supabase.rows("leaderboards") == []


def test_leaderboard_failure_does_not_fail_event(api_client, supabase) -> None:
    supabase.seed("retailers", id="R1")
    supabase.fail("leaderboards", "upsert")

    response = _post(api_client, ORDER_EVENT)

    assert response.status_code == 200
    assert len(supabase.rows("payout_jobs")) == 1


def test_processing_error_returns_500(api_client, supabase) -> None:
    supabase.seed("uids", uid="UID1")
    supabase.fail("increment_uid_scan_count", "rpc")

    assert _post(api_client, SCAN_EVENT).status_code == 500


def test_redelivered_scan_counts_uid_once(api_client, supabase) -> None:
    supabase.seed("uids", uid="UID1", is_claimed=True, retailer_id="R1", scan_count=4)

    _post(api_client, SCAN_EVENT)
    _post(api_client, SCAN_EVENT)

    assert supabase.rows("uids")[0]["scan_count"] == 5
    assert supabase.rows("leaderboards")[0]["scan_count"] == 1
    assert len(supabase.rpc_calls) == 1


def test_failed_uid_update_is_applied_on_retry(api_client, supabase) -> None:
    supabase.seed("uids", uid="UID1", is_claimed=True, retailer_id="R1", scan_count=0)
    supabase.fail("increment_uid_scan_count", "rpc")

    assert _post(api_client, SCAN_EVENT).status_code == 500
    assert supabase.rows("webhook_events") == []

    supabase.recover("increment_uid_scan_count", "rpc")
    assert _post(api_client, SCAN_EVENT).status_code == 200

    assert supabase.rows("uids")[0]["scan_count"] == 1
    assert supabase.rows("leaderboards")[0]["scan_count"] == 1
