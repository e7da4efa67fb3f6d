"""
Tests for the user-facing endpoints: health, claims, payouts, earnings and
bank account linking. Sessions come from the Supabase auth double.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

ADMIN = {"Authorization": "Bearer admin-token"}
RETAILER = {"Authorization": "Bearer retailer-token"}


@pytest.fixture(autouse=True)
def sessions(supabase):
    supabase.auth.add_session("admin-token", "admin-1", "admin@example.com")
    supabase.auth.add_session("retailer-token", "user-1", "owner@example.com")
    supabase.seed("admins", id="admin-1")


def _seed_job(supabase, job_id, status, retailer_cut="20.00"):
    supabase.seed(
        "payout_jobs", id=job_id, order_id=f"order-{job_id}", retailer_id="R1", vendor_id="V1",
        total_amount="100.00", retailer_cut=retailer_cut, vendor_cut=str(Decimal("100.00") - Decimal(retailer_cut)),
        status=status, transfer_ids=[],
    )


def test_health(api_client) -> None:
    body = api_client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["service"] == "display-commerce-api"


def test_claim_display_endpoint(api_client, supabase) -> None:
    supabase.seed("uids", uid="UID123", is_claimed=False)
    supabase.seed("businesses", id="B1", name="Barks & Co")

    response = api_client.post("/api/v1/claim-display", json={"uid": "UID123", "businessId": "B1"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["affiliate_url"] == "https://shop.example.com/collections/all?ref=UID123"
    assert body["created_retailer"] is True


def test_claim_uid_alias_conflict(api_client, supabase) -> None:
    supabase.seed("uids", uid="UID1", is_claimed=True, retailer_id="R1")

    response = api_client.post("/api/v1/claim-uid", json={"uid": "UID1"})

    assert response.status_code == 409
    assert response.json()["error"] == "UID already claimed"


def test_claim_errors(api_client, supabase) -> None:
    supabase.seed("uids", uid="UID1", is_claimed=False)

    assert api_client.post("/api/v1/claim-display", json={"uid": "NOPE"}).status_code == 404
    unresolved = api_client.post("/api/v1/claim-display", json={"uid": "UID1"})
    assert unresolved.status_code == 400
    assert unresolved.json()["error"] == "Unable to determine retailer for this claim"
    assert api_client.post("/api/v1/claim-display", json={}).status_code == 422


def test_authenticated_claim_uses_session_retailer(api_client, supabase) -> None:
    supabase.seed("uids", uid="UID1", is_claimed=False)
    supabase.seed("retailers", id="R1", created_by_user_id="user-1")

    response = api_client.post("/api/v1/claim-display", json={"uid": "UID1"}, headers=RETAILER)

    assert response.json()["retailer_id"] == "R1"
    assert supabase.rows("uids")[0]["claimed_by_user_id"] == "user-1"


def test_payout_requires_admin(api_client, supabase) -> None:
    _seed_job(supabase, "J1", "pending")

    assert api_client.post("/api/v1/payouts", json={"payoutJobId": "J1"}).status_code == 401
    assert api_client.post("/api/v1/payouts", json={"payoutJobId": "J1"}, headers=RETAILER).status_code == 403


def test_payout_endpoint(api_client, supabase, rail) -> None:
    _seed_job(supabase, "J1", "pending")
    supabase.seed("vendor_accounts", vendor_id="V1", dwolla_funding_source_id="fs-vendor")
    supabase.seed("retailer_accounts", retailer_id="R1", dwolla_funding_source_id="fs-retailer")

    response = api_client.post("/api/v1/payouts", json={"payoutJobId": "J1"}, headers=ADMIN)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "paid"
    assert [t["role"] for t in body["transfers"]] == ["vendor", "retailer"]
    assert supabase.rows("payouts")[0]["triggered_by"] == "admin-1"


def test_payout_endpoint_errors(api_client, supabase) -> None:
    _seed_job(supabase, "J2", "paid")

    assert api_client.post("/api/v1/payouts", json={"payoutJobId": "missing"}, headers=ADMIN).status_code == 404
    not_pending = api_client.post("/api/v1/payouts", json={"payoutJobId": "J2"}, headers=ADMIN)
    assert not_pending.status_code == 400
    assert not_pending.json()["error"] == "Payout already processed"


def test_my_earnings(api_client, supabase) -> None:
    supabase.seed("retailers", id="R1", name="Corner Shop", created_by_user_id="user-1")
    _seed_job(supabase, "J1", "pending", "20.00")
    _seed_job(supabase, "J2", "paid", "15.50")
    _seed_job(supabase, "J3", "failed", "99.00")

    response = api_client.get("/api/v1/retailers/me/earnings", headers=RETAILER)

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["earnings"]["pending"]) == Decimal("20.00")
    assert Decimal(body["earnings"]["paid"]) == Decimal("15.50")
    assert Decimal(body["earnings"]["total"]) == Decimal("35.50")
    assert body["counts"] == {"pending": 1, "paid": 1, "total": 3}


def test_earnings_email_fallback_and_not_found(api_client, supabase) -> None:
    assert api_client.get("/api/v1/retailers/me/earnings", headers=RETAILER).status_code == 404

    supabase.seed("retailers", id="R1", email="owner@example.com")
    assert api_client.get("/api/v1/retailers/me/earnings", headers=RETAILER).status_code == 200
    assert api_client.get("/api/v1/retailers/me/earnings").status_code == 401


def test_admin_earnings_for_retailer(api_client, supabase) -> None:
    supabase.seed("retailers", id="R1")
    _seed_job(supabase, "J1", "paid")

    response = api_client.get("/api/v1/retailers/R1/earnings", headers=ADMIN)

    assert response.json()["retailer"]["id"] == "R1"
    assert api_client.get("/api/v1/retailers/R404/earnings", headers=ADMIN).status_code == 404


def test_link_bank_account(api_client, supabase, rail) -> None:
    supabase.seed("retailers", id="R1", name="Corner Shop", created_by_user_id="user-1")

    response = api_client.post(
        "/api/v1/retailers/me/bank-account",
        json={"processorToken": "processor-sandbox-1", "bankName": "Checking"},
        headers=RETAILER,
    )

    assert response.status_code == 200
    assert response.json()["funding_source_id"] == "funding-1"
    account = supabase.rows("retailer_accounts")[0]
    assert (account["dwolla_customer_id"], account["dwolla_funding_source_id"]) == ("customer-1", "funding-1")
    assert rail.customers[0]["email"] == "owner@example.com"


def test_link_bank_account_reuses_customer(api_client, supabase, rail) -> None:
    supabase.seed("retailers", id="R1", created_by_user_id="user-1", email="shop@example.com")
    supabase.seed("retailer_accounts", retailer_id="R1", dwolla_customer_id="cus-existing")

    api_client.post("/api/v1/retailers/me/bank-account", json={"processorToken": "p-1"}, headers=RETAILER)

    assert rail.customers == []
    assert supabase.rows("retailer_accounts")[0]["dwolla_funding_source_id"] == "funding-1"


def test_error_responses_are_documented(api_client) -> None:
    schema = api_client.get("/openapi.json").json()

    conflict = schema["paths"]["/api/v1/claim-display"]["post"]["responses"]["409"]
    assert conflict["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
    assert "ErrorResponse" in schema["components"]["schemas"]
