"""
Tests for `domain/display_token.py`.

Covers contract rules:
- unclaimed -> claimed happens once; claiming twice raises.
- Only a claimed token with an affiliate URL redirects to commerce.
- Default affiliate URL is the storefront catalogue with the UID as `ref`.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from domain.display_token import DisplayToken, claim_url, storefront_affiliate_url

CLAIMED_AT = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


def test_unclaimed_token_redirects_to_claim_page() -> None:
    token = DisplayToken(token_id="1", uid="UID123", affiliate_url="https://shop.example.com/x")

    assert not token.is_redirectable
    assert token.redirect_target() == "/claim?u=UID123"


def test_claimed_token_without_url_redirects_to_claim_page() -> None:
    token = DisplayToken(token_id="1", uid="UID123", is_claimed=True, retailer_id="R1")

    assert token.redirect_target() == claim_url("UID123")


def test_claimed_returns_bound_copy() -> None:
    token = DisplayToken(token_id="1", uid="UID123")

    claimed = token.claimed(
        retailer_id="R1",
        business_id="B1",
        affiliate_url="https://shop.example.com/collections/all?ref=UID123",
        claimed_at=CLAIMED_AT,
        claimed_by_user_id="user-1",
    )

    assert not token.is_claimed
    assert claimed.is_claimed
    assert claimed.retailer_id == "R1"
    assert claimed.redirect_target() == "https://shop.example.com/collections/all?ref=UID123"


def test_claiming_twice_raises() -> None:
    claimed = DisplayToken(token_id="1", uid="UID123").claimed(
        retailer_id="R1", business_id=None, affiliate_url=None, claimed_at=CLAIMED_AT
    )

    with pytest.raises(ValueError):
        claimed.claimed(retailer_id="R2", business_id=None, affiliate_url=None, claimed_at=CLAIMED_AT)


def test_claim_requires_retailer() -> None:
    with pytest.raises(ValueError):
        DisplayToken(token_id="1", uid="UID123").claimed(
            retailer_id="", business_id=None, affiliate_url=None, claimed_at=CLAIMED_AT
        )


def test_storefront_affiliate_url() -> None:
    assert storefront_affiliate_url("shop.example.com", "UID 1") == "https://shop.example.com/collections/all?ref=UID%201"
    assert storefront_affiliate_url("https://shop.example.com/", "U") == "https://shop.example.com/collections/all?ref=U"
    assert storefront_affiliate_url(None, "U") is None
