"""
Tests for `services/attribution_service.py`.

Covers the order resolution chain (first match wins):
retailer token -> UID binding -> explicit retailer -> business -> actor ->
auto-created retailer for a known business -> unresolved.
"""

from __future__ import annotations

from repositories.retailer_repository import BusinessRepository, RetailerRepository
from repositories.uid_repository import UidRepository
from services.attribution_service import AttributionContext, AttributionResolver


def _resolver(supabase) -> AttributionResolver:
    return AttributionResolver(UidRepository(supabase), RetailerRepository(supabase), BusinessRepository(supabase))


def test_retailer_token_wins(supabase) -> None:
    supabase.seed("retailers", id="R1", name="Corner Shop")
    supabase.seed("retailers", id="R2", name="Other", business_id="B1")

    attribution = _resolver(supabase).resolve(
        AttributionContext(referral_token="retailer-R1", fallback_business_id="B1")
    )

    assert attribution is not None
    assert attribution.retailer_id == "R1"
    assert attribution.strategy == "retailer_token"


def test_claimed_uid_resolves_to_bound_retailer(supabase) -> None:
    supabase.seed("retailers", id="R1", sourcer_id="S1")
    supabase.seed("uids", uid="UID123", is_claimed=True, retailer_id="R1", business_id="B1")

    attribution = _resolver(supabase).resolve(AttributionContext(referral_token="UID123"))

    assert attribution.retailer_id == "R1"
    assert attribution.business_id == "B1"
    assert attribution.sourcer_id == "S1"
    assert not attribution.delayed_payout


def test_unclaimed_uid_with_retailer_delays_payout(supabase) -> None:
    supabase.seed("retailers", id="R1")
    supabase.seed("uids", uid="UID9", is_claimed=False, retailer_id="R1")

    attribution = _resolver(supabase).resolve(AttributionContext(referral_token="UID9"))

    assert attribution.retailer_id == "R1"
    assert attribution.delayed_payout


def test_business_fallback(supabase) -> None:
    supabase.seed("retailers", id="R7", business_id="B7")

    attribution = _resolver(supabase).resolve(AttributionContext(referral_token="UNKNOWN", fallback_business_id="B7"))

    assert attribution.retailer_id == "R7"
    assert attribution.strategy == "business"


def test_uid_business_is_used_when_uid_has_no_retailer(supabase) -> None:
    supabase.seed("retailers", id="R7", business_id="B7")
    supabase.seed("uids", uid="UID5", is_claimed=False, business_id="B7")

    attribution = _resolver(supabase).resolve(AttributionContext(referral_token="UID5"))

    assert attribution.retailer_id == "R7"


def test_actor_fallback(supabase) -> None:
    supabase.seed("retailers", id="R3", created_by_user_id="user-3")

    attribution = _resolver(supabase).resolve(AttributionContext(actor_user_id="user-3"))

    assert attribution.retailer_id == "R3"
    assert attribution.strategy == "actor"


def test_auto_creates_retailer_for_business_without_one(supabase) -> None:
    supabase.seed("businesses", id="B1", name="Barks & Co")

    attribution = _resolver(supabase).resolve(AttributionContext(fallback_business_id="B1"))

    assert attribution.created_retailer
    assert attribution.business_id == "B1"
    retailers = supabase.rows("retailers")
    assert len(retailers) == 1
    assert retailers[0]["name"] == "Barks & Co"
    assert retailers[0]["business_id"] == "B1"


def test_unresolvable_returns_none(supabase) -> None:
    assert _resolver(supabase).resolve(AttributionContext(referral_token="UID404")) is None
    assert supabase.rows("retailers") == []


def test_claim_strategies_prefer_explicit_retailer(supabase) -> None:
    supabase.seed("retailers", id="R1")
    supabase.seed("retailers", id="R2")
    supabase.seed("uids", uid="UID1", is_claimed=False, retailer_id="R1")
    resolver = _resolver(supabase)

    state = resolver.load_state(AttributionContext(referral_token="UID1", fallback_retailer_id="R2"))

    assert resolver.run(state, resolver.claim_strategies).retailer_id == "R2"
    assert resolver.run(state, resolver.order_strategies).retailer_id == "R1"
