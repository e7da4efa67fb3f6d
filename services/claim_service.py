"""
Display claim service.

Binds an unclaimed UID to a retailer and activates the retailer's displays.

State machine: unclaimed -> claimed, once, never reversed.

Process:
1. Load the UID (404 if unknown; 409 if already claimed, naming the claimant)
2. Validate an explicit business / retailer id when given (404 if unknown)
3. Resolve the retailer: explicit id -> UID's bound retailer -> business ->
   actor -> auto-create from business (400 if nothing resolves)
4. Affiliate URL: the UID's stored URL, else the storefront catalogue URL
5. Persist the claim (guarded: a concurrent claim that lands first turns this
   request into a 409 and a retailer auto-created for it is reported
   unbound), then activate queued displays and connect the business
6. Audit only authenticated claims; anonymous claims are allowed

The claim row update is the commit point. Display activation and business
connection are best effort: failures are logged, the claim stands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from domain.display_token import DisplayToken, storefront_affiliate_url
from domain.errors import ConflictError, NotFoundError, NotResolvableError, ValidationError
from domain.time import utc_now
from repositories.display_repository import DisplayRepository
from repositories.retailer_repository import BusinessRepository, RetailerRepository
from repositories.uid_repository import UidRepository
from services.attribution_service import AttributionContext, AttributionResolver
from services.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ClaimRequest:
    uid: str
    business_id: Optional[str] = None
    retailer_id: Optional[str] = None
    actor_user_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ClaimResult:
    uid: str
    retailer_id: str
    business_id: Optional[str]
    affiliate_url: Optional[str]
    created_retailer: bool
    activated_display_ids: tuple[str, ...] = ()


class ClaimService:
    def __init__(
        self,
        *,
        uids: UidRepository,
        retailers: RetailerRepository,
        businesses: BusinessRepository,
        displays: DisplayRepository,
        resolver: AttributionResolver,
        audit: AuditLogger,
        storefront_domain: Optional[str],
    ) -> None:
        self._uids = uids
        self._retailers = retailers
        self._businesses = businesses
        self._displays = displays
        self._resolver = resolver
        self._audit = audit
        self._storefront_domain = storefront_domain

    def _load_unclaimed(self, uid: str) -> DisplayToken:
        token = self._uids.get_by_uid(uid)
        if token is None:
            raise NotFoundError("UID not found")
        if token.is_claimed:
            raise ConflictError(
                "UID already claimed",
                details={"retailer_id": token.retailer_id, "business_id": token.business_id},
            )
        return token

    def claim(self, request: ClaimRequest) -> ClaimResult:
        """
        Claim a display UID for a retailer.

        Raises:
            ValidationError: missing uid
            NotFoundError: unknown UID, business or explicit retailer
            ConflictError: UID already claimed
            NotResolvableError: no retailer can be determined
        """

        uid = (request.uid or "").strip()
        if not uid:
            raise ValidationError("uid is required")

        token = self._load_unclaimed(uid)

        if request.business_id and self._businesses.get(request.business_id) is None:
            raise NotFoundError("Business not found")
        if request.retailer_id and self._retailers.get(request.retailer_id) is None:
            raise NotFoundError("Retailer not found")

        context = AttributionContext(
            referral_token=uid,
            fallback_business_id=request.business_id,
            fallback_retailer_id=request.retailer_id,
            actor_user_id=request.actor_user_id,
        )
        state = self._resolver.load_state(context, token=token)
        attribution = self._resolver.run(state, self._resolver.claim_strategies)
        if attribution is None:
            raise NotResolvableError("Unable to determine retailer for this claim")

        business_id = request.business_id or attribution.business_id
        affiliate_url = token.affiliate_url or storefront_affiliate_url(self._storefront_domain, uid)
        if affiliate_url is None:
            logger.warning("Claiming UID %s without an affiliate URL; no storefront domain configured", uid)

        claimed = token.claimed(
            retailer_id=attribution.retailer_id,
            business_id=business_id,
            affiliate_url=affiliate_url,
            claimed_at=utc_now(),
            claimed_by_user_id=request.actor_user_id,
        )
        if not self._uids.mark_claimed(claimed):
            current = self._uids.get_by_uid(uid)
            winner_retailer_id = current.retailer_id if current else None
            if attribution.created_retailer and winner_retailer_id != attribution.retailer_id:
                self._report_orphan(uid, attribution.retailer_id, request.actor_user_id)
            raise ConflictError(
                "UID already claimed",
                details={"retailer_id": winner_retailer_id},
            )

        activated: tuple[str, ...] = ()
        try:
            activated = tuple(self._displays.activate_queued(attribution.retailer_id))
        except Exception:
            logger.warning("Display activation failed for retailer %s", attribution.retailer_id, exc_info=True)

        if business_id:
            try:
                self._businesses.mark_connected(business_id, connected_at=claimed.claimed_at)  # type: ignore[arg-type]
            except Exception:
                logger.warning("Business connection update failed for %s", business_id, exc_info=True)

        metadata = {
            "uid": uid,
            "retailer_id": attribution.retailer_id,
            "business_id": business_id,
            "strategy": attribution.strategy,
        }
        if request.actor_user_id:
            self._audit.log_event(request.actor_user_id, "uid_claimed", metadata)
        else:
            logger.info("Anonymous claim of UID %s", uid, extra=metadata)

        return ClaimResult(
            uid=uid,
            retailer_id=attribution.retailer_id,
            business_id=business_id,
            affiliate_url=affiliate_url,
            created_retailer=attribution.created_retailer,
            activated_display_ids=activated,
        )

    def _report_orphan(self, uid: str, retailer_id: str, actor_user_id: Optional[str]) -> None:
        """A retailer auto-created for a claim that lost the race is left unbound."""

        logger.warning(
            "Claim of UID %s lost a concurrent race; auto-created retailer %s is unbound",
            uid,
            retailer_id,
            extra={"uid": uid, "retailer_id": retailer_id},
        )
        self._audit.log_event(
            actor_user_id,
            "retailer_orphaned",
            {"uid": uid, "retailer_id": retailer_id},
        )


__all__ = ["ClaimService", "ClaimRequest", "ClaimResult"]
