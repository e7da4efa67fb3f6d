"""
Attribution resolver.

Decides which retailer (and business) a sale or a claim belongs to.

Resolution is an ordered list of strategies. Each strategy looks at the
resolution context and either returns an `Attribution` or None; the first
non-None answer wins. The two orderings in use:

ORDER_STRATEGIES (storefront orders):
    1. `retailer-<id>` referral token -> that retailer
    2. referral token as a UID -> the UID's bound retailer/business
       (an unclaimed UID still counts the sale, flagged for delayed payout)
    3. explicit fallback retailer id
    4. fallback business id -> the business's retailer
    5. authenticated actor -> the retailer that user created
    6. business without a retailer -> auto-create one named after the business

CLAIM_STRATEGIES (display claims):
    explicit retailer id -> UID's bound retailer -> business -> actor -> auto-create

Step 6 writes: it inserts a minimal retailer. Later requests for the same
business find that retailer through step 4 instead of creating another.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple

from domain.display_token import DisplayToken
from domain.retailer import Retailer
from repositories.retailer_repository import BusinessRepository, RetailerRepository
from repositories.uid_repository import UidRepository

logger = logging.getLogger(__name__)

RETAILER_TOKEN_PATTERN = re.compile(r"^retailer-(?P<retailer_id>.+)$")


@dataclass(frozen=True, slots=True)
class AttributionContext:
    """Inputs available for resolving a retailer."""

    referral_token: Optional[str] = None
    fallback_business_id: Optional[str] = None
    fallback_retailer_id: Optional[str] = None
    actor_user_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Attribution:
    retailer_id: str
    business_id: Optional[str]
    strategy: str
    retailer: Optional[Retailer] = None
    delayed_payout: bool = False
    created_retailer: bool = False

    @property
    def sourcer_id(self) -> Optional[str]:
        return self.retailer.sourcer_id if self.retailer else None


@dataclass(frozen=True, slots=True)
class ResolutionState:
    """Context plus the UID record behind the referral token, loaded once."""

    context: AttributionContext
    token: Optional[DisplayToken] = None

    @property
    def candidate_business_id(self) -> Optional[str]:
        if self.context.fallback_business_id:
            return self.context.fallback_business_id
        return self.token.business_id if self.token else None


Strategy = Callable[[ResolutionState], Optional[Attribution]]


class AttributionResolver:
    def __init__(
        self,
        uids: UidRepository,
        retailers: RetailerRepository,
        businesses: BusinessRepository,
    ) -> None:
        self._uids = uids
        self._retailers = retailers
        self._businesses = businesses

    # ------------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------------

    def _from_retailer(self, retailer: Retailer, strategy: str, **kwargs) -> Attribution:
        return Attribution(
            retailer_id=retailer.retailer_id,
            business_id=retailer.business_id,
            strategy=strategy,
            retailer=retailer,
            **kwargs,
        )

    def retailer_token(self, state: ResolutionState) -> Optional[Attribution]:
        token = state.context.referral_token
        match = RETAILER_TOKEN_PATTERN.match(token) if token else None
        if not match:
            return None
        retailer = self._retailers.get(match.group("retailer_id"))
        return self._from_retailer(retailer, "retailer_token") if retailer else None

    def uid_binding(self, state: ResolutionState) -> Optional[Attribution]:
        token = state.token
        if token is None or token.retailer_id is None:
            return None

        retailer = self._retailers.get(token.retailer_id)
        return Attribution(
            retailer_id=token.retailer_id,
            business_id=token.business_id or (retailer.business_id if retailer else None),
            strategy="uid",
            retailer=retailer,
            delayed_payout=not token.is_claimed,
        )

    def direct_retailer(self, state: ResolutionState) -> Optional[Attribution]:
        retailer_id = state.context.fallback_retailer_id
        if not retailer_id:
            return None
        retailer = self._retailers.get(retailer_id)
        return self._from_retailer(retailer, "retailer_id") if retailer else None

    def business_retailer(self, state: ResolutionState) -> Optional[Attribution]:
        business_id = state.candidate_business_id
        if not business_id:
            return None
        retailer = self._retailers.find_by_business_id(business_id)
        if retailer is None:
            return None
        attribution = self._from_retailer(retailer, "business")
        if attribution.business_id is None:
            return Attribution(
                retailer_id=attribution.retailer_id,
                business_id=business_id,
                strategy=attribution.strategy,
                retailer=retailer,
            )
        return attribution

    def actor_retailer(self, state: ResolutionState) -> Optional[Attribution]:
        user_id = state.context.actor_user_id
        if not user_id:
            return None
        retailer = self._retailers.find_by_created_by_user(user_id)
        return self._from_retailer(retailer, "actor") if retailer else None

    def auto_create_for_business(self, state: ResolutionState) -> Optional[Attribution]:
        business_id = state.candidate_business_id
        if not business_id:
            return None
        business = self._businesses.get(business_id)
        if business is None:
            return None

        # A retailer may have been created since the business strategy ran.
        existing = self._retailers.find_by_business_id(business_id)
        if existing is not None:
            return self._from_retailer(existing, "business")

        retailer = self._retailers.create_for_business(business, created_by_user_id=state.context.actor_user_id)
        logger.info(
            "Created retailer %s for business %s",
            retailer.retailer_id,
            business_id,
            extra={"retailer_id": retailer.retailer_id, "business_id": business_id},
        )
        return Attribution(
            retailer_id=retailer.retailer_id,
            business_id=business_id,
            strategy="auto_create",
            retailer=retailer,
            created_retailer=True,
        )

    @property
    def order_strategies(self) -> Tuple[Strategy, ...]:
        return (
            self.retailer_token,
            self.uid_binding,
            self.direct_retailer,
            self.business_retailer,
            self.actor_retailer,
            self.auto_create_for_business,
        )

    @property
    def claim_strategies(self) -> Tuple[Strategy, ...]:
        return (
            self.direct_retailer,
            self.uid_binding,
            self.business_retailer,
            self.actor_retailer,
            self.auto_create_for_business,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def load_state(self, context: AttributionContext, token: Optional[DisplayToken] = None) -> ResolutionState:
        if token is None and context.referral_token and not RETAILER_TOKEN_PATTERN.match(context.referral_token):
            token = self._uids.get_by_uid(context.referral_token)
        return ResolutionState(context=context, token=token)

    @staticmethod
    def run(state: ResolutionState, strategies: Sequence[Strategy]) -> Optional[Attribution]:
        for strategy in strategies:
            attribution = strategy(state)
            if attribution is not None:
                return attribution
        return None

    def resolve(self, context: AttributionContext) -> Optional[Attribution]:
        """
        Resolve the retailer for a storefront order.

        Returns:
            Attribution, or None when no retailer can be determined (the caller
            records the order unattributed and flags it for manual review)
        """

        return self.run(self.load_state(context), self.order_strategies)


__all__ = [
    "AttributionContext",
    "Attribution",
    "AttributionResolver",
    "ResolutionState",
    "RETAILER_TOKEN_PATTERN",
]
