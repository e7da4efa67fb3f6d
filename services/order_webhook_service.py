"""
Storefront order ingestion.

Runs after the webhook signature has been verified:

1. Resolve the vendor and the retailer the order is attributed to
2. Upsert the order by its external id (redelivery updates, never duplicates)
3. Create the payout job if the order qualifies (total > 0, retailer resolved);
   orders containing a priority display are held for manual reconciliation
4. Credit the latest unconverted scan of the referral token (once per order)
5. Stamp the UID with last-order metadata (first delivery only)
6. Set retailer/business flags for priority display and express shipping

Steps 1-3 must succeed; steps 4-6 are best effort and only logged on failure.
An order whose retailer cannot be resolved is stored unattributed and flagged
for manual review in the audit trail.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from domain.money import ZERO, to_wire
from domain.order import CommerceOrder, OrderAttribution
from domain.time import utc_now
from repositories.order_repository import OrderRepository, StoredOrder
from repositories.retailer_repository import BusinessRepository, RetailerRepository, VendorRepository
from repositories.scan_repository import ScanRepository
from repositories.uid_repository import UidRepository
from services.attribution_service import RETAILER_TOKEN_PATTERN, Attribution, AttributionContext, AttributionResolver
from services.audit import AuditLogger
from services.payout_job_service import PayoutJobService, PayoutReferences

logger = logging.getLogger(__name__)

AUDIT_ACTOR = "shopify-webhook"
PRIORITY_SHIPPING = "priority"


@dataclass(frozen=True, slots=True)
class OrderProcessingResult:
    order_id: str
    created: bool
    retailer_id: Optional[str]
    business_id: Optional[str]
    payout_job_id: Optional[str]

    @property
    def attributed(self) -> bool:
        return self.retailer_id is not None


class OrderWebhookService:
    def __init__(
        self,
        *,
        orders: OrderRepository,
        uids: UidRepository,
        scans: ScanRepository,
        retailers: RetailerRepository,
        businesses: BusinessRepository,
        vendors: VendorRepository,
        resolver: AttributionResolver,
        payout_jobs: PayoutJobService,
        audit: AuditLogger,
        default_vendor_name: str,
    ) -> None:
        self._orders = orders
        self._uids = uids
        self._scans = scans
        self._retailers = retailers
        self._businesses = businesses
        self._vendors = vendors
        self._resolver = resolver
        self._payout_jobs = payout_jobs
        self._audit = audit
        self._default_vendor_name = default_vendor_name

    def _vendor_id(self) -> Optional[str]:
        vendor_id = self._vendors.find_id_by_name(self._default_vendor_name)
        if vendor_id is None:
            logger.error("Vendor %r not found; payouts cannot be created", self._default_vendor_name)
        return vendor_id

    def process(self, order: CommerceOrder) -> OrderProcessingResult:
        vendor_id = self._vendor_id()

        attribution = self._resolver.resolve(
            AttributionContext(
                referral_token=order.referral_token,
                fallback_business_id=order.fallback_business_id,
                fallback_retailer_id=order.fallback_retailer_id,
            )
        )
        if attribution is None:
            logger.warning(
                "Order %s could not be attributed to a retailer",
                order.external_order_id,
                extra={"shopify_order_id": order.external_order_id, "referral_token": order.referral_token},
            )

        stored = self._orders.upsert(
            order,
            OrderAttribution(
                retailer_id=attribution.retailer_id if attribution else None,
                business_id=attribution.business_id if attribution else None,
                vendor_id=vendor_id,
                payout_delayed=attribution.delayed_payout if attribution else False,
            ),
        )

        payout_job_id = None
        if attribution is not None and order.total > ZERO:
            job = self._payout_jobs.create_if_absent(
                stored.order_id,
                order.total,
                PayoutReferences(
                    retailer_id=attribution.retailer_id,
                    vendor_id=vendor_id,
                    sourcer_id=attribution.sourcer_id,
                    source_uid=order.referral_token,
                ),
                priority_display=order.has_priority_display,
            )
            payout_job_id = job.job_id if job else None

        self._after_order(order, attribution, stored)

        if attribution is None:
            self._audit.log_event(
                AUDIT_ACTOR,
                "order_unattributed",
                {
                    "order_id": stored.order_id,
                    "shopify_order_id": order.external_order_id,
                    "referral_token": order.referral_token,
                    "total": to_wire(order.total),
                },
            )

        self._audit.log_event(
            AUDIT_ACTOR,
            "order_received",
            {
                "shop_domain": order.shop_domain,
                "shopify_order_id": order.external_order_id,
                "order_id": stored.order_id,
                "retailer_id": attribution.retailer_id if attribution else None,
                "payout_job_id": payout_job_id,
                "total": to_wire(order.total),
            },
        )

        return OrderProcessingResult(
            order_id=stored.order_id,
            created=stored.created,
            retailer_id=attribution.retailer_id if attribution else None,
            business_id=attribution.business_id if attribution else None,
            payout_job_id=payout_job_id,
        )

    def _after_order(self, order: CommerceOrder, attribution: Optional[Attribution], stored: StoredOrder) -> None:
        """Best-effort side effects; each failure is logged independently."""

        token = order.referral_token
        is_uid = bool(token) and not RETAILER_TOKEN_PATTERN.match(token or "")

        if is_uid and order.total > ZERO:
            try:
                self._scans.mark_latest_converted(token, order.total, order_id=stored.order_id)  # type: ignore[arg-type]
            except Exception:
                logger.warning("Failed to mark scan converted for UID %s", token, exc_info=True)

        if is_uid and stored.created:
            try:
                self._uids.record_last_order(token, ordered_at=utc_now(), total=order.total)  # type: ignore[arg-type]
            except Exception:
                logger.warning("Failed to update last order for UID %s", token, exc_info=True)

        if attribution is None:
            return

        flags = {}
        if order.has_priority_display:
            flags["priority_display_active"] = True
        if order.has_express_shipping:
            flags["express_shipping"] = True
        if flags:
            try:
                self._retailers.set_flags(attribution.retailer_id, **flags)
            except Exception:
                logger.warning("Failed to update flags for retailer %s", attribution.retailer_id, exc_info=True)

        if order.has_priority_display and attribution.business_id:
            try:
                self._businesses.set_display_shipping(attribution.business_id, PRIORITY_SHIPPING)
            except Exception:
                logger.warning("Failed to update display shipping for business %s", attribution.business_id, exc_info=True)


__all__ = ["OrderWebhookService", "OrderProcessingResult"]
