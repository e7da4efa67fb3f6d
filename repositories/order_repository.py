"""
Order repository (persistence).

Orders are keyed by the storefront's order id. Re-delivery of the same order
updates the existing row; it never inserts a second one. Concurrent first
deliveries race on the unique `shopify_order_id` constraint and the loser
falls back to updating the winner's row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from postgrest.exceptions import APIError

from domain.money import to_wire
from domain.order import CommerceOrder, OrderAttribution
from domain.time import to_iso_utc, utc_now
from repositories.client import Client, first_or_none, is_unique_violation, rows_or_raise

logger = logging.getLogger(__name__)

_ORDERS_TABLE: str = "orders"


@dataclass(frozen=True, slots=True)
class StoredOrder:
    """Result of an order upsert."""

    order_id: str
    created: bool


def _order_payload(order: CommerceOrder, attribution: OrderAttribution) -> dict[str, Any]:
    processed_at = order.processed_at or utc_now()
    return {
        "shopify_order_id": order.external_order_id,
        "shopify_order_number": order.order_number,
        "shop_domain": order.shop_domain,
        "customer_email": order.customer_email,
        "customer_name": order.customer_name,
        "currency": order.currency,
        "total": to_wire(order.total),
        "subtotal": to_wire(order.subtotal),
        "tax_total": to_wire(order.tax_total),
        "discount_total": to_wire(order.discount_total),
        "financial_status": order.financial_status,
        "fulfillment_status": order.fulfillment_status,
        "processed_at": to_iso_utc(processed_at, name="processed_at"),
        "source_uid": order.referral_token,
        "retailer_id": attribution.retailer_id,
        "business_id": attribution.business_id,
        "vendor_id": attribution.vendor_id,
        "payout_delayed": attribution.payout_delayed,
        "is_priority_display": order.has_priority_display,
        "line_items": list(order.line_items),
        "raw_payload": dict(order.raw_payload),
    }


class OrderRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def find_id_by_external_id(self, external_order_id: str) -> Optional[str]:
        response = (
            self._client.table(_ORDERS_TABLE)
            .select("id")
            .eq("shopify_order_id", external_order_id)
            .limit(1)
            .execute()
        )
        row = first_or_none(response, "fetch order")
        return str(row["id"]) if row else None

    def _update(self, order_id: str, payload: Mapping[str, Any]) -> None:
        response = self._client.table(_ORDERS_TABLE).update(dict(payload)).eq("id", order_id).execute()
        rows_or_raise(response, "update order")

    def upsert(self, order: CommerceOrder, attribution: OrderAttribution) -> StoredOrder:
        """
        Insert the order, or update it if its external id is already stored.

        Returns:
            StoredOrder with the internal order id and whether it was created
        """

        payload = _order_payload(order, attribution)

        existing_id = self.find_id_by_external_id(order.external_order_id)
        if existing_id is not None:
            self._update(existing_id, payload)
            return StoredOrder(order_id=existing_id, created=False)

        try:
            response = self._client.table(_ORDERS_TABLE).insert(payload).execute()
        except APIError as exc:
            if not is_unique_violation(exc):
                raise
            existing_id = self.find_id_by_external_id(order.external_order_id)
            if existing_id is None:
                raise
            logger.info(
                "Concurrent delivery of order %s; updating existing row",
                order.external_order_id,
                extra={"order_id": existing_id},
            )
            self._update(existing_id, payload)
            return StoredOrder(order_id=existing_id, created=False)

        row = first_or_none(response, "insert order")
        if row is None:
            raise RuntimeError("Failed to insert order: insert returned no row")
        return StoredOrder(order_id=str(row["id"]), created=True)


__all__ = ["OrderRepository", "StoredOrder"]
