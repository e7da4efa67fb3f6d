"""
Domain: Commerce orders ingested from the storefront webhook.

Contract excerpts implemented here:
- An order is identified by its external (storefront) order id; at most one
  internal order exists per external id (enforced by upsert in the repository).
- The referral token travels as the `ref` entry of the order's note attributes.
- A "priority display" line item is detected by case-insensitive title
  substring match; so is an "express shipping" upgrade.
- The raw payload is preserved untouched for audit.

Pure module: parsing and normalization only, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

from .money import ZERO, to_amount
from .time import parse_utc_datetime

REFERRAL_ATTRIBUTE = "ref"
PRIORITY_DISPLAY_MARKER = "priority display"
EXPRESS_SHIPPING_MARKER = "express shipping"


def _titles(line_items: Iterable[Mapping[str, Any]]) -> List[str]:
    titles = []
    for item in line_items:
        if not isinstance(item, Mapping):
            continue
        for key in ("title", "name", "variant_title"):
            value = item.get(key)
            if isinstance(value, str) and value:
                titles.append(value.lower())
    return titles


def has_line_item(line_items: Iterable[Mapping[str, Any]], marker: str) -> bool:
    """True if any line item title contains `marker` (case-insensitive)."""

    needle = marker.lower()
    return any(needle in title for title in _titles(line_items))


def note_attribute(note_attributes: Any, name: str) -> Optional[str]:
    """Value of the first note attribute called `name`, stripped; None if absent or blank."""

    if not isinstance(note_attributes, list):
        return None
    for attribute in note_attributes:
        if isinstance(attribute, Mapping) and attribute.get("name") == name:
            value = attribute.get("value")
            if value is None:
                return None
            text = str(value).strip()
            return text or None
    return None


def referral_token(note_attributes: Any) -> Optional[str]:
    """Extract the `ref` note attribute value, if any."""

    return note_attribute(note_attributes, REFERRAL_ATTRIBUTE)


@dataclass(frozen=True, slots=True)
class CommerceOrder:
    """
    Normalized storefront order.

    `total` is the amount payouts are computed from; the other totals are kept
    for reporting.
    """

    external_order_id: str
    total: Decimal
    currency: str = "USD"
    order_number: Optional[str] = None
    shop_domain: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    subtotal: Decimal = ZERO
    tax_total: Decimal = ZERO
    discount_total: Decimal = ZERO
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    processed_at: Optional[datetime] = None
    referral_token: Optional[str] = None
    fallback_business_id: Optional[str] = None
    fallback_retailer_id: Optional[str] = None
    line_items: List[Mapping[str, Any]] = field(default_factory=list)
    raw_payload: Mapping[str, Any] = field(default_factory=dict)

    @property
    def has_priority_display(self) -> bool:
        return has_line_item(self.line_items, PRIORITY_DISPLAY_MARKER)

    @property
    def has_express_shipping(self) -> bool:
        return has_line_item(self.line_items, EXPRESS_SHIPPING_MARKER)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, shop_domain: Optional[str] = None) -> "CommerceOrder":
        """
        Build an order from a storefront webhook payload.

        Raises:
            ValueError: if the payload has no order id.
        """

        order_id = payload.get("id")
        if order_id is None or str(order_id).strip() == "":
            raise ValueError("Order payload is missing 'id'")

        customer = payload.get("customer") if isinstance(payload.get("customer"), Mapping) else None
        customer_name = None
        if customer:
            customer_name = f"{customer.get('first_name') or ''} {customer.get('last_name') or ''}".strip() or None

        line_items = payload.get("line_items")
        note_attributes = payload.get("note_attributes")
        order_number = payload.get("order_number")

        return cls(
            external_order_id=str(order_id),
            total=to_amount(payload.get("total_price")),
            currency=str(payload.get("currency") or "USD"),
            order_number=str(order_number) if order_number is not None else None,
            shop_domain=shop_domain,
            customer_email=payload.get("email") or (customer or {}).get("email"),
            customer_name=customer_name,
            subtotal=to_amount(payload.get("subtotal_price")),
            tax_total=to_amount(payload.get("total_tax")),
            discount_total=to_amount(payload.get("total_discounts")),
            financial_status=payload.get("financial_status"),
            fulfillment_status=payload.get("fulfillment_status"),
            processed_at=parse_utc_datetime(payload.get("created_at")),
            referral_token=referral_token(note_attributes),
            fallback_business_id=note_attribute(note_attributes, "business_id"),
            fallback_retailer_id=note_attribute(note_attributes, "retailer_id"),
            line_items=list(line_items) if isinstance(line_items, list) else [],
            raw_payload=dict(payload),
        )


@dataclass(frozen=True, slots=True)
class OrderAttribution:
    """Who an order is credited to, as stored on the order row."""

    retailer_id: Optional[str] = None
    business_id: Optional[str] = None
    vendor_id: Optional[str] = None
    payout_delayed: bool = False


__all__ = [
    "CommerceOrder",
    "OrderAttribution",
    "has_line_item",
    "referral_token",
    "note_attribute",
    "PRIORITY_DISPLAY_MARKER",
    "EXPRESS_SHIPPING_MARKER",
]
