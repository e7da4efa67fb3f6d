"""
Retailer and business repositories (persistence).

Lookups used by attribution and claims, plus the handful of flag updates the
order webhook and claim flow perform. No business rules live here.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from domain.retailer import Business, Retailer
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.client import Client, first_or_none, rows_or_raise

_RETAILERS_TABLE: str = "retailers"
_BUSINESSES_TABLE: str = "businesses"
_VENDORS_TABLE: str = "vendors"

_DEFAULT_RETAILER_NAME = "New Retailer"


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _row_to_retailer(row: Mapping[str, Any]) -> Retailer:
    return Retailer(
        retailer_id=str(row["id"]),
        name=row.get("name"),
        business_id=_optional_str(row.get("business_id")),
        sourcer_id=_optional_str(row.get("recruited_by_sourcer_id") or row.get("sourcer_id")),
        created_by_user_id=_optional_str(row.get("created_by_user_id")),
        email=row.get("email"),
        phone=row.get("phone"),
        address=row.get("address") or row.get("location"),
        converted=bool(row.get("converted", False)),
        onboarding_completed=bool(row.get("onboarding_completed", False)),
        priority_display_active=bool(row.get("priority_display_active", False)),
        express_shipping=bool(row.get("express_shipping", False)),
    )


def _row_to_business(row: Mapping[str, Any]) -> Business:
    return Business(
        business_id=str(row["id"]),
        name=row.get("name"),
        is_connected=bool(row.get("is_connected", False)),
        connected_at=parse_utc_datetime(row.get("connected_at")),
    )


class RetailerRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def _find_one(self, column: str, value: str, action: str) -> Optional[Retailer]:
        response = (
            self._client.table(_RETAILERS_TABLE)
            .select("*")
            .eq(column, value)
            .limit(1)
            .execute()
        )
        row = first_or_none(response, action)
        return _row_to_retailer(row) if row else None

    def get(self, retailer_id: str) -> Optional[Retailer]:
        return self._find_one("id", retailer_id, "fetch retailer")

    def find_by_business_id(self, business_id: str) -> Optional[Retailer]:
        return self._find_one("business_id", business_id, "fetch retailer by business")

    def find_by_created_by_user(self, user_id: str) -> Optional[Retailer]:
        return self._find_one("created_by_user_id", user_id, "fetch retailer by owner")

    def find_by_email(self, email: str) -> Optional[Retailer]:
        return self._find_one("email", email, "fetch retailer by email")

    def create_for_business(self, business: Business, *, created_by_user_id: Optional[str] = None) -> Retailer:
        """
        Insert a minimal retailer bound to a business, named after it.

        Used when a business claims a display or sells before any retailer
        record exists for it.
        """

        payload: dict[str, Any] = {
            "business_id": business.business_id,
            "name": business.name or _DEFAULT_RETAILER_NAME,
            "converted": True,
        }
        if created_by_user_id is not None:
            payload["created_by_user_id"] = created_by_user_id

        response = self._client.table(_RETAILERS_TABLE).insert(payload).execute()
        row = first_or_none(response, "create retailer")
        if row is None:
            raise RuntimeError("Failed to create retailer: insert returned no row")
        return _row_to_retailer(row)

    def set_flags(self, retailer_id: str, **flags: bool) -> None:
        """Set boolean flags (e.g. priority_display_active, express_shipping)."""

        if not flags:
            return
        response = self._client.table(_RETAILERS_TABLE).update(dict(flags)).eq("id", retailer_id).execute()
        rows_or_raise(response, "update retailer flags")


class BusinessRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get(self, business_id: str) -> Optional[Business]:
        response = (
            self._client.table(_BUSINESSES_TABLE)
            .select("*")
            .eq("id", business_id)
            .limit(1)
            .execute()
        )
        row = first_or_none(response, "fetch business")
        return _row_to_business(row) if row else None

    def mark_connected(self, business_id: str, *, connected_at: datetime) -> None:
        response = (
            self._client.table(_BUSINESSES_TABLE)
            .update({"is_connected": True, "connected_at": to_iso_utc(connected_at, name="connected_at")})
            .eq("id", business_id)
            .execute()
        )
        rows_or_raise(response, "mark business connected")

    def set_display_shipping(self, business_id: str, shipping: str) -> None:
        response = (
            self._client.table(_BUSINESSES_TABLE)
            .update({"display_shipping": shipping})
            .eq("id", business_id)
            .execute()
        )
        rows_or_raise(response, "update business display shipping")


class VendorRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def find_id_by_name(self, name: str) -> Optional[str]:
        response = (
            self._client.table(_VENDORS_TABLE)
            .select("id")
            .eq("name", name)
            .limit(1)
            .execute()
        )
        row = first_or_none(response, "fetch vendor")
        return str(row["id"]) if row else None


__all__ = ["RetailerRepository", "BusinessRepository", "VendorRepository"]
