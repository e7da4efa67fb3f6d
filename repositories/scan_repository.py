"""
Scan repository (persistence).

One row per physical scan of a display. The most recent unconverted scan of a
token is credited with the next order placed through it; the scan keeps the
id of the order it was credited with.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from domain.money import to_wire
from domain.time import to_iso_utc
from repositories.client import Client, first_or_none, rows_or_raise

_SCANS_TABLE: str = "scans"


class ScanRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def record_scan(
        self,
        uid: str,
        *,
        scanned_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        location: Optional[str] = None,
        retailer_id: Optional[str] = None,
        business_id: Optional[str] = None,
    ) -> Optional[str]:
        """
        Insert a scan row.

        Returns:
            The new scan id, or None if the insert returned no representation
        """

        payload: dict[str, Any] = {
            "uid": uid,
            "timestamp": to_iso_utc(scanned_at, name="scanned_at"),
            "ip_address": ip_address,
            "user_agent": user_agent,
            "location": location,
            "retailer_id": retailer_id,
            "business_id": business_id,
            "converted": False,
        }
        response = self._client.table(_SCANS_TABLE).insert(payload).execute()
        row = first_or_none(response, "record scan")
        return str(row["id"]) if row and row.get("id") is not None else None

    def mark_latest_converted(self, uid: str, revenue: Decimal, *, order_id: str) -> Optional[str]:
        """
        Credit `order_id` to the most recent unconverted scan of `uid`.

        A scan already credited with the order is returned unchanged, so a
        redelivered order converts one scan, not one per delivery.

        Returns:
            The converted scan id, or None when no unconverted scan exists
        """

        credited = (
            self._client.table(_SCANS_TABLE)
            .select("id")
            .eq("uid", uid)
            .eq("order_id", order_id)
            .limit(1)
            .execute()
        )
        row = first_or_none(credited, "fetch converted scan")
        if row is not None:
            return str(row["id"])

        response = (
            self._client.table(_SCANS_TABLE)
            .select("id")
            .eq("uid", uid)
            .eq("converted", False)
            .order("timestamp", desc=True)
            .limit(1)
            .execute()
        )
        row = first_or_none(response, "fetch latest scan")
        if row is None:
            return None

        scan_id = str(row["id"])
        update = (
            self._client.table(_SCANS_TABLE)
            .update({"converted": True, "revenue": to_wire(revenue), "order_id": order_id})
            .eq("id", scan_id)
            .execute()
        )
        rows_or_raise(update, "mark scan converted")
        return scan_id


__all__ = ["ScanRepository"]
