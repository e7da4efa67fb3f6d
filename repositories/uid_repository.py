"""
UID repository (persistence).

Persistence for display tokens (`uids` table). Enforces nothing beyond what the
database itself guarantees, except the claim guard: a claim only updates a row
that is still unclaimed, so two concurrent claims cannot both succeed.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from domain.display_token import DisplayToken
from domain.money import to_amount, to_wire
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.client import Client, first_or_none, rows_or_raise

# Supabase table name for display tokens.
_UIDS_TABLE: str = "uids"

# Postgres function incrementing `scan_count` atomically.
_INCREMENT_SCAN_COUNT_RPC: str = "increment_uid_scan_count"


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _row_to_token(row: Mapping[str, Any]) -> DisplayToken:
    """Convert a Supabase row into a DisplayToken."""

    last_order_total = row.get("last_order_total")
    return DisplayToken(
        token_id=str(row.get("id") or row["uid"]),
        uid=str(row["uid"]),
        is_claimed=bool(row.get("is_claimed", False)),
        retailer_id=_optional_str(row.get("retailer_id")),
        business_id=_optional_str(row.get("business_id")),
        affiliate_url=row.get("affiliate_url") or None,
        claimed_at=parse_utc_datetime(row.get("claimed_at")),
        claimed_by_user_id=_optional_str(row.get("claimed_by_user_id")),
        scan_count=int(row.get("scan_count") or 0),
        last_scan_at=parse_utc_datetime(row.get("last_scan_at")),
        last_order_at=parse_utc_datetime(row.get("last_order_at")),
        last_order_total=to_amount(last_order_total) if last_order_total is not None else None,
    )


class UidRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get_by_uid(self, uid: str) -> Optional[DisplayToken]:
        """
        Retrieve a display token by its token string.

        Returns:
            DisplayToken or None if not found
        """

        response = self._client.table(_UIDS_TABLE).select("*").eq("uid", uid).limit(1).execute()
        row = first_or_none(response, "fetch UID")
        return _row_to_token(row) if row else None

    def mark_claimed(self, token: DisplayToken) -> bool:
        """
        Persist a claimed token.

        The update is guarded on `is_claimed = false`; returns False when another
        request claimed the token first (no row matched).
        """

        if not token.is_claimed or token.claimed_at is None:
            raise ValueError("mark_claimed requires a claimed DisplayToken")

        payload: dict[str, Any] = {
            "is_claimed": True,
            "claimed_at": to_iso_utc(token.claimed_at, name="claimed_at"),
            "claimed_by_user_id": token.claimed_by_user_id,
            "affiliate_url": token.affiliate_url,
            "retailer_id": token.retailer_id,
        }
        if token.business_id is not None:
            payload["business_id"] = token.business_id

        response = (
            self._client.table(_UIDS_TABLE)
            .update(payload)
            .eq("uid", token.uid)
            .eq("is_claimed", False)
            .execute()
        )
        return bool(rows_or_raise(response, "claim UID"))

    def record_last_scan(
        self,
        uid: str,
        *,
        scanned_at: datetime,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        location: Optional[str] = None,
    ) -> None:
        payload: dict[str, Any] = {
            "last_scan_at": to_iso_utc(scanned_at, name="scanned_at"),
            "last_scan_ip": ip_address,
            "last_scan_user_agent": user_agent,
        }
        if location is not None:
            payload["last_scan_location"] = location

        response = self._client.table(_UIDS_TABLE).update(payload).eq("uid", uid).execute()
        rows_or_raise(response, "update UID scan metadata")

    def increment_scan_count(self, uid: str) -> None:
        response = self._client.rpc(_INCREMENT_SCAN_COUNT_RPC, {"p_uid": uid}).execute()
        rows_or_raise(response, "increment UID scan count")

    def record_last_order(self, uid: str, *, ordered_at: datetime, total: Decimal) -> None:
        response = (
            self._client.table(_UIDS_TABLE)
            .update(
                {
                    "last_order_at": to_iso_utc(ordered_at, name="ordered_at"),
                    "last_order_total": to_wire(total),
                }
            )
            .eq("uid", uid)
            .execute()
        )
        rows_or_raise(response, "update UID order metadata")


__all__ = ["UidRepository"]
