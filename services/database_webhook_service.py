"""
Database-change webhook handling.

Supabase posts `{type, table, record, old_record}` for row changes it is
configured to forward. Two pairs are acted upon:

- (orders, INSERT): make sure the order has a payout job, then add one order
  and its revenue to the retailer's leaderboard slice
- (scans, INSERT): stamp the UID with last-scan metadata, bump its scan
  counter, and add one scan to the retailer's leaderboard slice. The UID
  update is keyed by the scan row id in `webhook_events`, so a redelivered
  scan is counted once

Every other pair is acknowledged and ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

from domain.money import ZERO, to_amount
from domain.time import parse_utc_datetime, utc_now
from repositories.retailer_repository import RetailerRepository
from repositories.uid_repository import UidRepository
from repositories.webhook_event_repository import WebhookEventRepository
from services.audit import AuditLogger
from services.leaderboard_service import LeaderboardService
from services.payout_job_service import PayoutJobService, PayoutReferences

logger = logging.getLogger(__name__)

AUDIT_ACTOR = "supabase-hook"


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value not in (None, "") else None


@dataclass(frozen=True, slots=True)
class DatabaseChangeEvent:
    table: str
    type: str
    record: Mapping[str, Any]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "DatabaseChangeEvent":
        record = payload.get("record")
        return cls(
            table=str(payload.get("table") or ""),
            type=str(payload.get("type") or "").upper(),
            record=record if isinstance(record, Mapping) else {},
        )


class DatabaseWebhookService:
    def __init__(
        self,
        *,
        uids: UidRepository,
        retailers: RetailerRepository,
        payout_jobs: PayoutJobService,
        leaderboard: LeaderboardService,
        audit: AuditLogger,
        events: WebhookEventRepository,
    ) -> None:
        self._uids = uids
        self._retailers = retailers
        self._payout_jobs = payout_jobs
        self._leaderboard = leaderboard
        self._audit = audit
        self._events = events

    def handle(self, event: DatabaseChangeEvent) -> bool:
        """
        Apply one change event.

        Returns:
            True when the (table, type) pair was handled, False when ignored
        """

        if event.type != "INSERT":
            return False
        if event.table == "orders":
            self._order_inserted(event.record)
            return True
        if event.table == "scans":
            self._scan_inserted(event.record)
            return True
        return False

    def _order_inserted(self, record: Mapping[str, Any]) -> None:
        order_id = _optional_str(record.get("id"))
        retailer_id = _optional_str(record.get("retailer_id"))
        vendor_id = _optional_str(record.get("vendor_id"))
        total = to_amount(record.get("total"))

        if order_id and total > ZERO:
            sourcer_id = None
            if retailer_id:
                retailer = self._retailers.get(retailer_id)
                sourcer_id = retailer.sourcer_id if retailer else None
            self._payout_jobs.create_if_absent(
                order_id,
                total,
                PayoutReferences(
                    retailer_id=retailer_id,
                    vendor_id=vendor_id,
                    sourcer_id=sourcer_id,
                    source_uid=_optional_str(record.get("source_uid")),
                ),
                priority_display=bool(record.get("is_priority_display")),
            )

        self._leaderboard.record(
            retailer_id,
            event_key=f"orders:{order_id}" if order_id else None,
            orders=1,
            revenue=total,
            event_at=parse_utc_datetime(record.get("processed_at") or record.get("created_at")),
        )

        self._audit.log_event(
            AUDIT_ACTOR,
            "order_insert",
            {"order_id": order_id, "retailer_id": retailer_id, "vendor_id": vendor_id},
        )

    def _scan_inserted(self, record: Mapping[str, Any]) -> None:
        uid = _optional_str(record.get("uid"))
        scan_id = _optional_str(record.get("id"))
        retailer_id = _optional_str(record.get("retailer_id"))
        scanned_at = parse_utc_datetime(record.get("timestamp")) or utc_now()

        if uid:
            self._update_uid(uid, scan_id, record, scanned_at)

        self._leaderboard.record(
            retailer_id,
            event_key=f"scans:{scan_id}" if scan_id else None,
            scans=1,
            event_at=scanned_at,
        )

        self._audit.log_event(AUDIT_ACTOR, "scan_insert", {"uid": uid, "retailer_id": retailer_id})

    def _update_uid(
        self,
        uid: str,
        scan_id: Optional[str],
        record: Mapping[str, Any],
        scanned_at: datetime,
    ) -> None:
        """Stamp last-scan metadata and bump the counter once per scan row."""

        event_key = f"uid-scans:{scan_id}" if scan_id else None
        if event_key is not None and not self._events.register(event_key):
            logger.info("Scan %s already counted for UID %s", scan_id, uid)
            return

        try:
            self._uids.record_last_scan(
                uid,
                scanned_at=scanned_at,
                ip_address=_optional_str(record.get("ip_address")),
                user_agent=_optional_str(record.get("user_agent")),
                location=_optional_str(record.get("location")),
            )
            self._uids.increment_scan_count(uid)
        except Exception:
            if event_key is not None:
                self._events.release(event_key)
            raise


__all__ = ["DatabaseWebhookService", "DatabaseChangeEvent"]
