"""
Payout job repository (persistence).

Provides persistence for PayoutJob rows (`payout_jobs`) and the payout records
written when a job is executed (`payouts`). At most one job exists per order:
`payout_jobs.order_id` carries a unique constraint, and `insert` reports a
violation of it as `DuplicatePayoutJob` so callers can re-read the winner.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from postgrest.exceptions import APIError

from domain.money import ZERO, to_amount, to_wire
from domain.payout import PayoutJob, PayoutStatus
from domain.split import PayoutSplit
from domain.time import parse_utc_datetime, to_iso_utc
from repositories.client import Client, first_or_none, is_unique_violation, rows_or_raise

_PAYOUT_JOBS_TABLE: str = "payout_jobs"
_PAYOUTS_TABLE: str = "payouts"


class DuplicatePayoutJob(Exception):
    """Raised when a job already exists for the order being inserted."""

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Payout job already exists for order {order_id}")
        self.order_id = order_id


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _row_to_job(row: Mapping[str, Any]) -> PayoutJob:
    """Convert a Supabase row into a PayoutJob."""

    sourcer_cut = row.get("sourcer_cut")
    tapify_cut = row.get("tapify_cut")
    return PayoutJob(
        job_id=str(row["id"]),
        order_id=str(row["order_id"]),
        retailer_id=str(row["retailer_id"]),
        vendor_id=str(row["vendor_id"]),
        total_amount=to_amount(row.get("total_amount")),
        retailer_cut=to_amount(row.get("retailer_cut")),
        vendor_cut=to_amount(row.get("vendor_cut")),
        sourcer_id=_optional_str(row.get("sourcer_id")),
        sourcer_cut=to_amount(sourcer_cut) if sourcer_cut is not None else ZERO,
        tapify_cut=to_amount(tapify_cut) if tapify_cut is not None else ZERO,
        status=PayoutStatus(str(row.get("status") or PayoutStatus.PENDING.value)),
        source_uid=row.get("source_uid"),
        transfer_ids=tuple(str(t) for t in (row.get("transfer_ids") or [])),
        date_paid=parse_utc_datetime(row.get("date_paid")),
        created_at=parse_utc_datetime(row.get("created_at")),
    )


class PayoutJobRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get(self, job_id: str) -> Optional[PayoutJob]:
        response = self._client.table(_PAYOUT_JOBS_TABLE).select("*").eq("id", job_id).limit(1).execute()
        row = first_or_none(response, "fetch payout job")
        return _row_to_job(row) if row else None

    def find_by_order_id(self, order_id: str) -> Optional[PayoutJob]:
        response = (
            self._client.table(_PAYOUT_JOBS_TABLE)
            .select("*")
            .eq("order_id", order_id)
            .limit(1)
            .execute()
        )
        row = first_or_none(response, "fetch payout job for order")
        return _row_to_job(row) if row else None

    def insert(
        self,
        *,
        order_id: str,
        split: PayoutSplit,
        retailer_id: str,
        vendor_id: str,
        sourcer_id: Optional[str] = None,
        source_uid: Optional[str] = None,
        status: PayoutStatus = PayoutStatus.PENDING,
    ) -> PayoutJob:
        """
        Insert one payout job row.

        Raises:
            DuplicatePayoutJob: if a job already exists for `order_id`
        """

        payload: dict[str, Any] = {
            "order_id": order_id,
            "retailer_id": retailer_id,
            "vendor_id": vendor_id,
            "sourcer_id": sourcer_id,
            "total_amount": to_wire(split.total),
            "retailer_cut": to_wire(split.retailer_cut),
            "vendor_cut": to_wire(split.vendor_cut),
            "sourcer_cut": to_wire(split.sourcer_cut),
            "tapify_cut": to_wire(split.tapify_cut),
            "status": status.value,
            "source_uid": source_uid,
            "transfer_ids": [],
        }

        try:
            response = self._client.table(_PAYOUT_JOBS_TABLE).insert(payload).execute()
        except APIError as exc:
            if is_unique_violation(exc):
                raise DuplicatePayoutJob(order_id) from exc
            raise

        row = first_or_none(response, "create payout job")
        if row is None:
            raise RuntimeError("Failed to create payout job: insert returned no row")
        return _row_to_job(row)

    def mark_paid(self, job_id: str, transfer_ids: Sequence[str], *, paid_at: datetime) -> None:
        response = (
            self._client.table(_PAYOUT_JOBS_TABLE)
            .update(
                {
                    "status": PayoutStatus.PAID.value,
                    "date_paid": to_iso_utc(paid_at, name="paid_at"),
                    "transfer_ids": list(transfer_ids),
                }
            )
            .eq("id", job_id)
            .execute()
        )
        rows_or_raise(response, "mark payout job paid")

    def mark_failed(self, job_ids: Iterable[str]) -> List[str]:
        """
        Bulk-mark jobs failed.

        Returns:
            Ids of the jobs that were updated
        """

        ids = [str(job_id) for job_id in job_ids]
        if not ids:
            return []
        response = (
            self._client.table(_PAYOUT_JOBS_TABLE)
            .update({"status": PayoutStatus.FAILED.value})
            .in_("id", ids)
            .execute()
        )
        rows = rows_or_raise(response, "mark payout jobs failed")
        return [str(row["id"]) for row in rows]

    def find_by_contained_transfer_id(self, transfer_id: str) -> List[PayoutJob]:
        """Reverse lookup: every job whose `transfer_ids` contains `transfer_id`."""

        response = (
            self._client.table(_PAYOUT_JOBS_TABLE)
            .select("*")
            .contains("transfer_ids", [transfer_id])
            .execute()
        )
        return [_row_to_job(row) for row in rows_or_raise(response, "fetch payout jobs by transfer")]

    def list_for_retailer(self, retailer_id: str) -> List[PayoutJob]:
        response = (
            self._client.table(_PAYOUT_JOBS_TABLE)
            .select("*")
            .eq("retailer_id", retailer_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_row_to_job(row) for row in rows_or_raise(response, "list payout jobs")]

    def record_payout(
        self,
        job: PayoutJob,
        *,
        transfer_summary: Sequence[Mapping[str, Any]],
        total_sent: Decimal,
        triggered_by: Optional[str],
    ) -> None:
        """Append the audit record of an executed payout job."""

        response = (
            self._client.table(_PAYOUTS_TABLE)
            .insert(
                {
                    "payout_job_id": job.job_id,
                    "retailer_id": job.retailer_id,
                    "vendor_id": job.vendor_id,
                    "sourcer_id": job.sourcer_id,
                    "total_amount": to_wire(total_sent),
                    "transfer_summary": [dict(entry) for entry in transfer_summary],
                    "status": "sent",
                    "triggered_by": triggered_by,
                }
            )
            .execute()
        )
        rows_or_raise(response, "record payout")


__all__ = ["PayoutJobRepository", "DuplicatePayoutJob"]
