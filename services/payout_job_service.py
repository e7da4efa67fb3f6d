"""
Payout job creation.

Holds the create-if-absent contract shared by the storefront order webhook and
the database-change webhook:

- no retailer or no vendor -> nothing is created (logged, returns None)
- a job already exists for the order -> that job is returned
- otherwise one job is inserted; losing a concurrent insert race on the
  unique order_id constraint returns the winner's job
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from domain.money import ZERO
from domain.payout import PayoutJob, PayoutStatus
from domain.split import compute_split
from repositories.payout_job_repository import DuplicatePayoutJob, PayoutJobRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PayoutReferences:
    """Parties and provenance of a payout job."""

    retailer_id: Optional[str]
    vendor_id: Optional[str]
    sourcer_id: Optional[str] = None
    source_uid: Optional[str] = None


class PayoutJobService:
    def __init__(self, jobs: PayoutJobRepository) -> None:
        self._jobs = jobs

    def create_if_absent(
        self,
        order_id: str,
        total: Decimal,
        refs: PayoutReferences,
        *,
        priority_display: bool = False,
    ) -> Optional[PayoutJob]:
        """
        Ensure exactly one payout job exists for `order_id`.

        Args:
            order_id: Internal order id
            total: Order total the split is computed from (must be > 0)
            refs: Retailer, vendor and optional sourcer ids
            priority_display: Hold the job in `priority_display` for manual
                reconciliation instead of `pending`

        Returns:
            The existing or newly created job, or None when the order does not
            qualify for a payout
        """

        if not refs.retailer_id or not refs.vendor_id:
            logger.warning(
                "Skipping payout job for order %s: missing %s",
                order_id,
                "retailer" if not refs.retailer_id else "vendor",
                extra={"order_id": order_id, "retailer_id": refs.retailer_id, "vendor_id": refs.vendor_id},
            )
            return None

        if total <= ZERO:
            logger.info("Skipping payout job for order %s: total is %s", order_id, total)
            return None

        existing = self._jobs.find_by_order_id(order_id)
        if existing is not None:
            return existing

        split = compute_split(total, has_sourcer=refs.sourcer_id is not None)
        status = PayoutStatus.PRIORITY_DISPLAY if priority_display else PayoutStatus.PENDING

        try:
            job = self._jobs.insert(
                order_id=order_id,
                split=split,
                retailer_id=refs.retailer_id,
                vendor_id=refs.vendor_id,
                sourcer_id=refs.sourcer_id,
                source_uid=refs.source_uid,
                status=status,
            )
        except DuplicatePayoutJob:
            logger.info("Payout job for order %s created concurrently; reusing it", order_id)
            existing = self._jobs.find_by_order_id(order_id)
            if existing is None:
                raise
            return existing

        logger.info(
            "Created payout job %s for order %s",
            job.job_id,
            order_id,
            extra={"payout_job_id": job.job_id, "order_id": order_id, "status": status.value},
        )
        return job


__all__ = ["PayoutJobService", "PayoutReferences"]
