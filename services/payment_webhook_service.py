"""
Payment rail webhook handling.

- transfer_failed: every payout job containing the failed transfer is marked
  failed. Failed jobs are terminal; recovering the money is a manual step.
- transfer_completed: recorded only. A job is considered paid once all of its
  transfers were issued, not when the rail confirms them.
- any other topic: ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from repositories.payout_job_repository import PayoutJobRepository
from services.audit import SYSTEM_ACTOR, AuditLogger

logger = logging.getLogger(__name__)

TRANSFER_FAILED = "transfer_failed"
TRANSFER_COMPLETED = "transfer_completed"


@dataclass(frozen=True, slots=True)
class RailEventResult:
    topic: str
    handled: bool
    failed_job_ids: List[str] = field(default_factory=list)


class PaymentWebhookService:
    def __init__(self, jobs: PayoutJobRepository, audit: AuditLogger) -> None:
        self._jobs = jobs
        self._audit = audit

    def handle(self, topic: Optional[str], resource_id: Optional[str]) -> RailEventResult:
        topic = topic or ""
        logger.info("Payment rail event %s for %s", topic, resource_id)

        if topic == TRANSFER_FAILED:
            if not resource_id:
                logger.warning("transfer_failed event without resourceId")
                return RailEventResult(topic=topic, handled=False)
            return self._transfer_failed(resource_id)

        if topic == TRANSFER_COMPLETED:
            self._audit.log_event(SYSTEM_ACTOR, "dwolla_transfer_completed", {"transfer_id": resource_id})
            return RailEventResult(topic=topic, handled=True)

        return RailEventResult(topic=topic, handled=False)

    def _transfer_failed(self, transfer_id: str) -> RailEventResult:
        jobs = self._jobs.find_by_contained_transfer_id(transfer_id)
        if not jobs:
            logger.warning("No payout job contains failed transfer %s", transfer_id)
            return RailEventResult(topic=TRANSFER_FAILED, handled=True)

        failed_ids = self._jobs.mark_failed(job.job_id for job in jobs)
        self._audit.log_event(
            SYSTEM_ACTOR,
            "dwolla_transfer_failed",
            {"transfer_id": transfer_id, "payout_job_ids": failed_ids},
        )
        logger.warning(
            "Marked payout jobs failed after transfer failure",
            extra={"transfer_id": transfer_id, "payout_job_ids": failed_ids},
        )
        return RailEventResult(topic=TRANSFER_FAILED, handled=True, failed_job_ids=failed_ids)


__all__ = ["PaymentWebhookService", "RailEventResult", "TRANSFER_FAILED", "TRANSFER_COMPLETED"]
