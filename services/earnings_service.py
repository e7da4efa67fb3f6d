"""
Retailer earnings.

Sums the retailer cut of a retailer's payout jobs by status. Jobs held for
priority-display reconciliation and failed jobs are listed but not counted.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple

from domain.errors import NotFoundError
from domain.money import ZERO, round2
from domain.payout import PayoutJob, PayoutStatus
from domain.retailer import Retailer
from repositories.payout_job_repository import PayoutJobRepository
from repositories.retailer_repository import RetailerRepository
from services.auth_service import Actor


@dataclass(frozen=True, slots=True)
class RetailerEarnings:
    retailer: Retailer
    pending: Decimal
    paid: Decimal
    jobs: Tuple[PayoutJob, ...]

    @property
    def total(self) -> Decimal:
        return round2(self.pending + self.paid)

    @property
    def pending_count(self) -> int:
        return sum(1 for job in self.jobs if job.status is PayoutStatus.PENDING)

    @property
    def paid_count(self) -> int:
        return sum(1 for job in self.jobs if job.status is PayoutStatus.PAID)


def summarize(retailer: Retailer, jobs: Tuple[PayoutJob, ...]) -> RetailerEarnings:
    pending = sum((j.retailer_cut for j in jobs if j.status is PayoutStatus.PENDING), ZERO)
    paid = sum((j.retailer_cut for j in jobs if j.status is PayoutStatus.PAID), ZERO)
    return RetailerEarnings(retailer=retailer, pending=round2(pending), paid=round2(paid), jobs=jobs)


class EarningsService:
    def __init__(self, retailers: RetailerRepository, jobs: PayoutJobRepository) -> None:
        self._retailers = retailers
        self._jobs = jobs

    def for_retailer(self, retailer_id: str) -> RetailerEarnings:
        retailer = self._retailers.get(retailer_id)
        if retailer is None:
            raise NotFoundError("Retailer not found")
        return summarize(retailer, tuple(self._jobs.list_for_retailer(retailer.retailer_id)))

    def for_actor(self, actor: Actor) -> RetailerEarnings:
        """Earnings of the retailer the user created, falling back to a match on email."""

        retailer = self._retailers.find_by_created_by_user(actor.user_id)
        if retailer is None and actor.email:
            retailer = self._retailers.find_by_email(actor.email)
        if retailer is None:
            raise NotFoundError("Retailer not found")
        return summarize(retailer, tuple(self._jobs.list_for_retailer(retailer.retailer_id)))


__all__ = ["EarningsService", "RetailerEarnings", "summarize"]
