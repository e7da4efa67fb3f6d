"""
Payout execution.

Drives one pending payout job through the payment rail:

1. Load the job (404 unknown, 400 not pending, 400 while the UID the order
   came through is still unclaimed)
2. Resolve funding sources; the vendor's is mandatory, retailer and sourcer
   are paid only when they have linked a bank account
3. One client-credentials token for the whole execution
4. Transfers from the platform master funding source, one at a time, in
   vendor -> retailer -> sourcer order, skipping zero cuts
5. All issued -> job marked paid with every transfer id, payout recorded

If any transfer fails the remaining ones are not attempted and the job stays
pending. Transfers already issued are not reversed; they are written to the
audit trail so an operator can reconcile before retrying. Each transfer
carries an idempotency key of `<job id>:<role>` so a retry of the same job
does not pay a party twice within the rail's idempotency window.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from domain.errors import NotFoundError, ValidationError
from domain.money import ZERO, to_wire
from domain.payout import PayoutJob
from domain.retailer import PAYOUT_ORDER, AccountOwner, PartyRole
from domain.time import utc_now
from repositories.funding_source_repository import FundingSourceRepository
from repositories.payout_job_repository import PayoutJobRepository
from repositories.uid_repository import UidRepository
from services.attribution_service import RETAILER_TOKEN_PATTERN
from services.audit import SYSTEM_ACTOR, AuditLogger
from services.payment_rail import PaymentRailClient, RailToken, Transfer

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlannedTransfer:
    role: PartyRole
    funding_source_id: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class TransferSummary:
    role: PartyRole
    transfer_id: str
    status: Optional[str]
    href: Optional[str]
    amount: Decimal

    def as_record(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "id": self.transfer_id,
            "status": self.status,
            "href": self.href,
            "amount": to_wire(self.amount),
        }


@dataclass(frozen=True, slots=True)
class PayoutExecutionResult:
    job: PayoutJob
    transfers: Tuple[TransferSummary, ...]

    @property
    def total_sent(self) -> Decimal:
        return sum((t.amount for t in self.transfers), ZERO)


def _owner_for(job: PayoutJob, role: PartyRole) -> Optional[AccountOwner]:
    if role is PartyRole.VENDOR:
        return AccountOwner.vendor(job.vendor_id)
    if role is PartyRole.RETAILER:
        return AccountOwner.retailer(job.retailer_id)
    if job.sourcer_id:
        return AccountOwner.sourcer(job.sourcer_id)
    return None


def _cut_for(job: PayoutJob, role: PartyRole) -> Decimal:
    return {
        PartyRole.VENDOR: job.vendor_cut,
        PartyRole.RETAILER: job.retailer_cut,
        PartyRole.SOURCER: job.sourcer_cut,
    }[role]


class PayoutExecutionService:
    def __init__(
        self,
        *,
        jobs: PayoutJobRepository,
        funding_sources: FundingSourceRepository,
        uids: UidRepository,
        rail: PaymentRailClient,
        audit: AuditLogger,
        master_funding_source: str,
    ) -> None:
        self._jobs = jobs
        self._funding_sources = funding_sources
        self._uids = uids
        self._rail = rail
        self._audit = audit
        self._master_funding_source = master_funding_source

    def _load_pending(self, job_id: str) -> PayoutJob:
        if not job_id:
            raise ValidationError("Missing payoutJobId")
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError("Payout job not found")
        if not job.is_executable:
            raise ValidationError(
                "Payout already processed",
                details={"payout_job_id": job_id, "status": job.status.value},
            )
        self._check_display_claimed(job)
        return job

    def _check_display_claimed(self, job: PayoutJob) -> None:
        """Orders attributed through a still-unclaimed UID are held until the claim."""

        uid = job.source_uid
        if not uid or RETAILER_TOKEN_PATTERN.match(uid):
            return
        token = self._uids.get_by_uid(uid)
        if token is not None and not token.is_claimed:
            raise ValidationError(
                "Payout delayed until the display is claimed",
                details={"payout_job_id": job.job_id, "uid": uid},
            )

    def plan(self, job: PayoutJob) -> List[PlannedTransfer]:
        """
        Resolve the transfers a job needs, in issuance order.

        Raises:
            ValidationError: if the vendor has no funding source
        """

        planned: List[PlannedTransfer] = []
        for role in PAYOUT_ORDER:
            owner = _owner_for(job, role)
            amount = _cut_for(job, role)
            funding_source = self._funding_sources.get_funding_source_id(owner) if owner else None

            if role is PartyRole.VENDOR and not funding_source:
                raise ValidationError(
                    "Vendor bank account missing",
                    details={"payout_job_id": job.job_id, "vendor_id": job.vendor_id},
                )
            if amount <= ZERO:
                continue
            if not funding_source:
                logger.warning(
                    "No funding source for %s; cut not transferred",
                    role.value,
                    extra={"payout_job_id": job.job_id, "role": role.value, "amount": to_wire(amount)},
                )
                continue
            planned.append(PlannedTransfer(role=role, funding_source_id=funding_source, amount=amount))
        return planned

    def execute(self, job_id: str, *, triggered_by: Optional[str] = None) -> PayoutExecutionResult:
        job = self._load_pending(job_id)
        planned = self.plan(job)

        token = self._rail.get_token()
        issued: List[TransferSummary] = []
        try:
            for transfer in planned:
                issued.append(self._issue(token, job, transfer))
        except Exception as exc:
            logger.error(
                "Payout job %s failed after %d transfer(s)",
                job.job_id,
                len(issued),
                extra={"payout_job_id": job.job_id, "transfer_ids": [t.transfer_id for t in issued]},
            )
            self._audit.log_event(
                triggered_by or SYSTEM_ACTOR,
                "payout_failed",
                {
                    "payout_job_id": job.job_id,
                    "error": str(exc),
                    "issued_transfers": [t.as_record() for t in issued],
                },
            )
            raise

        transfer_ids = tuple(t.transfer_id for t in issued)
        paid_job = job.paid(transfer_ids=transfer_ids, paid_at=utc_now())
        result = PayoutExecutionResult(job=paid_job, transfers=tuple(issued))

        self._jobs.mark_paid(job.job_id, transfer_ids, paid_at=paid_job.date_paid)  # type: ignore[arg-type]
        self._jobs.record_payout(
            paid_job,
            transfer_summary=[t.as_record() for t in issued],
            total_sent=result.total_sent,
            triggered_by=triggered_by,
        )
        self._audit.log_event(
            triggered_by or SYSTEM_ACTOR,
            "payout_processed",
            {"payout_job_id": job.job_id, "transfers": [t.as_record() for t in issued]},
        )
        logger.info("Payout job %s paid with %d transfer(s)", job.job_id, len(issued))
        return result

    def _issue(self, token: RailToken, job: PayoutJob, planned: PlannedTransfer) -> TransferSummary:
        transfer: Transfer = self._rail.create_transfer(
            token,
            source_funding_source=self._master_funding_source,
            destination_funding_source=planned.funding_source_id,
            amount=planned.amount,
            metadata={"payout_job_id": job.job_id, "role": planned.role.value},
            idempotency_key=f"{job.job_id}:{planned.role.value}",
        )
        return TransferSummary(
            role=planned.role,
            transfer_id=transfer.transfer_id,
            status=transfer.status,
            href=transfer.href,
            amount=planned.amount,
        )

    def transfer_status(self, transfer_id: str) -> Transfer:
        if not transfer_id:
            raise ValidationError("Missing transfer id")
        return self._rail.get_transfer(self._rail.get_token(), transfer_id)


__all__ = [
    "PayoutExecutionService",
    "PayoutExecutionResult",
    "PlannedTransfer",
    "TransferSummary",
]
