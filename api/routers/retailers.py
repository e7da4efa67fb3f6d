"""
Retailer API Endpoints.

Earnings summaries and bank account linking for payout recipients.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_container, require_actor, require_admin
from api.models import EarningsResponse, LinkBankAccountRequest, LinkBankAccountResponse, PayoutJobItem
from services.auth_service import Actor
from services.container import ServiceContainer
from services.earnings_service import RetailerEarnings

router = APIRouter()


def _earnings_response(earnings: RetailerEarnings) -> EarningsResponse:
    retailer = earnings.retailer
    return EarningsResponse(
        retailer={"id": retailer.retailer_id, "name": retailer.name, "email": retailer.email},
        earnings={"pending": earnings.pending, "paid": earnings.paid, "total": earnings.total},
        counts={
            "pending": earnings.pending_count,
            "paid": earnings.paid_count,
            "total": len(earnings.jobs),
        },
        payouts=[
            PayoutJobItem(
                id=job.job_id,
                order_id=job.order_id,
                status=job.status.value,
                total_amount=job.total_amount,
                retailer_cut=job.retailer_cut,
                date_paid=job.date_paid,
                created_at=job.created_at,
            )
            for job in earnings.jobs
        ],
    )


@router.get("/retailers/me/earnings", response_model=EarningsResponse, summary="My Earnings")
def my_earnings(
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
):
    """Earnings of the retailer owned by the signed-in user."""
    return _earnings_response(container.earnings.for_actor(actor))


@router.get("/retailers/{retailer_id}/earnings", response_model=EarningsResponse, summary="Retailer Earnings")
def retailer_earnings(
    retailer_id: str,
    admin: Actor = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
):
    return _earnings_response(container.earnings.for_retailer(retailer_id))


@router.post("/retailers/me/bank-account", response_model=LinkBankAccountResponse, summary="Link Bank Account")
def link_bank_account(
    request: LinkBankAccountRequest,
    actor: Actor = Depends(require_actor),
    container: ServiceContainer = Depends(get_container),
):
    """Attach a bank account (Plaid processor token) so the retailer can receive payouts."""
    linked = container.bank_accounts.link_retailer_account(
        actor,
        processor_token=request.processor_token,
        bank_name=request.bank_name,
    )
    return LinkBankAccountResponse(
        success=True,
        retailer_id=linked.retailer_id,
        funding_source_id=linked.funding_source_id,
        bank_name=linked.bank_name,
    )
