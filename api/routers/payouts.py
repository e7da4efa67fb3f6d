"""
Payouts API Endpoints.

Admin-only: execute a pending payout job and look up a transfer on the
payment rail.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_container, require_admin
from api.models import ErrorResponse, PayoutRequest, PayoutResponse, TransferItem, TransferStatusResponse
from services.auth_service import Actor
from services.container import ServiceContainer

router = APIRouter()


@router.post(
    "/payouts",
    response_model=PayoutResponse,
    summary="Execute Payout",
    responses={
        400: {"model": ErrorResponse, "description": "Job not payable yet or vendor bank account missing"},
        404: {"model": ErrorResponse, "description": "Job not found"},
    },
)
def execute_payout(
    request: PayoutRequest,
    admin: Actor = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
):
    """
    Pay out one pending job.

    Transfers go from the platform funding source to the vendor, the retailer
    and the sourcer, in that order. If a transfer fails the job stays
    `pending` and the error is returned; transfers already issued are listed
    in the audit trail.
    """
    result = container.payouts.execute(request.payout_job_id, triggered_by=admin.user_id)
    return PayoutResponse(
        success=True,
        payout_job_id=result.job.job_id,
        status=result.job.status.value,
        transfers=[
            TransferItem(
                role=t.role.value,
                id=t.transfer_id,
                status=t.status,
                href=t.href,
                amount=t.amount,
            )
            for t in result.transfers
        ],
    )


@router.get("/payouts/transfers/{transfer_id}", response_model=TransferStatusResponse, summary="Transfer Status")
def transfer_status(
    transfer_id: str,
    admin: Actor = Depends(require_admin),
    container: ServiceContainer = Depends(get_container),
):
    transfer = container.payouts.transfer_status(transfer_id)
    return TransferStatusResponse(transfer_id=transfer.transfer_id, status=transfer.status, amount=transfer.amount)
