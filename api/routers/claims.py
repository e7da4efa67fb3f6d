"""
Display Claim API Endpoints.

A retailer (or an anonymous visitor on the claim page) binds a display UID to
a store. `/claim-uid` is kept as an alias of `/claim-display`.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_container, optional_actor
from api.models import ClaimDisplayRequest, ClaimDisplayResponse, ErrorResponse
from services.auth_service import Actor
from services.claim_service import ClaimRequest
from services.container import ServiceContainer

router = APIRouter()


def _claim(
    request: ClaimDisplayRequest,
    actor: Optional[Actor],
    container: ServiceContainer,
) -> ClaimDisplayResponse:
    result = container.claims.claim(
        ClaimRequest(
            uid=request.uid,
            business_id=request.business_id,
            retailer_id=request.retailer_id,
            actor_user_id=actor.user_id if actor else None,
        )
    )
    return ClaimDisplayResponse(
        success=True,
        uid=result.uid,
        retailer_id=result.retailer_id,
        business_id=result.business_id,
        affiliate_url=result.affiliate_url,
        created_retailer=result.created_retailer,
    )


@router.post(
    "/claim-display",
    response_model=ClaimDisplayResponse,
    summary="Claim Display",
    description="Bind an unclaimed display UID to a retailer.",
    responses={
        400: {"model": ErrorResponse, "description": "No retailer could be determined"},
        404: {"model": ErrorResponse, "description": "UID or business not found"},
        409: {"model": ErrorResponse, "description": "UID already claimed"},
    },
)
def claim_display(
    request: ClaimDisplayRequest,
    actor: Optional[Actor] = Depends(optional_actor),
    container: ServiceContainer = Depends(get_container),
):
    """
    Claim a display UID.

    **Retailer resolution order:**
    1. `retailerId` from the request
    2. Retailer already bound to the UID
    3. Retailer of `businessId` (or of the UID's business)
    4. Retailer created by the signed-in user
    5. New retailer created for the business

    Returns `400` when none applies. Claims without a session are allowed.
    """
    return _claim(request, actor, container)


@router.post("/claim-uid", response_model=ClaimDisplayResponse, summary="Claim Display (alias)")
def claim_uid(
    request: ClaimDisplayRequest,
    actor: Optional[Actor] = Depends(optional_actor),
    container: ServiceContainer = Depends(get_container),
):
    return _claim(request, actor, container)
