"""
Webhook API Endpoints.

Inbound events from the storefront (orders), the payment rail (transfer
status) and the database (row inserts). Each endpoint authenticates its
caller, then processes the event under its `AcknowledgementPolicy`:

- storefront orders: always 200, errors reported in the body and audit log,
  since the storefront retries any non-2xx delivery
- payment rail / database: 500 on processing errors so the sender retries
"""

import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_container
from api.models import PaymentRailEvent
from domain.order import CommerceOrder
from services.container import ServiceContainer
from services.database_webhook_service import DatabaseChangeEvent
from services.webhook_security import (
    DATABASE_CHANGE_POLICY,
    PAYMENT_RAIL_POLICY,
    STOREFRONT_ORDERS_POLICY,
    AcknowledgementPolicy,
    verify_shared_secret,
    verify_signature,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _failure_response(
    policy: AcknowledgementPolicy,
    container: ServiceContainer,
    source: str,
    exc: Exception,
) -> JSONResponse:
    logger.exception("%s webhook processing failed", source)
    container.audit.log_event(source, "webhook_error", {"error": str(exc)})
    if policy.always_acknowledge:
        return JSONResponse(
            status_code=policy.failure_status(),
            content={"received": True, "error": "Processing failed", "message": str(exc)},
        )
    return JSONResponse(status_code=policy.failure_status(), content={"error": "Internal server error"})


@router.post("/webhooks/shopify", summary="Storefront Order Webhook")
async def shopify_order_webhook(request: Request, container: ServiceContainer = Depends(get_container)):
    """
    Ingest a storefront order.

    The raw body must be signed: `X-Signature` (or `X-Shopify-Hmac-SHA256`)
    carries base64(HMAC-SHA256(secret, body)). A bad signature is rejected
    with `401` before anything is written.
    """
    body = await request.body()
    signature = request.headers.get("x-signature") or request.headers.get("x-shopify-hmac-sha256")
    if not verify_signature(container.settings.shopify_webhook_secret, body, signature):
        return JSONResponse(status_code=401, content={"error": "Invalid signature"})

    try:
        payload = json.loads(body)
        if not isinstance(payload, dict):
            raise ValueError("Order payload must be a JSON object")
        order = CommerceOrder.from_payload(payload, shop_domain=request.headers.get("x-shopify-shop-domain"))
        result = await run_in_threadpool(container.orders.process, order)
    except Exception as exc:
        return _failure_response(STOREFRONT_ORDERS_POLICY, container, "shopify-webhook", exc)

    return {
        "received": True,
        "order_id": result.order_id,
        "retailer_id": result.retailer_id,
        "payout_job_id": result.payout_job_id,
    }


@router.post("/webhooks/dwolla", summary="Payment Rail Webhook")
def payment_rail_webhook(event: PaymentRailEvent, container: ServiceContainer = Depends(get_container)):
    """Handle `transfer_failed` / `transfer_completed` events; other topics are ignored."""
    try:
        container.payment_events.handle(event.topic, event.resource_id)
    except Exception as exc:
        return _failure_response(PAYMENT_RAIL_POLICY, container, "dwolla-webhook", exc)
    return {"received": True}


@router.post("/webhooks/supabase", summary="Database Change Webhook")
def database_change_webhook(
    payload: Dict[str, Any],
    x_supabase_signature: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    container: ServiceContainer = Depends(get_container),
):
    """
    Handle `(orders, INSERT)` and `(scans, INSERT)` row events.

    The shared secret is accepted from `X-Supabase-Signature`, `X-Api-Key` or
    `Authorization`.
    """
    provided = x_supabase_signature or x_api_key or authorization
    if not verify_shared_secret(container.settings.supabase_webhook_secret, provided):
        return JSONResponse(status_code=401, content={"error": "Invalid webhook signature"})

    try:
        handled = container.database_events.handle(DatabaseChangeEvent.from_payload(payload))
    except Exception as exc:
        return _failure_response(DATABASE_CHANGE_POLICY, container, "supabase-hook", exc)
    return {"received": True, "handled": handled}
