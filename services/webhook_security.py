"""
Inbound webhook authentication and acknowledgement policy.

Storefront webhooks are signed: base64(HMAC-SHA256(secret, raw body)) in a
header. Database-change webhooks carry a shared secret verbatim. Both are
compared in constant time.

`AcknowledgementPolicy` makes the error-handling trade-off of each webhook
endpoint explicit. Platforms that retry on any non-2xx response get
`always_acknowledge=True`: processing errors are recorded and the caller still
sees success, relying on idempotent processing to heal on redelivery.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


def compute_signature(secret: str, body: bytes) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def verify_signature(secret: Optional[str], body: bytes, signature: Optional[str]) -> bool:
    """
    Verify a base64 HMAC-SHA256 signature over the raw request body.

    Returns False (never raises) for a missing secret, body or signature.
    """

    if not secret:
        logger.error("Webhook secret not configured; rejecting signed webhook")
        return False
    if not signature:
        logger.warning("Webhook rejected: missing signature header")
        return False
    if not body:
        logger.warning("Webhook rejected: empty body")
        return False

    expected = compute_signature(secret, body)
    valid = hmac.compare_digest(expected.encode("utf-8"), signature.strip().encode("utf-8"))
    if not valid:
        logger.warning("Webhook rejected: invalid HMAC signature")
    return valid


def verify_shared_secret(secret: Optional[str], provided: Optional[str]) -> bool:
    """Constant-time comparison of a shared-secret header (a `Bearer ` prefix is ignored)."""

    if not secret or not provided:
        return False
    value = provided.strip()
    if value.lower().startswith("bearer "):
        value = value[7:].strip()
    return hmac.compare_digest(secret.encode("utf-8"), value.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class AcknowledgementPolicy:
    """How a webhook endpoint reports processing failures to its caller."""

    always_acknowledge: bool

    def failure_status(self) -> int:
        return 200 if self.always_acknowledge else 500


STOREFRONT_ORDERS_POLICY = AcknowledgementPolicy(always_acknowledge=True)
PAYMENT_RAIL_POLICY = AcknowledgementPolicy(always_acknowledge=False)
DATABASE_CHANGE_POLICY = AcknowledgementPolicy(always_acknowledge=False)


__all__ = [
    "compute_signature",
    "verify_signature",
    "verify_shared_secret",
    "AcknowledgementPolicy",
    "STOREFRONT_ORDERS_POLICY",
    "PAYMENT_RAIL_POLICY",
    "DATABASE_CHANGE_POLICY",
]
