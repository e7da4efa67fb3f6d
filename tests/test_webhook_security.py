"""
Tests for `services/webhook_security.py`.
"""

from __future__ import annotations

import base64
import hashlib
import hmac

from services.webhook_security import (
    DATABASE_CHANGE_POLICY,
    PAYMENT_RAIL_POLICY,
    STOREFRONT_ORDERS_POLICY,
    compute_signature,
    verify_shared_secret,
    verify_signature,
)

BODY = b'{"id": "1001"}'


def test_compute_signature_is_base64_hmac_sha256() -> None:
    expected = base64.b64encode(hmac.new(b"s3cret", BODY, hashlib.sha256).digest()).decode()

    assert compute_signature("s3cret", BODY) == expected


def test_verify_signature() -> None:
    signature = compute_signature("s3cret", BODY)

    assert verify_signature("s3cret", BODY, signature)
    assert not verify_signature("other", BODY, signature)
    assert not verify_signature("s3cret", BODY + b" ", signature)
    assert not verify_signature("s3cret", BODY, None)
    assert not verify_signature("s3cret", b"", signature)
    assert not verify_signature(None, BODY, signature)


def test_verify_shared_secret() -> None:
    assert verify_shared_secret("hook", "hook")
    assert verify_shared_secret("hook", "Bearer hook")
    assert not verify_shared_secret("hook", "hook2")
    assert not verify_shared_secret("hook", None)
    assert not verify_shared_secret(None, "hook")


def test_acknowledgement_policies() -> None:
    assert STOREFRONT_ORDERS_POLICY.failure_status() == 200
    assert PAYMENT_RAIL_POLICY.failure_status() == 500
    assert DATABASE_CHANGE_POLICY.failure_status() == 500
