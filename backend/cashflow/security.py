"""Signature checks for inbound platform webhooks."""

from __future__ import annotations

import base64
import hashlib
import hmac
from typing import Optional

from fastapi import HTTPException, status

SIGNATURE_HEADER = "X-WC-Webhook-Signature"
TOPIC_HEADER = "X-WC-Webhook-Topic"
DELIVERY_HEADER = "X-WC-Webhook-Delivery-ID"


def compute_webhook_signature(body: bytes, secret: str) -> str:
    """Return the base64 HMAC-SHA256 of ``body`` the way the platform signs it."""

    if not secret:
        raise ValueError("secret must not be empty")
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_webhook_signature(body: bytes, secret: str, signature: Optional[str]) -> bool:
    if not signature:
        return False
    expected = compute_webhook_signature(body, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().encode("ascii", "ignore"))


def require_valid_signature(body: bytes, secret: Optional[str], signature: Optional[str]) -> None:
    """Reject the request unless it is signed with ``secret``; no secret means no check."""

    if not secret:
        return
    if not verify_webhook_signature(body, secret, signature):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid webhook signature", "code": "invalid_signature"},
        )
