"""
Domain: UID display tokens.

A display token is the unique string embedded in one physical NFC/QR display.
It is the referral key for every sale that display produces.

Contract implemented here:
- Tokens are provisioned unclaimed, out of band.
- unclaimed -> claimed happens exactly once and is never reversed.
- A claimed token needs an affiliate URL before it may redirect to commerce;
  an unclaimed token (or one without a URL) always redirects to the claim flow.

Pure module: no I/O. All timestamps must be passed explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

from .time import require_utc_timestamp

CLAIM_PATH = "/claim"


def claim_url(uid: str) -> str:
    """Relative URL of the claim page for a token."""
    return f"{CLAIM_PATH}?u={quote(uid, safe='')}"


def storefront_affiliate_url(storefront_domain: Optional[str], uid: str) -> Optional[str]:
    """
    Default commerce destination for a token: the storefront catalogue with the
    token as `ref`. Returns None when no storefront domain is configured.
    """

    if not storefront_domain:
        return None
    domain = storefront_domain.strip().rstrip("/")
    if not domain.startswith(("http://", "https://")):
        domain = f"https://{domain}"
    return f"{domain}/collections/all?ref={quote(uid, safe='')}"


@dataclass(frozen=True, slots=True)
class DisplayToken:
    """Immutable view of one `uids` row."""

    token_id: str
    uid: str
    is_claimed: bool = False
    retailer_id: Optional[str] = None
    business_id: Optional[str] = None
    affiliate_url: Optional[str] = None
    claimed_at: Optional[datetime] = None
    claimed_by_user_id: Optional[str] = None
    scan_count: int = 0
    last_scan_at: Optional[datetime] = None
    last_order_at: Optional[datetime] = None
    last_order_total: Optional[Decimal] = None

    def __post_init__(self) -> None:
        for name in ("claimed_at", "last_scan_at", "last_order_at"):
            value = getattr(self, name)
            if value is not None:
                require_utc_timestamp(name, value)

    @property
    def is_redirectable(self) -> bool:
        """True iff the token may send shoppers to its commerce destination."""
        return self.is_claimed and bool(self.affiliate_url)

    def redirect_target(self) -> str:
        return self.affiliate_url if self.is_redirectable else claim_url(self.uid)  # type: ignore[return-value]

    def claimed(
        self,
        *,
        retailer_id: str,
        business_id: Optional[str],
        affiliate_url: Optional[str],
        claimed_at: datetime,
        claimed_by_user_id: Optional[str] = None,
    ) -> "DisplayToken":
        """
        Return a new token bound to a retailer.

        Raises:
            ValueError: if the token is already claimed.
        """

        require_utc_timestamp("claimed_at", claimed_at)
        if self.is_claimed:
            raise ValueError(f"UID {self.uid} is already claimed")
        if not retailer_id:
            raise ValueError("retailer_id is required to claim a UID")

        return replace(
            self,
            is_claimed=True,
            retailer_id=retailer_id,
            business_id=business_id,
            affiliate_url=affiliate_url,
            claimed_at=claimed_at,
            claimed_by_user_id=claimed_by_user_id,
        )


__all__ = ["DisplayToken", "claim_url", "storefront_affiliate_url"]
