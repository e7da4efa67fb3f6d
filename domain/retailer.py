"""
Domain: Retailers, businesses and payout parties.

A retailer is a store that hosts displays. It may belong to a business (the
owning company) and may have been recruited by a sourcer, who then shares in
the retailer's sales.

`AccountOwner` is the tagged variant naming who a bank funding source belongs
to; the funding-source repository maps each kind to its own table.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Business:
    business_id: str
    name: Optional[str] = None
    is_connected: bool = False
    connected_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.connected_at is not None:
            require_utc_timestamp("connected_at", self.connected_at)


@dataclass(frozen=True, slots=True)
class Retailer:
    """
    Retailer (store) account.

    Created either by an admin as an unconverted prospect or by self-service
    registration; never hard-deleted.
    """

    retailer_id: str
    name: Optional[str] = None
    business_id: Optional[str] = None
    sourcer_id: Optional[str] = None
    created_by_user_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    converted: bool = False
    onboarding_completed: bool = False
    priority_display_active: bool = False
    express_shipping: bool = False


class PartyRole(str, Enum):
    """Parties that can receive a cut of an order."""

    VENDOR = "vendor"
    RETAILER = "retailer"
    SOURCER = "sourcer"


# Transfer issuance order within one payout job.
PAYOUT_ORDER = (PartyRole.VENDOR, PartyRole.RETAILER, PartyRole.SOURCER)


@dataclass(frozen=True, slots=True)
class AccountOwner:
    """Owner of a funding source: one party role plus that party's id."""

    role: PartyRole
    owner_id: str

    @classmethod
    def vendor(cls, owner_id: str) -> "AccountOwner":
        return cls(PartyRole.VENDOR, owner_id)

    @classmethod
    def retailer(cls, owner_id: str) -> "AccountOwner":
        return cls(PartyRole.RETAILER, owner_id)

    @classmethod
    def sourcer(cls, owner_id: str) -> "AccountOwner":
        return cls(PartyRole.SOURCER, owner_id)


__all__ = ["Business", "Retailer", "PartyRole", "PAYOUT_ORDER", "AccountOwner"]
