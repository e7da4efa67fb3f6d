"""
Bank account linking for payout recipients.

A retailer links a bank account once: a receive-only customer is created on
the payment rail (or reused), the Plaid processor token becomes a funding
source on that customer, and both ids are stored in `retailer_accounts` where
payout execution looks them up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from domain.errors import NotFoundError, ValidationError
from domain.retailer import AccountOwner
from repositories.funding_source_repository import FundingSourceRepository
from repositories.retailer_repository import RetailerRepository
from services.audit import AuditLogger
from services.auth_service import Actor
from services.payment_rail import PaymentRailClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LinkedBankAccount:
    retailer_id: str
    customer_id: str
    funding_source_id: str
    bank_name: str


class BankAccountService:
    def __init__(
        self,
        *,
        retailers: RetailerRepository,
        funding_sources: FundingSourceRepository,
        rail: PaymentRailClient,
        audit: AuditLogger,
    ) -> None:
        self._retailers = retailers
        self._funding_sources = funding_sources
        self._rail = rail
        self._audit = audit

    def link_retailer_account(
        self,
        actor: Actor,
        *,
        processor_token: str,
        bank_name: Optional[str] = None,
    ) -> LinkedBankAccount:
        if not processor_token:
            raise ValidationError("Missing processor token")

        retailer = self._retailers.find_by_created_by_user(actor.user_id)
        if retailer is None:
            raise NotFoundError("Retailer not found")

        email = retailer.email or actor.email
        if not email:
            raise ValidationError("Retailer email required to receive payouts")

        owner = AccountOwner.retailer(retailer.retailer_id)
        token = self._rail.get_token()

        customer_id = self._funding_sources.get_customer_id(owner)
        if customer_id is None:
            customer_id = self._rail.create_customer(
                token,
                first_name=retailer.name or "Retailer",
                last_name="Account",
                email=email,
                business_name=retailer.name,
            )
            logger.info("Created payout customer for retailer %s", retailer.retailer_id)

        name = bank_name or "Bank Account"
        funding_source_id = self._rail.create_funding_source(
            token,
            customer_id=customer_id,
            plaid_processor_token=processor_token,
            name=name,
        )
        self._funding_sources.save(
            owner,
            customer_id=customer_id,
            funding_source_id=funding_source_id,
            bank_name=name,
        )
        self._audit.log_event(
            actor.user_id,
            "bank_account_linked",
            {"retailer_id": retailer.retailer_id, "funding_source_id": funding_source_id},
        )
        return LinkedBankAccount(
            retailer_id=retailer.retailer_id,
            customer_id=customer_id,
            funding_source_id=funding_source_id,
            bank_name=name,
        )


__all__ = ["BankAccountService", "LinkedBankAccount"]
