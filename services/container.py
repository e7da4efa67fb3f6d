"""
Service wiring.

Builds every repository and service around one Supabase client and one payment
rail HTTP client. The API creates the container once at startup and stores it
on `app.state`; tests build one around in-memory doubles.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from repositories.admin_repository import AdminRepository
from repositories.audit_log_repository import AuditLogRepository
from repositories.client import Client, create_supabase_client
from repositories.display_repository import DisplayRepository
from repositories.funding_source_repository import FundingSourceRepository
from repositories.leaderboard_repository import LeaderboardRepository
from repositories.order_repository import OrderRepository
from repositories.payout_job_repository import PayoutJobRepository
from repositories.retailer_repository import BusinessRepository, RetailerRepository, VendorRepository
from repositories.scan_repository import ScanRepository
from repositories.uid_repository import UidRepository
from repositories.webhook_event_repository import WebhookEventRepository
from services.attribution_service import AttributionResolver
from services.audit import AuditLogger
from services.auth_service import AuthService
from services.bank_account_service import BankAccountService
from services.claim_service import ClaimService
from services.database_webhook_service import DatabaseWebhookService
from services.earnings_service import EarningsService
from services.leaderboard_service import LeaderboardService
from services.order_webhook_service import OrderWebhookService
from services.payment_rail import PaymentRailClient
from services.payment_webhook_service import PaymentWebhookService
from services.payout_execution_service import PayoutExecutionService
from services.payout_job_service import PayoutJobService
from services.redirect_service import RedirectService
from services.settings import Settings

# Seconds; the rail is called inside request handlers.
RAIL_TIMEOUT = 15.0


@dataclass
class ServiceContainer:
    settings: Settings
    auth: AuthService
    claims: ClaimService
    redirects: RedirectService
    orders: OrderWebhookService
    payment_events: PaymentWebhookService
    database_events: DatabaseWebhookService
    payouts: PayoutExecutionService
    earnings: EarningsService
    bank_accounts: BankAccountService
    audit: AuditLogger
    http: Optional[httpx.Client] = None

    def close(self) -> None:
        if self.http is not None:
            self.http.close()


def build_services(settings: Settings, client: Client, rail: PaymentRailClient) -> ServiceContainer:
    uids = UidRepository(client)
    retailers = RetailerRepository(client)
    businesses = BusinessRepository(client)
    payout_job_repository = PayoutJobRepository(client)
    funding_sources = FundingSourceRepository(client)

    audit = AuditLogger(AuditLogRepository(client))
    resolver = AttributionResolver(uids, retailers, businesses)
    payout_jobs = PayoutJobService(payout_job_repository)

    return ServiceContainer(
        settings=settings,
        audit=audit,
        auth=AuthService(client, AdminRepository(client)),
        claims=ClaimService(
            uids=uids,
            retailers=retailers,
            businesses=businesses,
            displays=DisplayRepository(client),
            resolver=resolver,
            audit=audit,
            storefront_domain=settings.shopify_domain,
        ),
        redirects=RedirectService(uids, ScanRepository(client)),
        orders=OrderWebhookService(
            orders=OrderRepository(client),
            uids=uids,
            scans=ScanRepository(client),
            retailers=retailers,
            businesses=businesses,
            vendors=VendorRepository(client),
            resolver=resolver,
            payout_jobs=payout_jobs,
            audit=audit,
            default_vendor_name=settings.default_vendor_name,
        ),
        payment_events=PaymentWebhookService(payout_job_repository, audit),
        database_events=DatabaseWebhookService(
            uids=uids,
            retailers=retailers,
            payout_jobs=payout_jobs,
            leaderboard=LeaderboardService(LeaderboardRepository(client)),
            audit=audit,
            events=WebhookEventRepository(client),
        ),
        payouts=PayoutExecutionService(
            jobs=payout_job_repository,
            funding_sources=funding_sources,
            uids=uids,
            rail=rail,
            audit=audit,
            master_funding_source=settings.dwolla_master_funding_source,
        ),
        earnings=EarningsService(retailers, payout_job_repository),
        bank_accounts=BankAccountService(
            retailers=retailers,
            funding_sources=funding_sources,
            rail=rail,
            audit=audit,
        ),
    )


def build_container(settings: Settings) -> ServiceContainer:
    """Create the production clients and wire every service around them."""

    client = create_supabase_client(settings.supabase_url, settings.supabase_key)
    http = httpx.Client(timeout=RAIL_TIMEOUT)
    rail = PaymentRailClient(
        http,
        base_url=settings.dwolla_base_url,
        key=settings.dwolla_key,
        secret=settings.dwolla_secret,
    )
    container = build_services(settings, client, rail)
    container.http = http
    return container


__all__ = ["ServiceContainer", "build_container", "build_services"]
