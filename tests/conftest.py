"""
Pytest configuration.

Adds the project root to the Python path so tests can import the domain,
repositories, services and api packages, and provides the shared fixtures:
an in-memory Supabase double, a fake payment rail, settings, the wired
service container and a FastAPI test client.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fakes import FakePaymentRail, FakeSupabase  # noqa: E402
from services.container import build_services  # noqa: E402
from services.settings import Settings  # noqa: E402

SHOPIFY_SECRET = "shopify-test-secret"
SUPABASE_HOOK_SECRET = "supabase-hook-secret"
MASTER_FUNDING_SOURCE = "master-funding-source"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://project.supabase.co",
        supabase_key="service-role-key",
        shopify_webhook_secret=SHOPIFY_SECRET,
        supabase_webhook_secret=SUPABASE_HOOK_SECRET,
        dwolla_key="key",
        dwolla_secret="secret",
        dwolla_master_funding_source=MASTER_FUNDING_SOURCE,
        shopify_domain="shop.example.com",
    )


@pytest.fixture
def supabase() -> FakeSupabase:
    db = FakeSupabase()
    db.seed("vendors", id="vendor-1", name="Pawpaya")
    return db


@pytest.fixture
def rail() -> FakePaymentRail:
    return FakePaymentRail()


@pytest.fixture
def container(settings, supabase, rail):
    return build_services(settings, supabase, rail)


@pytest.fixture
def api_client(container):
    from fastapi.testclient import TestClient

    from api.main import create_app

    return TestClient(create_app(container))
