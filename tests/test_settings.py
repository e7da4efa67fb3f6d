"""
Tests for `services/settings.py`.
"""

from __future__ import annotations

import pytest

from services.settings import PRODUCTION_RAIL_URL, SANDBOX_RAIL_URL, load_settings, rail_base_url

ENV = {
    "SUPABASE_URL": "https://project.supabase.co",
    "SUPABASE_SERVICE_ROLE_KEY": "service-role",
    "SHOPIFY_WEBHOOK_SECRET": "shopify",
    "SUPABASE_WEBHOOK_SECRET": "hook",
    "DWOLLA_KEY": "key",
    "DWOLLA_SECRET": "secret",
    "DWOLLA_MASTER_FUNDING_SOURCE": "master",
}


def test_load_settings_defaults() -> None:
    settings = load_settings(ENV)

    assert settings.supabase_key == "service-role"
    assert settings.dwolla_base_url == SANDBOX_RAIL_URL
    assert settings.default_vendor_name == "Pawpaya"
    assert settings.shopify_domain is None
    assert not settings.is_production


def test_load_settings_optional_values() -> None:
    env = dict(
        ENV,
        DWOLLA_ENV="production",
        NEXT_PUBLIC_SHOPIFY_DOMAIN="shop.example.com",
        DEFAULT_VENDOR_NAME="Acme",
        APP_ENV="Production",
    )

    settings = load_settings(env)

    assert settings.dwolla_base_url == PRODUCTION_RAIL_URL
    assert settings.shopify_domain == "shop.example.com"
    assert settings.default_vendor_name == "Acme"
    assert settings.is_production


def test_supabase_key_fallback() -> None:
    env = {k: v for k, v in ENV.items() if k != "SUPABASE_SERVICE_ROLE_KEY"}
    env["SUPABASE_KEY"] = "anon-or-service"

    assert load_settings(env).supabase_key == "anon-or-service"


def test_missing_variables_are_all_reported() -> None:
    env = {k: v for k, v in ENV.items() if k not in ("DWOLLA_KEY", "SUPABASE_URL")}

    with pytest.raises(RuntimeError) as excinfo:
        load_settings(env)

    assert "DWOLLA_KEY" in str(excinfo.value)
    assert "SUPABASE_URL" in str(excinfo.value)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, SANDBOX_RAIL_URL),
        ("sandbox", SANDBOX_RAIL_URL),
        ("https://api-sandbox.dwolla.com", SANDBOX_RAIL_URL),
        ("https://api.dwolla.com/", PRODUCTION_RAIL_URL),
        ("production", PRODUCTION_RAIL_URL),
        ("something-else", SANDBOX_RAIL_URL),
    ],
)
def test_rail_base_url(value, expected) -> None:
    assert rail_base_url(value) == expected
