"""
Runtime configuration.

Settings are read from environment variables once at process start. A `.env`
file at the project root is loaded first, so local development needs no
exported variables.

Environment variables required:
- SUPABASE_URL: Supabase project URL
- SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_KEY): server-side Supabase key
- SHOPIFY_WEBHOOK_SECRET: shared secret signing storefront order webhooks
- SUPABASE_WEBHOOK_SECRET: shared secret sent by database-change webhooks
- DWOLLA_KEY / DWOLLA_SECRET: payment rail client credentials
- DWOLLA_MASTER_FUNDING_SOURCE: platform funding source every payout is drawn from

Optional:
- DWOLLA_ENV: payment rail base URL (defaults to the sandbox)
- SHOPIFY_DOMAIN: storefront domain used to build affiliate URLs
- DEFAULT_VENDOR_NAME: vendor credited with storefront orders (default: Pawpaya)
- APP_ENV: "production" hides internal error details from API responses
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

SANDBOX_RAIL_URL = "https://api-sandbox.dwolla.com"
PRODUCTION_RAIL_URL = "https://api.dwolla.com"

_ENV_PATH = Path(__file__).parent.parent / ".env"


def rail_base_url(value: Optional[str]) -> str:
    """
    Normalize DWOLLA_ENV into a base URL.

    Accepts "sandbox", "production" or a full URL; anything unrecognized falls
    back to the sandbox so a misconfiguration can never move real money.
    """

    if not value:
        return SANDBOX_RAIL_URL
    text = value.strip().rstrip("/")
    if text == "production" or text == PRODUCTION_RAIL_URL:
        return PRODUCTION_RAIL_URL
    return SANDBOX_RAIL_URL


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: str
    supabase_key: str
    shopify_webhook_secret: str
    supabase_webhook_secret: str
    dwolla_key: str
    dwolla_secret: str
    dwolla_master_funding_source: str
    dwolla_base_url: str = SANDBOX_RAIL_URL
    shopify_domain: Optional[str] = None
    default_vendor_name: str = "Pawpaya"
    app_env: str = "development"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


_REQUIRED = {
    "supabase_url": ("SUPABASE_URL",),
    "supabase_key": ("SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_KEY"),
    "shopify_webhook_secret": ("SHOPIFY_WEBHOOK_SECRET",),
    "supabase_webhook_secret": ("SUPABASE_WEBHOOK_SECRET",),
    "dwolla_key": ("DWOLLA_KEY",),
    "dwolla_secret": ("DWOLLA_SECRET",),
    "dwolla_master_funding_source": ("DWOLLA_MASTER_FUNDING_SOURCE",),
}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment.

    Raises:
        RuntimeError: listing every missing required variable
    """

    if environ is None:
        load_dotenv(dotenv_path=_ENV_PATH)
        environ = os.environ

    values: dict[str, str] = {}
    missing = []
    for field_name, names in _REQUIRED.items():
        value = next((environ[name] for name in names if environ.get(name)), None)
        if value is None:
            missing.append(" or ".join(names))
        else:
            values[field_name] = value

    if missing:
        raise RuntimeError(
            "Missing environment variables: " + ", ".join(missing) + ". "
            "Set them in the environment or in the project's .env file."
        )

    return Settings(
        **values,
        dwolla_base_url=rail_base_url(environ.get("DWOLLA_ENV")),
        shopify_domain=environ.get("SHOPIFY_DOMAIN") or environ.get("NEXT_PUBLIC_SHOPIFY_DOMAIN") or None,
        default_vendor_name=environ.get("DEFAULT_VENDOR_NAME") or "Pawpaya",
        app_env=environ.get("APP_ENV") or "development",
    )


__all__ = ["Settings", "load_settings", "rail_base_url", "SANDBOX_RAIL_URL", "PRODUCTION_RAIL_URL"]
