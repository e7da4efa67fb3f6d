"""
Supabase client construction and shared response handling.

This module contains *only* the database connection setup. The client is
created once at process start (see `services.container`) and handed to each
repository; nothing here holds a module-level connection.
"""

from __future__ import annotations

from typing import Any, List, Mapping

from postgrest.exceptions import APIError
# The dependency is `supabase` (supabase-py). If your editor can't resolve it,
# install it in your environment: `pip install supabase`.
from supabase import Client, create_client  # type: ignore[import-not-found]

# Postgres SQLSTATE for unique_violation.
UNIQUE_VIOLATION = "23505"


def create_supabase_client(url: str, key: str) -> Client:
    """
    Build the Supabase client used by every repository.

    Use the service-role key: webhooks and payouts write across retailers and
    are not subject to row-level security.
    """

    if not url:
        raise RuntimeError("Missing Supabase URL. Set SUPABASE_URL to your Supabase project URL.")
    if not key:
        raise RuntimeError("Missing Supabase key. Set SUPABASE_SERVICE_ROLE_KEY to your service-role key.")
    return create_client(url, key)


def rows_or_raise(response: Any, action: str) -> List[Mapping[str, Any]]:
    """
    Return the rows of a PostgREST response, raising if it carries an error.

    supabase-py normally raises `APIError` itself; older clients return the
    error on the response object instead.
    """

    error = getattr(response, "error", None)
    if error:
        raise RuntimeError(f"Failed to {action}: {error}")

    data = getattr(response, "data", None)
    if data is None:
        return []
    if isinstance(data, Mapping):
        return [data]
    return list(data)


def first_or_none(response: Any, action: str) -> Mapping[str, Any] | None:
    rows = rows_or_raise(response, action)
    return rows[0] if rows else None


def is_unique_violation(error: APIError) -> bool:
    return str(getattr(error, "code", "") or "") == UNIQUE_VIOLATION


__all__ = [
    "Client",
    "create_supabase_client",
    "rows_or_raise",
    "first_or_none",
    "is_unique_violation",
    "UNIQUE_VIOLATION",
]
