"""
Admin repository (persistence).

Admins are Supabase auth users listed in the `admins` table by user id.
"""

from __future__ import annotations

from repositories.client import Client, first_or_none

_ADMINS_TABLE: str = "admins"


class AdminRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def is_admin(self, user_id: str) -> bool:
        response = self._client.table(_ADMINS_TABLE).select("id").eq("id", user_id).limit(1).execute()
        return first_or_none(response, "verify admin status") is not None


__all__ = ["AdminRepository"]
