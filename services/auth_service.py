"""
Caller authentication for user-facing endpoints.

The bearer token is a Supabase session JWT; Supabase Auth validates it and
returns the user. Admin endpoints additionally require a row in `admins`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from domain.errors import AuthorizationError
from repositories.admin_repository import AdminRepository
from repositories.client import Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Actor:
    user_id: str
    email: Optional[str] = None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, value = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


class AuthService:
    def __init__(self, client: Client, admins: AdminRepository) -> None:
        self._client = client
        self._admins = admins

    def actor_from_token(self, token: Optional[str]) -> Optional[Actor]:
        """Return the session's user, or None for a missing or invalid token."""

        if not token:
            return None
        try:
            response: Any = self._client.auth.get_user(token)
        except Exception:
            logger.info("Rejected session token", exc_info=True)
            return None

        user = getattr(response, "user", None)
        if user is None or not getattr(user, "id", None):
            return None
        return Actor(user_id=str(user.id), email=getattr(user, "email", None))

    def require_session(self, token: Optional[str]) -> Actor:
        actor = self.actor_from_token(token)
        if actor is None:
            raise AuthorizationError("Authentication required")
        return actor

    def require_admin(self, token: Optional[str]) -> Actor:
        actor = self.require_session(token)
        if not self._admins.is_admin(actor.user_id):
            raise AuthorizationError("Admin privileges required", status_code=403)
        return actor


__all__ = ["Actor", "AuthService", "bearer_token"]
