"""
Webhook event repository (persistence).

Remembers which source rows a webhook side effect has already been applied
for. `webhook_events` has a primary key on `event_key`; the insert that wins
owns the side effect, every later delivery of the same row sees a duplicate.
"""

from __future__ import annotations

from postgrest.exceptions import APIError

from domain.time import utc_now
from repositories.client import Client, is_unique_violation, rows_or_raise

_WEBHOOK_EVENTS_TABLE: str = "webhook_events"


class WebhookEventRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def register(self, event_key: str) -> bool:
        """
        Claim an event key.

        Returns:
            False if the key was registered before (duplicate delivery)
        """

        try:
            response = (
                self._client.table(_WEBHOOK_EVENTS_TABLE)
                .insert({"event_key": event_key, "processed_at": utc_now().isoformat()})
                .execute()
            )
        except APIError as exc:
            if is_unique_violation(exc):
                return False
            raise
        rows_or_raise(response, "register webhook event")
        return True

    def release(self, event_key: str) -> None:
        """Forget a key whose side effect failed, so the sender's retry runs it again."""

        self._client.table(_WEBHOOK_EVENTS_TABLE).delete().eq("event_key", event_key).execute()


__all__ = ["WebhookEventRepository"]
