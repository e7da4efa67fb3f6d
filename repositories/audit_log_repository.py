"""
Audit log repository (persistence).

Append-only writes to the `logs` table. Rows are never updated or deleted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping

from domain.time import to_iso_utc
from repositories.client import Client, rows_or_raise

_LOGS_TABLE: str = "logs"


class AuditLogRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def append(self, *, actor: str, action: str, metadata: Mapping[str, Any], timestamp: datetime) -> None:
        response = (
            self._client.table(_LOGS_TABLE)
            .insert(
                {
                    "user_id": actor,
                    "action": action,
                    "metadata": dict(metadata),
                    "timestamp": to_iso_utc(timestamp),
                }
            )
            .execute()
        )
        rows_or_raise(response, "append audit log")


__all__ = ["AuditLogRepository"]
