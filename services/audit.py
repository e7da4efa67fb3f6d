"""
Audit trail for business events.

Events go to the append-only `logs` table. Writing the audit trail must never
break the operation being audited, so failures are logged and dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from domain.time import utc_now
from repositories.audit_log_repository import AuditLogRepository

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"


class AuditLogger:
    def __init__(self, repository: AuditLogRepository) -> None:
        self._repository = repository

    def log_event(self, actor: Optional[str], action: str, metadata: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Record an event performed by `actor` (a user id or a component name).

        Returns:
            True if the event was stored
        """

        try:
            self._repository.append(
                actor=actor or SYSTEM_ACTOR,
                action=action,
                metadata=dict(metadata or {}),
                timestamp=utc_now(),
            )
        except Exception:
            logger.exception("Failed to write audit event", extra={"action": action, "actor": actor})
            return False
        return True


__all__ = ["AuditLogger", "SYSTEM_ACTOR"]
