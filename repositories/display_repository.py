"""
Display repository (persistence).

Physical displays move through shipping queues before they are activated by
the first successful claim for their retailer.
"""

from __future__ import annotations

from typing import List

from repositories.client import Client, rows_or_raise

_DISPLAYS_TABLE: str = "displays"

QUEUED_STATUSES = ("priority_queue", "standard_queue")
ACTIVE_STATUS = "active"


class DisplayRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def activate_queued(self, retailer_id: str) -> List[str]:
        """
        Move every queued display of a retailer to `active`.

        Returns:
            Ids of the displays that were activated (possibly empty)
        """

        response = (
            self._client.table(_DISPLAYS_TABLE)
            .update({"status": ACTIVE_STATUS})
            .eq("retailer_id", retailer_id)
            .in_("status", list(QUEUED_STATUSES))
            .execute()
        )
        rows = rows_or_raise(response, "activate displays")
        return [str(row["id"]) for row in rows if row.get("id") is not None]


__all__ = ["DisplayRepository", "QUEUED_STATUSES", "ACTIVE_STATUS"]
