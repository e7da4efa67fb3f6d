"""
Leaderboard repository (persistence).

Slices live in `leaderboards`, unique on (period, retailer_id). Each source
event (an order or scan row) is applied at most once: its key is first written
to `leaderboard_events`, whose primary key rejects a second delivery. A key
whose increment could not be applied is released again.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from postgrest.exceptions import APIError

from domain.leaderboard import LeaderboardIncrement, LeaderboardSlice
from domain.money import to_amount, to_wire
from domain.time import utc_now
from repositories.client import Client, first_or_none, is_unique_violation, rows_or_raise

_LEADERBOARDS_TABLE: str = "leaderboards"
_LEADERBOARD_EVENTS_TABLE: str = "leaderboard_events"


def _row_to_slice(row: Mapping[str, Any]) -> LeaderboardSlice:
    return LeaderboardSlice(
        period=str(row["period"]),
        retailer_id=str(row["retailer_id"]),
        scan_count=int(row.get("scan_count") or 0),
        order_count=int(row.get("order_count") or 0),
        revenue_total=to_amount(row.get("revenue_total")),
    )


class LeaderboardRepository:
    def __init__(self, client: Client) -> None:
        self._client = client

    def get_slice(self, period: str, retailer_id: str) -> Optional[LeaderboardSlice]:
        response = (
            self._client.table(_LEADERBOARDS_TABLE)
            .select("*")
            .eq("period", period)
            .eq("retailer_id", retailer_id)
            .limit(1)
            .execute()
        )
        row = first_or_none(response, "read leaderboard slice")
        return _row_to_slice(row) if row else None

    def register_event(self, event_key: str) -> bool:
        """
        Record that a source event is being applied.

        Returns:
            False if the event was applied before (duplicate delivery)
        """

        try:
            response = (
                self._client.table(_LEADERBOARD_EVENTS_TABLE)
                .insert({"event_key": event_key, "applied_at": utc_now().isoformat()})
                .execute()
            )
        except APIError as exc:
            if is_unique_violation(exc):
                return False
            raise
        rows_or_raise(response, "register leaderboard event")
        return True

    def release_event(self, event_key: str) -> None:
        """Forget a registered event so a redelivery can apply it again."""

        self._client.table(_LEADERBOARD_EVENTS_TABLE).delete().eq("event_key", event_key).execute()

    def apply(self, increment: LeaderboardIncrement) -> LeaderboardSlice:
        """Add an increment to its slice, creating the slice when missing."""

        current = self.get_slice(increment.period, increment.retailer_id) or LeaderboardSlice(
            period=increment.period, retailer_id=increment.retailer_id
        )
        updated = current.plus(increment)

        response = (
            self._client.table(_LEADERBOARDS_TABLE)
            .upsert(
                {
                    "period": updated.period,
                    "retailer_id": updated.retailer_id,
                    "scan_count": updated.scan_count,
                    "order_count": updated.order_count,
                    "revenue_total": to_wire(updated.revenue_total),
                    "updated_at": utc_now().isoformat(),
                },
                on_conflict="period,retailer_id",
            )
            .execute()
        )
        rows_or_raise(response, "update leaderboard")
        return updated


__all__ = ["LeaderboardRepository"]
