"""
Leaderboard aggregation.

Scan and order events add to the per-day slice of the retailer they belong to.
Updates are best effort: a failure is logged and never propagates to the
webhook that triggered it. Each source event is applied at most once, keyed
by its table and row id, so redelivery cannot double count. An event whose
increment fails is released, so the next delivery applies it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from domain.leaderboard import LeaderboardIncrement, LeaderboardSlice
from domain.money import ZERO
from domain.time import period_key
from repositories.leaderboard_repository import LeaderboardRepository

logger = logging.getLogger(__name__)


class LeaderboardService:
    def __init__(self, repository: LeaderboardRepository) -> None:
        self._repository = repository

    def record(
        self,
        retailer_id: Optional[str],
        *,
        event_key: Optional[str] = None,
        scans: int = 0,
        orders: int = 0,
        revenue: Decimal = ZERO,
        event_at: Optional[datetime] = None,
    ) -> Optional[LeaderboardSlice]:
        """
        Apply an increment to the retailer's slice for the event's day.

        Returns:
            The updated slice, or None when nothing was applied (no retailer,
            duplicate event, or a storage failure)
        """

        if not retailer_id:
            return None

        increment = LeaderboardIncrement(
            period=period_key(event_at),
            retailer_id=retailer_id,
            scans=scans,
            orders=orders,
            revenue=revenue,
        )
        if increment.is_empty:
            return None

        registered = False
        try:
            if event_key is not None:
                if not self._repository.register_event(event_key):
                    logger.info("Leaderboard event %s already applied", event_key)
                    return None
                registered = True
            return self._repository.apply(increment)
        except Exception:
            logger.error(
                "Failed to update leaderboard",
                exc_info=True,
                extra={"retailer_id": retailer_id, "period": increment.period, "event_key": event_key},
            )
            if registered:
                self._release(event_key)  # type: ignore[arg-type]
            return None

    def _release(self, event_key: str) -> None:
        try:
            self._repository.release_event(event_key)
        except Exception:
            logger.error("Failed to release leaderboard event %s; it will not be retried", event_key, exc_info=True)


__all__ = ["LeaderboardService"]
