"""
Tests for `services/leaderboard_service.py` and `domain/leaderboard.py`.

Covers contract rules:
- Slices are keyed by (UTC date, retailer) and only grow.
- No retailer -> no-op; duplicate event keys are applied once.
- Storage failures are logged, never raised; a failed event can be applied again.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from domain.leaderboard import LeaderboardIncrement
from repositories.leaderboard_repository import LeaderboardRepository
from services.leaderboard_service import LeaderboardService


def _service(supabase) -> LeaderboardService:
    return LeaderboardService(LeaderboardRepository(supabase))


def test_period_is_utc_date(supabase) -> None:
    late_evening_new_york = datetime(2025, 2, 3, 21, 0, tzinfo=timezone(timedelta(hours=-5)))

    updated = _service(supabase).record("R1", scans=1, event_at=late_evening_new_york)

    assert updated.period == "2025-02-04"


def test_increments_accumulate(supabase) -> None:
    service = _service(supabase)
    at = datetime(2025, 2, 3, tzinfo=timezone.utc)

    service.record("R1", orders=1, revenue=Decimal("10.00"), event_at=at)
    updated = service.record("R1", orders=1, revenue=Decimal("5.50"), event_at=at)

    assert (updated.order_count, updated.revenue_total) == (2, Decimal("15.50"))
    assert len(supabase.rows("leaderboards")) == 1


def test_duplicate_event_key_is_applied_once(supabase) -> None:
    service = _service(supabase)

    assert service.record("R1", event_key="scans:1", scans=1) is not None
    assert service.record("R1", event_key="scans:1", scans=1) is None
    assert supabase.rows("leaderboards")[0]["scan_count"] == 1


def test_without_retailer_nothing_is_written(supabase) -> None:
    assert _service(supabase).record(None, scans=1) is None
    assert supabase.rows("leaderboards") == []


def test_storage_failure_is_swallowed(supabase) -> None:
    supabase.fail("leaderboards", "select")

    assert _service(supabase).record("R1", scans=1) is None


def test_negative_increment_is_rejected() -> None:
    with pytest.raises(ValueError):
        LeaderboardIncrement(period="2025-01-01", retailer_id="R1", scans=-1)


def test_failed_increment_is_applied_on_redelivery(supabase) -> None:
    service = _service(supabase)
    supabase.fail("leaderboards", "upsert")

    assert service.record("R1", event_key="orders:1", orders=1, revenue=Decimal("10.00")) is None
    assert supabase.rows("leaderboard_events") == []

    supabase.recover("leaderboards", "upsert")
    updated = service.record("R1", event_key="orders:1", orders=1, revenue=Decimal("10.00"))

    assert (updated.order_count, updated.revenue_total) == (1, Decimal("10.00"))
