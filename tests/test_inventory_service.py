"""
Fragrance Tracker Backend: Inventory Service Tests
===================================================

What:  Ledger creation, usage accounting, corrective edits, low-stock alerts
       and live estimates against a real (temporary) SQLite database.

What we test:
    ✅ 5 sprays on an 80% 100ml bottle leave 79.5%
    ✅ Usage never drives the level below zero
    ✅ Disabled tracking logs the event but keeps the level
    ✅ Duplicate ledger creation is a conflict and writes nothing
    ✅ Low-stock alerts: owned only, at or below threshold, most urgent first
    ✅ Estimates: baseline, per-usage-day average, idempotence
    ✅ Concurrent usage on one bottle loses no decrement
"""

import asyncio
import random
import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import func, select

from fragrance_tracker.config import settings
from fragrance_tracker.exceptions import AlreadyExistsError, NotFoundError
from fragrance_tracker.models import InventoryRecord, UsageEvent
from fragrance_tracker.repositories import InventoryRepository, UsageEventRepository
from fragrance_tracker.schemas.inventory import InventoryCreate, InventoryUpdate, UsageRecord
from fragrance_tracker.services.inventory_service import InventoryService

DEFAULT_USER = settings.default_user_id


async def _event_count(db, fragrance_id) -> int:
    result = await db.execute(
        select(func.count(UsageEvent.id)).where(UsageEvent.fragrance_id == fragrance_id)
    )
    return result.scalar()


class TestInventoryCreate:

    def setup_method(self):
        self.service = InventoryService()

    @pytest.mark.asyncio
    async def test_create_sets_defaults_and_estimate(self, db, make_fragrance):
        fragrance = await make_fragrance(db)

        record = await self.service.create(
            db,
            InventoryCreate(
                fragrance_id=fragrance.id,
                bottle_size_ml=100,
                purchase_date=date(2025, 12, 1),
                current_level_percent=50,
            ),
            user_id=DEFAULT_USER,
        )

        assert record.current_level_percent == 50
        assert record.low_threshold_percent == 20
        assert record.usage_tracking_enabled is True
        # No usage yet: 50ml at the 0.5ml/day baseline
        assert record.estimated_days_remaining == 100

    @pytest.mark.asyncio
    async def test_create_for_unknown_fragrance_raises_not_found(self, db):
        with pytest.raises(NotFoundError):
            await self.service.create(
                db,
                InventoryCreate(
                    fragrance_id=uuid.uuid4(),
                    bottle_size_ml=100,
                    purchase_date=date(2025, 12, 1),
                ),
            )

    @pytest.mark.asyncio
    async def test_create_for_another_users_fragrance_raises_not_found(self, db, make_fragrance):
        fragrance = await make_fragrance(db, user_id="someone-else")

        with pytest.raises(NotFoundError):
            await self.service.create(
                db,
                InventoryCreate(
                    fragrance_id=fragrance.id,
                    bottle_size_ml=100,
                    purchase_date=date(2025, 12, 1),
                ),
                user_id=DEFAULT_USER,
            )

    @pytest.mark.asyncio
    async def test_duplicate_create_conflicts_without_mutation(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        existing = await make_inventory(db, fragrance, level=80)

        with pytest.raises(AlreadyExistsError):
            await self.service.create(
                db,
                InventoryCreate(
                    fragrance_id=fragrance.id,
                    bottle_size_ml=50,
                    purchase_date=date(2025, 12, 1),
                    current_level_percent=100,
                ),
            )

        count = await db.execute(
            select(func.count(InventoryRecord.id)).where(InventoryRecord.fragrance_id == fragrance.id)
        )
        assert count.scalar() == 1
        assert existing.current_level_percent == 80
        assert existing.bottle_size_ml == 100


class TestUsageAccounting:

    def setup_method(self):
        self.service = InventoryService()

    @pytest.mark.asyncio
    async def test_five_sprays_drain_half_a_percent(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=100, level=80)

        record = await self.service.record_usage(
            db, UsageRecord(fragrance_id=fragrance.id, spray_count=5)
        )

        assert record.current_level_percent == pytest.approx(79.5)
        events = await UsageEventRepository(db).list_between(fragrance.id, date.min, date.max)
        assert len(events) == 1
        assert events[0].estimated_usage_ml == pytest.approx(0.5)
        assert events[0].date == date.today()

    @pytest.mark.asyncio
    async def test_explicit_millilitres_are_used(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=50, level=100)

        record = await self.service.record_usage(
            db,
            UsageRecord(fragrance_id=fragrance.id, spray_count=1, estimated_usage_ml=5),
        )

        assert record.current_level_percent == pytest.approx(90)

    @pytest.mark.asyncio
    async def test_level_is_clamped_at_zero(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=10, level=1)

        record = await self.service.record_usage(
            db,
            UsageRecord(fragrance_id=fragrance.id, spray_count=10, estimated_usage_ml=3),
        )

        assert record.current_level_percent == 0
        assert record.estimated_days_remaining == 0

    @pytest.mark.asyncio
    async def test_disabled_tracking_keeps_level_but_logs_event(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, level=60, tracking=False)

        record = await self.service.record_usage(
            db, UsageRecord(fragrance_id=fragrance.id, spray_count=8)
        )

        assert record.current_level_percent == 60
        assert await _event_count(db, fragrance.id) == 1

    @pytest.mark.asyncio
    async def test_usage_without_ledger_is_not_found_and_not_logged(self, db, make_fragrance):
        fragrance = await make_fragrance(db)

        with pytest.raises(NotFoundError):
            await self.service.record_usage(
                db, UsageRecord(fragrance_id=fragrance.id, spray_count=3)
            )

        assert await _event_count(db, fragrance.id) == 0

    @pytest.mark.asyncio
    async def test_apply_usage_without_ledger_raises(self, db, make_fragrance):
        fragrance = await make_fragrance(db)

        with pytest.raises(NotFoundError):
            await self.service.apply_usage(db, fragrance.id, 0.5)

    @pytest.mark.asyncio
    async def test_usage_refreshes_estimate(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=100, level=51)

        record = await self.service.record_usage(
            db,
            UsageRecord(fragrance_id=fragrance.id, spray_count=10, estimated_usage_ml=1.0),
        )

        # 50ml left, 1ml on one usage day
        assert record.current_level_percent == pytest.approx(50)
        assert record.estimated_days_remaining == 50


class TestConcurrentUsage:

    def setup_method(self):
        self.service = InventoryService()

    async def _seed(self, session_factory, make_fragrance, make_inventory, level):
        async with session_factory() as session:
            fragrance = await make_fragrance(session)
            await make_inventory(session, fragrance, bottle_size_ml=100, level=level)
            await session.commit()
        return fragrance.id

    @pytest.mark.asyncio
    async def test_parallel_sessions_lose_no_decrement(self, session_factory, make_fragrance, make_inventory):
        fragrance_id = await self._seed(session_factory, make_fragrance, make_inventory, level=80)

        async def use_one_millilitre():
            async with session_factory() as session:
                await self.service.apply_usage(session, fragrance_id, 1.0)
                await session.commit()

        await asyncio.gather(*(use_one_millilitre() for _ in range(5)))

        async with session_factory() as session:
            record = await InventoryRepository(session).get(fragrance_id)
        assert record.current_level_percent == pytest.approx(75)

    @pytest.mark.asyncio
    async def test_random_usage_keeps_level_in_range(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=30, level=100)
        rng = random.Random(20260301)

        for _ in range(60):
            record = await self.service.apply_usage(db, fragrance.id, rng.uniform(0.01, 4.0))
            assert 0 <= record.current_level_percent <= 100

        assert record.current_level_percent == 0
        assert record.estimated_days_remaining == 0


class TestEditRecord:

    def setup_method(self):
        self.service = InventoryService()

    @pytest.mark.asyncio
    async def test_level_correction_recomputes_estimate(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, level=100, estimate=200)

        record = await self.service.edit_record(
            db, fragrance.id, InventoryUpdate(current_level_percent=25)
        )

        assert record.current_level_percent == 25
        assert record.estimated_days_remaining == 50

    @pytest.mark.asyncio
    async def test_threshold_edit_keeps_level(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, level=30)

        record = await self.service.edit_record(
            db, fragrance.id, InventoryUpdate(low_threshold_percent=35)
        )

        assert record.low_threshold_percent == 35
        assert record.current_level_percent == 30
        assert record.is_low

    @pytest.mark.asyncio
    async def test_opened_date_can_be_cleared(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        record = await make_inventory(db, fragrance)
        record.opened_date = date(2026, 1, 1)
        await db.flush()

        record = await self.service.edit_record(
            db, fragrance.id, InventoryUpdate.model_validate({"opened_date": None})
        )

        assert record.opened_date is None

    @pytest.mark.asyncio
    async def test_edit_missing_record_raises(self, db):
        with pytest.raises(NotFoundError):
            await self.service.edit_record(db, uuid.uuid4(), InventoryUpdate(current_level_percent=10))


class TestLowStock:

    def setup_method(self):
        self.service = InventoryService()

    @pytest.mark.asyncio
    async def test_only_fragrances_at_or_below_threshold(self, db, make_fragrance, make_inventory):
        low = await make_fragrance(db, name="Sauvage", brand="Dior")
        full = await make_fragrance(db, name="Aventus", brand="Creed")
        await make_inventory(db, low, level=10, threshold=20)
        await make_inventory(db, full, level=50, threshold=20)

        alerts = await self.service.list_low_stock(db, DEFAULT_USER)

        assert [alert.fragrance_id for alert in alerts] == [low.id]
        assert alerts[0].name == "Sauvage"
        assert alerts[0].brand == "Dior"
        assert alerts[0].current_level == 10
        assert alerts[0].low_threshold == 20

    @pytest.mark.asyncio
    async def test_level_equal_to_threshold_is_low(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, level=20, threshold=20)

        alerts = await self.service.list_low_stock(db, DEFAULT_USER)

        assert len(alerts) == 1

    @pytest.mark.asyncio
    async def test_most_urgent_first(self, db, make_fragrance, make_inventory):
        a = await make_fragrance(db, name="A")
        b = await make_fragrance(db, name="B")
        await make_inventory(db, a, level=15)
        await make_inventory(db, b, level=5)

        alerts = await self.service.list_low_stock(db, DEFAULT_USER)

        assert [alert.name for alert in alerts] == ["B", "A"]

    @pytest.mark.asyncio
    async def test_excludes_wishlist_and_other_users(self, db, make_fragrance, make_inventory):
        wishlist = await make_fragrance(db, list_type="wishlist")
        foreign = await make_fragrance(db, user_id="someone-else")
        await make_inventory(db, wishlist, level=5)
        await make_inventory(db, foreign, level=5)

        assert await self.service.list_low_stock(db, DEFAULT_USER) == []


class TestEstimates:

    def setup_method(self):
        self.service = InventoryService()

    @pytest.mark.asyncio
    async def test_average_over_usage_days(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=100, level=50)
        repo = UsageEventRepository(db)
        today = date(2026, 3, 15)
        await repo.append(fragrance.id, 3, today - timedelta(days=4), estimated_usage_ml=0.3)
        await repo.append(fragrance.id, 5, today - timedelta(days=2), estimated_usage_ml=0.5)

        days = await self.service.estimate_remaining_days(db, fragrance.id, today=today)

        assert days == 125

    @pytest.mark.asyncio
    async def test_no_usage_in_window_uses_baseline(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=100, level=50)
        today = date(2026, 3, 15)
        await UsageEventRepository(db).append(fragrance.id, 10, today - timedelta(days=45))

        days = await self.service.estimate_remaining_days(db, fragrance.id, today=today)

        assert days == 100

    @pytest.mark.asyncio
    async def test_untracked_fragrance_estimates_zero(self, db, make_fragrance):
        fragrance = await make_fragrance(db)

        assert await self.service.estimate_remaining_days(db, fragrance.id) == 0

    @pytest.mark.asyncio
    async def test_repeated_estimates_are_stable(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=75, level=64.2)
        await UsageEventRepository(db).append(fragrance.id, 4, date.today())

        first = await self.service.estimate_remaining_days(db, fragrance.id)
        second = await self.service.estimate_remaining_days(db, fragrance.id)

        assert first == second

    @pytest.mark.asyncio
    async def test_refresh_estimate_reports_change_once(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, bottle_size_ml=100, level=50, estimate=7)

        assert await self.service.refresh_estimate(db, fragrance.id) is True
        assert await self.service.refresh_estimate(db, fragrance.id) is False

        record = await self.service.get(db, fragrance.id)
        assert record.estimated_days_remaining == 100

    @pytest.mark.asyncio
    async def test_status_reports_last_use(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance, level=15)
        await UsageEventRepository(db).append(fragrance.id, 2, date(2026, 2, 1))
        await UsageEventRepository(db).append(fragrance.id, 2, date(2026, 2, 9))

        status = await self.service.get_status(db, fragrance.id)

        assert status.is_low is True
        assert status.current_level == 15
        assert status.last_used == date(2026, 2, 9)
