"""
Fragrance Tracker Backend: Schema Tests
========================================

What:  Table-level guarantees that do not depend on the service layer:
       portable server defaults and the constraints the services rely on.
"""

from datetime import date

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError
from sqlalchemy.schema import CreateTable

from fragrance_tracker.models import DailyWear, DailyWearEntry, InventoryRecord


def _ddl(model, dialect) -> str:
    return str(CreateTable(model.__table__).compile(dialect=dialect))


class TestServerDefaults:

    def test_tracking_flag_default_is_a_boolean_on_postgresql(self):
        ddl = _ddl(InventoryRecord, postgresql.dialect())
        assert "usage_tracking_enabled BOOLEAN DEFAULT true NOT NULL" in ddl


class TestConstraints:

    @pytest.mark.asyncio
    async def test_a_fragrance_appears_once_per_wear_day(self, db, make_fragrance):
        fragrance = await make_fragrance(db)
        wear = DailyWear(user_id="alice", date=date(2026, 3, 1), entries=[])
        db.add(wear)
        await db.flush()

        db.add_all(
            [
                DailyWearEntry(daily_wear_id=wear.id, fragrance_id=fragrance.id, spray_count=2),
                DailyWearEntry(daily_wear_id=wear.id, fragrance_id=fragrance.id, spray_count=3),
            ]
        )

        with pytest.raises(IntegrityError):
            await db.flush()

    @pytest.mark.asyncio
    async def test_same_fragrance_on_two_days_is_fine(self, db, make_fragrance):
        fragrance = await make_fragrance(db)
        for day in (1, 2):
            db.add(
                DailyWear(
                    user_id="alice",
                    date=date(2026, 3, day),
                    entries=[DailyWearEntry(fragrance_id=fragrance.id, spray_count=2)],
                )
            )

        await db.flush()
