"""
Fragrance Tracker Backend: Daily Wear Repository
=================================================

What:  Queries over `daily_wear` and `daily_wear_entries`.
Who:   CalendarService.
"""

import uuid
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.models.daily_wear import DailyWear, DailyWearEntry


class DailyWearRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, wear_id: uuid.UUID, user_id: str) -> Optional[DailyWear]:
        result = await self.session.execute(
            select(DailyWear).where(DailyWear.id == wear_id, DailyWear.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_by_date(self, user_id: str, wear_date: date) -> Optional[DailyWear]:
        result = await self.session.execute(
            select(DailyWear).where(DailyWear.user_id == user_id, DailyWear.date == wear_date)
        )
        return result.scalar_one_or_none()

    async def list_between(
        self,
        user_id: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[DailyWear]:
        """Wear days in [start, end], newest first. Open bounds when None."""
        query = select(DailyWear).where(DailyWear.user_id == user_id)
        if start is not None:
            query = query.where(DailyWear.date >= start)
        if end is not None:
            query = query.where(DailyWear.date <= end)
        result = await self.session.execute(query.order_by(DailyWear.date.desc()))
        return list(result.scalars().all())

    async def list_entry_dates(
        self,
        user_id: str,
        start: date,
        end: date,
        fragrance_id: Optional[uuid.UUID] = None,
    ) -> List[Tuple[uuid.UUID, date]]:
        """(fragrance_id, wear date) pairs for statistics, oldest first."""
        query = (
            select(DailyWearEntry.fragrance_id, DailyWear.date)
            .join(DailyWear, DailyWear.id == DailyWearEntry.daily_wear_id)
            .where(
                DailyWear.user_id == user_id,
                DailyWear.date >= start,
                DailyWear.date <= end,
            )
        )
        if fragrance_id is not None:
            query = query.where(DailyWearEntry.fragrance_id == fragrance_id)
        result = await self.session.execute(query.order_by(DailyWear.date.asc()))
        return [(row[0], row[1]) for row in result.all()]

    async def add(self, wear: DailyWear) -> DailyWear:
        self.session.add(wear)
        await self.session.flush()
        return wear

    async def delete(self, wear: DailyWear) -> None:
        await self.session.delete(wear)
        await self.session.flush()
