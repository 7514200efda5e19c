"""
Fragrance Tracker Backend: Usage Log Repository
================================================

What:  Append and range-scan operations over `usage_events`.
How:   The log has no update or delete operations; rows leave only
       through the fragrance cascade.
"""

import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.models.usage import SPRAY_TO_ML_RATIO, UsageEvent


class UsageEventRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self,
        fragrance_id: uuid.UUID,
        spray_count: int,
        usage_date: date,
        estimated_usage_ml: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> UsageEvent:
        """
        Add one event to the log.

        A missing or zero `estimated_usage_ml` is derived from the spray count
        so every stored row carries the millilitres it stands for.
        """
        event = UsageEvent(
            fragrance_id=fragrance_id,
            date=usage_date,
            spray_count=spray_count,
            estimated_usage_ml=estimated_usage_ml or spray_count * SPRAY_TO_ML_RATIO,
            notes=notes,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def list_between(
        self,
        fragrance_id: uuid.UUID,
        start: date,
        end: date,
    ) -> List[UsageEvent]:
        """Events for a fragrance with start <= date <= end (idx_usage_events_fragrance_date)."""
        result = await self.session.execute(
            select(UsageEvent)
            .where(
                UsageEvent.fragrance_id == fragrance_id,
                UsageEvent.date >= start,
                UsageEvent.date <= end,
            )
            .order_by(UsageEvent.date.asc(), UsageEvent.created_at.asc())
        )
        return list(result.scalars().all())

    async def last_used(self, fragrance_id: uuid.UUID) -> Optional[date]:
        result = await self.session.execute(
            select(func.max(UsageEvent.date)).where(UsageEvent.fragrance_id == fragrance_id)
        )
        return result.scalar()
