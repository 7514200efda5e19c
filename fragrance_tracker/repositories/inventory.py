"""
Fragrance Tracker Backend: Inventory Repository
================================================

What:  Persistence operations for the inventory ledger.
Who:   InventoryService and the periodic sweep.

Level decrements never go through read-modify-write in Python. They are one
UPDATE statement with the clamp expressed in SQL, so two concurrent usage
updates against the same bottle both land:

    UPDATE inventory
       SET current_level_percent = CASE WHEN current_level_percent - :d < 0
                                        THEN 0
                                        ELSE current_level_percent - :d END
     WHERE fragrance_id = :fid
"""

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.models.fragrance import Fragrance
from fragrance_tracker.models.inventory import InventoryRecord


class InventoryRepository:
    """Ledger queries bound to one session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self,
        fragrance_id: uuid.UUID,
        for_update: bool = False,
        refresh: bool = False,
    ) -> Optional[InventoryRecord]:
        """
        Load the record for a fragrance, or None when it is not tracked.

        for_update: emit SELECT ... FOR UPDATE (SQLite ignores it, server
                    databases take a row lock until commit)
        refresh:    overwrite any stale instance in the identity map, used
                    after a bulk UPDATE
        """
        query = select(InventoryRecord).where(InventoryRecord.fragrance_id == fragrance_id)
        if for_update:
            query = query.with_for_update()
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def exists(self, fragrance_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            select(InventoryRecord.id).where(InventoryRecord.fragrance_id == fragrance_id)
        )
        return result.first() is not None

    async def add(self, record: InventoryRecord) -> InventoryRecord:
        self.session.add(record)
        await self.session.flush()
        return record

    async def decrement_level(self, fragrance_id: uuid.UUID, percent_delta: float) -> None:
        """Subtract percent_delta from the level atomically, clamping at 0."""
        new_level = InventoryRecord.current_level_percent - percent_delta
        await self.session.execute(
            update(InventoryRecord)
            .where(InventoryRecord.fragrance_id == fragrance_id)
            .values(current_level_percent=case((new_level < 0, 0.0), else_=new_level))
            .execution_options(synchronize_session=False)
        )

    async def list_low_stock(self, user_id: str) -> List[Tuple[InventoryRecord, Fragrance]]:
        """
        Owned fragrances of a user at or below their low threshold.

        Ordered by level ascending; ties keep insertion order of the ledger.
        """
        result = await self.session.execute(
            select(InventoryRecord, Fragrance)
            .join(Fragrance, Fragrance.id == InventoryRecord.fragrance_id)
            .where(
                Fragrance.user_id == user_id,
                Fragrance.list_type == "owned",
                InventoryRecord.current_level_percent <= InventoryRecord.low_threshold_percent,
            )
            .order_by(InventoryRecord.current_level_percent.asc(), InventoryRecord.created_at.asc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def list_tracked_fragrance_ids(self) -> List[uuid.UUID]:
        """Fragrance ids of every record with usage tracking enabled, all users."""
        result = await self.session.execute(
            select(InventoryRecord.fragrance_id)
            .where(InventoryRecord.usage_tracking_enabled.is_(True))
            .order_by(InventoryRecord.created_at.asc())
        )
        return list(result.scalars().all())
