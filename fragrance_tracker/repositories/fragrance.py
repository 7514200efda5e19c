"""
Fragrance Tracker Backend: Fragrance Repository
================================================

What:  CRUD and filtered listing for the user's fragrance catalog.
Who:   FragranceService, InventoryService (existence checks) and
       CalendarService (name/brand lookups for wear history).

Listing query plan (all filters set):
    SELECT fragrances.*
      FROM fragrances
      LEFT JOIN inventory ON inventory.fragrance_id = fragrances.id
      LEFT JOIN (SELECT fragrance_id, MAX(daily_wear.date) AS last_worn ...) lw
     WHERE user_id = :uid AND brand LIKE :brand AND ...
     ORDER BY <sort column> NULLS LAST
     LIMIT :limit OFFSET (:page - 1) * :limit
"""

import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.models.daily_wear import DailyWear, DailyWearEntry
from fragrance_tracker.models.fragrance import Fragrance
from fragrance_tracker.models.inventory import InventoryRecord

SORT_FIELDS = ("name", "brand", "rating", "created_at", "last_worn")
SORT_ORDERS = ("asc", "desc")


class FragranceRepository:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(
        self,
        fragrance_id: uuid.UUID,
        user_id: Optional[str] = None,
    ) -> Optional[Fragrance]:
        """Fetch by id; when user_id is given, rows owned by others are invisible."""
        query = select(Fragrance).where(Fragrance.id == fragrance_id)
        if user_id is not None:
            query = query.where(Fragrance.user_id == user_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_many(self, fragrance_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Fragrance]:
        ids = list(set(fragrance_ids))
        if not ids:
            return {}
        result = await self.session.execute(select(Fragrance).where(Fragrance.id.in_(ids)))
        return {fragrance.id: fragrance for fragrance in result.scalars().all()}

    async def add(self, fragrance: Fragrance) -> Fragrance:
        self.session.add(fragrance)
        await self.session.flush()
        return fragrance

    async def update(self, fragrance: Fragrance, fields: Dict[str, Any]) -> Fragrance:
        for name, value in fields.items():
            setattr(fragrance, name, value)
        await self.session.flush()
        return fragrance

    async def delete(self, fragrance: Fragrance) -> None:
        # Child rows go through ON DELETE CASCADE
        await self.session.delete(fragrance)
        await self.session.flush()

    async def list(
        self,
        user_id: str,
        brand: Optional[str] = None,
        list_type: Optional[str] = None,
        min_rating: Optional[int] = None,
        max_rating: Optional[int] = None,
        has_low_inventory: Optional[bool] = None,
        search: Optional[str] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Fragrance], int]:
        """
        Return one page of a user's fragrances and the total matching count.

        `has_low_inventory=True` keeps fragrances whose ledger is at or below
        its threshold; `False` keeps everything else (including untracked).
        """
        query = select(Fragrance).where(Fragrance.user_id == user_id)

        if brand:
            query = query.where(Fragrance.brand.ilike(f"%{brand}%"))
        if list_type:
            query = query.where(Fragrance.list_type == list_type)
        if min_rating is not None:
            query = query.where(Fragrance.personal_rating >= min_rating)
        if max_rating is not None:
            query = query.where(Fragrance.personal_rating <= max_rating)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Fragrance.name.ilike(pattern), Fragrance.brand.ilike(pattern)))

        if has_low_inventory is not None:
            query = query.outerjoin(InventoryRecord, InventoryRecord.fragrance_id == Fragrance.id)
            is_low = and_(
                InventoryRecord.id.is_not(None),
                InventoryRecord.current_level_percent <= InventoryRecord.low_threshold_percent,
            )
            query = query.where(is_low if has_low_inventory else ~is_low)

        count_result = await self.session.execute(
            select(func.count()).select_from(query.subquery())
        )
        total = count_result.scalar() or 0

        # ── Sorting ───────────────────────────────────────────────────────
        if sort_by == "last_worn":
            last_worn = (
                select(
                    DailyWearEntry.fragrance_id.label("fragrance_id"),
                    func.max(DailyWear.date).label("last_worn"),
                )
                .join(DailyWear, DailyWear.id == DailyWearEntry.daily_wear_id)
                .group_by(DailyWearEntry.fragrance_id)
                .subquery()
            )
            query = query.outerjoin(last_worn, last_worn.c.fragrance_id == Fragrance.id)
            column = last_worn.c.last_worn
        elif sort_by == "rating":
            column = Fragrance.personal_rating
        else:
            column = getattr(Fragrance, sort_by)

        ordering = column.asc() if sort_order == "asc" else column.desc()
        query = query.order_by(ordering.nulls_last(), Fragrance.created_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all()), total
