"""
Fragrance Tracker Backend: Calendar Service (Daily Wear Recorder)
==================================================================

What:  Records what the user wore each day and derives wear statistics.
How:   Composes the daily wear, fragrance and usage repositories; hands
       spray counts to InventoryService so bottles drain as they are worn.
Who:   /api/daily-wear route handlers.

Recording Flow (POST /api/daily-wear):
    ┌────────────┐    ┌──────────────┐    ┌────────────────┐    ┌──────────────┐
    │ One record │───▶│ Insert day + │───▶│ Append usage   │───▶│ apply_usage  │
    │ per date   │    │ entries      │    │ event (sprays) │    │ (best effort)│
    └────────────┘    └──────────────┘    └────────────────┘    └──────────────┘

    Inventory bookkeeping is secondary to the wear record: a fragrance with
    no ledger (or any other inventory failure) is logged as a warning and
    the day is still saved. apply_usage runs inside a SAVEPOINT, so a
    database failure there leaves the wear transaction committable.

Updates are field-level within one transaction. Entries are reconciled by
fragrance instead of being deleted and re-inserted, so entry ids stay
stable and only genuinely new entries count as new usage.
"""

import logging
import math
import uuid
from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.exceptions import (
    AlreadyExistsError,
    DatabaseError,
    FragranceTrackerError,
    NotFoundError,
    ValidationError,
)
from fragrance_tracker.models.daily_wear import DailyWear, DailyWearEntry
from fragrance_tracker.models.fragrance import Fragrance
from fragrance_tracker.repositories import (
    DailyWearRepository,
    FragranceRepository,
    UsageEventRepository,
)
from fragrance_tracker.schemas.daily_wear import (
    DailyWearCreate,
    DailyWearUpdate,
    FavoriteFragrance,
    MonthlyWearCount,
    WearEntryInput,
    WearHistoryDay,
    WearStatistics,
    WornFragrance,
)
from fragrance_tracker.services.inventory_service import inventory_service

logger = logging.getLogger(__name__)

STATISTICS_WINDOW_DAYS = 365
FAVORITES_LIMIT = 10
WEAR_USAGE_NOTE = "Recorded from daily wear"


class CalendarService:

    # ── Recording ─────────────────────────────────────────────────────────

    async def record_wear(self, db: AsyncSession, user_id: str, data: DailyWearCreate) -> DailyWear:
        """
        Save the fragrances worn on a day.

        Raises:
            AlreadyExistsError: the user already has a record for this date
            NotFoundError:      an entry references an unknown fragrance
        """
        try:
            repo = DailyWearRepository(db)
            if await repo.get_by_date(user_id, data.date) is not None:
                raise AlreadyExistsError(
                    message=f"Daily wear already recorded for {data.date.isoformat()}",
                    context={"date": data.date.isoformat()},
                )
            await self._require_fragrances(db, user_id, (entry.fragrance_id for entry in data.entries))

            wear = DailyWear(
                user_id=user_id,
                date=data.date,
                weather=data.weather,
                occasion=data.occasion,
                notes=data.notes,
                entries=[self._build_entry(entry) for entry in data.entries],
            )
            await repo.add(wear)
            logger.info("Daily wear recorded for %s on %s (%d entries)", user_id, data.date, len(wear.entries))

            for entry in data.entries:
                if entry.spray_count and entry.spray_count > 0:
                    await self._record_usage(db, entry.fragrance_id, entry.spray_count, data.date)

            return wear

        except FragranceTrackerError:
            raise
        except IntegrityError:
            raise AlreadyExistsError(
                message=f"Daily wear already recorded for {data.date.isoformat()}",
                context={"date": data.date.isoformat()},
            )
        except SQLAlchemyError as e:
            logger.error("Database error recording daily wear: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not record daily wear. Please try again.",
                context={"date": data.date.isoformat()},
            )

    async def update_wear(
        self,
        db: AsyncSession,
        user_id: str,
        wear_id: uuid.UUID,
        data: DailyWearUpdate,
    ) -> DailyWear:
        """
        Targeted update of a wear day.

        Entries (when supplied) are matched by fragrance: kept ones are
        updated in place, missing ones removed, new ones inserted. Only new
        entries with a positive spray count are recorded as usage.
        """
        fields = data.model_dump(exclude_unset=True, exclude={"entries"})
        try:
            repo = DailyWearRepository(db)
            wear = await repo.get(wear_id, user_id)
            if wear is None:
                raise NotFoundError(resource="daily wear", resource_id=str(wear_id))

            new_date = fields.pop("date", None)
            if new_date is not None and new_date != wear.date:
                if await repo.get_by_date(user_id, new_date) is not None:
                    raise AlreadyExistsError(
                        message=f"Daily wear already recorded for {new_date.isoformat()}",
                        context={"date": new_date.isoformat()},
                    )
                wear.date = new_date

            for name, value in fields.items():
                setattr(wear, name, value)

            added: List[WearEntryInput] = []
            if data.entries is not None:
                await self._require_fragrances(db, user_id, (entry.fragrance_id for entry in data.entries))
                existing = {entry.fragrance_id: entry for entry in wear.entries}
                wanted = {entry.fragrance_id for entry in data.entries}

                for entry in list(wear.entries):
                    if entry.fragrance_id not in wanted:
                        wear.entries.remove(entry)

                for item in data.entries:
                    current = existing.get(item.fragrance_id)
                    if current is None:
                        wear.entries.append(self._build_entry(item))
                        added.append(item)
                    else:
                        current.spray_count = item.spray_count
                        current.body_parts = item.body_parts
                        current.notes = item.notes

            await db.flush()

            for item in added:
                if item.spray_count and item.spray_count > 0:
                    await self._record_usage(db, item.fragrance_id, item.spray_count, wear.date)

            logger.info("Daily wear %s updated (%d new entries)", wear_id, len(added))
            return wear

        except FragranceTrackerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating daily wear %s: %s", wear_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update daily wear. Please try again.",
                context={"daily_wear_id": str(wear_id)},
            )

    async def delete_wear(self, db: AsyncSession, user_id: str, wear_id: uuid.UUID) -> None:
        """Remove a day and its entries. Usage events already logged stay."""
        try:
            repo = DailyWearRepository(db)
            wear = await repo.get(wear_id, user_id)
            if wear is None:
                raise NotFoundError(resource="daily wear", resource_id=str(wear_id))
            await repo.delete(wear)
            logger.info("Daily wear %s deleted", wear_id)
        except FragranceTrackerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting daily wear %s: %s", wear_id, str(e))
            raise DatabaseError(
                message="Could not delete daily wear. Please try again.",
                context={"daily_wear_id": str(wear_id)},
            )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get_by_date(self, db: AsyncSession, user_id: str, wear_date: date) -> DailyWear:
        try:
            wear = await DailyWearRepository(db).get_by_date(user_id, wear_date)
        except SQLAlchemyError as e:
            logger.error("Database error fetching daily wear for %s: %s", wear_date, str(e))
            raise DatabaseError(context={"date": wear_date.isoformat()})
        if wear is None:
            raise NotFoundError(resource="daily wear", resource_id=wear_date.isoformat())
        return wear

    async def history(
        self,
        db: AsyncSession,
        user_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[WearHistoryDay]:
        """Wear days newest first, each with the name and brand of what was worn."""
        if start_date and end_date and start_date > end_date:
            raise ValidationError(
                message="start_date must be on or before end_date",
                field="start_date",
            )
        try:
            days = await DailyWearRepository(db).list_between(user_id, start_date, end_date)
            fragrances = await FragranceRepository(db).get_many(
                entry.fragrance_id for day in days for entry in day.entries
            )
        except SQLAlchemyError as e:
            logger.error("Database error reading wear history: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve wear history. Please try again.",
                context={"user_id": user_id},
            )

        history = []
        for day in days:
            worn = []
            for entry in day.entries:
                fragrance = fragrances.get(entry.fragrance_id)
                if fragrance is None:
                    continue
                worn.append(
                    WornFragrance(
                        fragrance_id=entry.fragrance_id,
                        name=fragrance.name,
                        brand=fragrance.brand,
                        spray_count=entry.spray_count,
                    )
                )
            history.append(
                WearHistoryDay(
                    id=day.id,
                    date=day.date,
                    weather=day.weather,
                    occasion=day.occasion,
                    notes=day.notes,
                    fragrances=worn,
                )
            )
        return history

    async def statistics(
        self,
        db: AsyncSession,
        user_id: str,
        fragrance_id: Optional[uuid.UUID] = None,
        today: Optional[date] = None,
    ) -> WearStatistics:
        """
        Wear statistics over the trailing year.

        average_wears_per_month divides by ceil(365 / 30) = 13 months.
        favorite_fragrances is the top 10 by wear count; ties keep the
        order in which fragrances were first worn.
        """
        today = today or date.today()
        start = today - timedelta(days=STATISTICS_WINDOW_DAYS)
        try:
            pairs = await DailyWearRepository(db).list_entry_dates(user_id, start, today, fragrance_id)
            fragrances = await FragranceRepository(db).get_many(fid for fid, _ in pairs)
        except SQLAlchemyError as e:
            logger.error("Database error computing wear statistics: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not compute statistics. Please try again.",
                context={"user_id": user_id},
            )

        per_fragrance: Counter = Counter()
        per_month: Counter = Counter()
        last_worn: Optional[date] = None
        for fid, worn_on in pairs:
            per_fragrance[fid] += 1
            per_month[worn_on.strftime("%Y-%m")] += 1
            if last_worn is None or worn_on > last_worn:
                last_worn = worn_on

        total = len(pairs)
        months = max(1, math.ceil(STATISTICS_WINDOW_DAYS / 30))

        favorites = [
            FavoriteFragrance(
                fragrance_id=fid,
                name=fragrances[fid].name,
                brand=fragrances[fid].brand,
                wear_count=count,
            )
            for fid, count in per_fragrance.most_common()
            if fid in fragrances
        ][:FAVORITES_LIMIT]

        return WearStatistics(
            total_wears=total,
            average_wears_per_month=total / months,
            last_worn_date=last_worn,
            favorite_fragrances=favorites,
            wears_by_month=[
                MonthlyWearCount(month=month, count=count)
                for month, count in sorted(per_month.items())
            ],
        )

    # ── Internal Helpers ──────────────────────────────────────────────────

    @staticmethod
    def _build_entry(item: WearEntryInput) -> DailyWearEntry:
        return DailyWearEntry(
            fragrance_id=item.fragrance_id,
            spray_count=item.spray_count,
            body_parts=item.body_parts,
            notes=item.notes,
        )

    async def _require_fragrances(
        self,
        db: AsyncSession,
        user_id: str,
        fragrance_ids: Iterable[uuid.UUID],
    ) -> Dict[uuid.UUID, Fragrance]:
        ids = list(fragrance_ids)
        found = await FragranceRepository(db).get_many(ids)
        for fid in ids:
            fragrance = found.get(fid)
            if fragrance is None or fragrance.user_id != user_id:
                raise NotFoundError(resource="fragrance", resource_id=str(fid))
        return found

    async def _record_usage(
        self,
        db: AsyncSession,
        fragrance_id: uuid.UUID,
        spray_count: int,
        worn_on: date,
    ) -> None:
        event = await UsageEventRepository(db).append(
            fragrance_id=fragrance_id,
            spray_count=spray_count,
            usage_date=worn_on,
            notes=WEAR_USAGE_NOTE,
        )
        try:
            # A failed inventory statement rolls back to this savepoint only
            async with db.begin_nested():
                await inventory_service.apply_usage(db, fragrance_id, event.usage_ml)
        except FragranceTrackerError as e:
            logger.warning(
                "Inventory not updated for fragrance %s after wear on %s: %s",
                fragrance_id,
                worn_on,
                e.message,
            )


# ── Singleton Instance ────────────────────────────────────────────────────
calendar_service = CalendarService()
