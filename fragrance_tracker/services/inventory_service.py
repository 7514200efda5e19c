"""
Fragrance Tracker Backend: Inventory Service (Ledger + Estimator Orchestration)
================================================================================

What:  Owns the inventory ledger: creation, usage accounting, corrective
       edits, low-stock alerts and remaining-days projections.
How:   Composes the inventory, usage and fragrance repositories over the
       caller's session, and the pure functions in `estimator`.
Who:   Inventory routes, CalendarService (transitive usage from wear
       records) and the SweepScheduler.
When:  Every usage update, every wear record with sprays, every sweep.

Usage Flow (POST /api/inventory):
    ┌─────────────┐    ┌──────────────┐    ┌───────────────┐    ┌────────────┐
    │ Ledger must │───▶│ Append usage │───▶│ Atomic level  │───▶│ Re-estimate│
    │ exist (404) │    │ event        │    │ decrement     │    │ & persist  │
    └─────────────┘    └──────────────┘    └───────────────┘    └────────────┘

    All four steps share the request transaction; get_db_session commits
    once at the end.

Design Decision:
    InventoryService is stateless. It receives the session on each call, so
    request handlers and sweep items each bring their own unit of work.
"""

import logging
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.exceptions import (
    AlreadyExistsError,
    DatabaseError,
    FragranceTrackerError,
    NotFoundError,
)
from fragrance_tracker.models.inventory import InventoryRecord
from fragrance_tracker.repositories import (
    FragranceRepository,
    InventoryRepository,
    UsageEventRepository,
)
from fragrance_tracker.schemas.inventory import (
    InventoryCreate,
    InventoryStatus,
    InventoryUpdate,
    LowStockAlert,
    UsageRecord,
)
from fragrance_tracker.services import estimator

logger = logging.getLogger(__name__)


class InventoryService:
    """
    Business logic layer for the inventory ledger.

    Error Handling Strategy:
        Typed application errors (NotFoundError, AlreadyExistsError)
        propagate unchanged. Any other SQLAlchemy failure is logged and
        wrapped in DatabaseError so the client sees a generic 500.
    """

    # ── Creation ──────────────────────────────────────────────────────────

    async def create(
        self,
        db: AsyncSession,
        data: InventoryCreate,
        user_id: Optional[str] = None,
    ) -> InventoryRecord:
        """
        Start tracking a bottle.

        Raises:
            NotFoundError:      fragrance does not exist (or belongs to
                                another user when user_id is given)
            AlreadyExistsError: a ledger already exists for the fragrance;
                                nothing is written
        """
        try:
            fragrance = await FragranceRepository(db).get(data.fragrance_id, user_id=user_id)
            if fragrance is None:
                raise NotFoundError(resource="fragrance", resource_id=str(data.fragrance_id))

            repo = InventoryRepository(db)
            if await repo.exists(data.fragrance_id):
                raise AlreadyExistsError(
                    message="Inventory record already exists for this fragrance",
                    context={"fragrance_id": str(data.fragrance_id)},
                )

            record = InventoryRecord(
                fragrance_id=data.fragrance_id,
                bottle_size_ml=data.bottle_size_ml,
                current_level_percent=data.current_level_percent,
                purchase_date=data.purchase_date,
                opened_date=data.opened_date,
                usage_tracking_enabled=data.usage_tracking_enabled,
                low_threshold_percent=data.low_threshold_percent,
            )
            record.estimated_days_remaining = await self._estimate(db, record)
            await repo.add(record)
            logger.info(
                "Inventory created for fragrance %s (%.0fml at %.1f%%)",
                data.fragrance_id,
                record.bottle_size_ml,
                record.current_level_percent,
            )
            return record

        except FragranceTrackerError:
            raise
        except IntegrityError as e:
            # Lost a race with a concurrent create for the same fragrance
            logger.warning("Duplicate inventory insert for %s: %s", data.fragrance_id, str(e))
            raise AlreadyExistsError(
                message="Inventory record already exists for this fragrance",
                context={"fragrance_id": str(data.fragrance_id)},
            )
        except SQLAlchemyError as e:
            logger.error("Database error creating inventory: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the inventory record. Please try again.",
                context={"fragrance_id": str(data.fragrance_id)},
            )

    # ── Reads ─────────────────────────────────────────────────────────────

    async def get(self, db: AsyncSession, fragrance_id: uuid.UUID) -> Optional[InventoryRecord]:
        """The ledger for a fragrance, or None when the fragrance is not tracked."""
        try:
            return await InventoryRepository(db).get(fragrance_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching inventory %s: %s", fragrance_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the inventory record. Please try again.",
                context={"fragrance_id": str(fragrance_id)},
            )

    async def get_status(self, db: AsyncSession, fragrance_id: uuid.UUID) -> InventoryStatus:
        record = await self._require(db, fragrance_id)
        try:
            last_used = await UsageEventRepository(db).last_used(fragrance_id)
        except SQLAlchemyError as e:
            logger.error("Database error reading usage for %s: %s", fragrance_id, str(e))
            raise DatabaseError(context={"fragrance_id": str(fragrance_id)})
        return InventoryStatus(
            fragrance_id=fragrance_id,
            current_level=record.current_level_percent,
            is_low=record.is_low,
            estimated_days_remaining=record.estimated_days_remaining,
            last_used=last_used,
        )

    async def list_low_stock(self, db: AsyncSession, user_id: str) -> List[LowStockAlert]:
        """
        Owned fragrances of a user at or below their low threshold, most urgent first.

        Query plan:
            inventory JOIN fragrances
            WHERE user_id = :uid AND list_type = 'owned'
              AND current_level_percent <= low_threshold_percent
            ORDER BY current_level_percent ASC
        """
        try:
            rows = await InventoryRepository(db).list_low_stock(user_id)
        except SQLAlchemyError as e:
            logger.error("Database error listing low stock for %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve inventory alerts. Please try again.",
                context={"user_id": user_id},
            )
        return [
            LowStockAlert(
                fragrance_id=record.fragrance_id,
                name=fragrance.name,
                brand=fragrance.brand,
                current_level=record.current_level_percent,
                low_threshold=record.low_threshold_percent,
                estimated_days_remaining=record.estimated_days_remaining,
            )
            for record, fragrance in rows
        ]

    # ── Usage Accounting ──────────────────────────────────────────────────

    async def record_usage(self, db: AsyncSession, data: UsageRecord) -> InventoryRecord:
        """
        Direct usage update: append a usage event, then apply it to the ledger.

        Unlike the wear-recording path, a missing ledger is surfaced to the
        caller as NotFoundError and no event is written.
        """
        await self._require(db, data.fragrance_id)
        try:
            event = await UsageEventRepository(db).append(
                fragrance_id=data.fragrance_id,
                spray_count=data.spray_count,
                usage_date=data.date or date.today(),
                estimated_usage_ml=data.estimated_usage_ml,
                notes=data.notes,
            )
        except SQLAlchemyError as e:
            logger.error("Database error appending usage for %s: %s", data.fragrance_id, str(e))
            raise DatabaseError(
                message="Could not record usage. Please try again.",
                context={"fragrance_id": str(data.fragrance_id)},
            )
        return await self.apply_usage(db, data.fragrance_id, event.usage_ml)

    async def apply_usage(
        self,
        db: AsyncSession,
        fragrance_id: uuid.UUID,
        usage_ml: float,
    ) -> InventoryRecord:
        """
        Subtract usage from the fill level and refresh the projection.

        What:    level = max(0, level - usage_ml / bottle_size_ml × 100)
        How:     The decrement is a single UPDATE (see InventoryRepository),
                 the new estimate is written in the same transaction.
        When tracking is disabled the record is returned unchanged.

        Raises:
            NotFoundError: no ledger exists for the fragrance
            DatabaseError: persistence failed
        """
        try:
            repo = InventoryRepository(db)
            record = await repo.get(fragrance_id)
            if record is None:
                raise NotFoundError(resource="inventory record", resource_id=str(fragrance_id))

            if not record.usage_tracking_enabled:
                logger.debug("Usage tracking disabled for %s; level unchanged", fragrance_id)
                return record

            delta = estimator.percent_delta(usage_ml, record.bottle_size_ml)
            await repo.decrement_level(fragrance_id, delta)

            record = await repo.get(fragrance_id, refresh=True)
            record.estimated_days_remaining = await self._estimate(db, record)
            await db.flush()

            logger.info(
                "Applied %.2fml to %s: level now %.2f%%, ~%s days left",
                usage_ml,
                fragrance_id,
                record.current_level_percent,
                record.estimated_days_remaining,
            )
            return record

        except FragranceTrackerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error applying usage to %s: %s", fragrance_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the inventory level. Please try again.",
                context={"fragrance_id": str(fragrance_id)},
            )

    # ── Corrective Edits ──────────────────────────────────────────────────

    async def edit_record(
        self,
        db: AsyncSession,
        fragrance_id: uuid.UUID,
        data: InventoryUpdate,
    ) -> InventoryRecord:
        """
        Apply a user correction to the ledger.

        The row is locked for the rest of the transaction (FOR UPDATE on
        server databases). A new level or bottle size changes the remaining
        millilitres, so the estimate is recomputed before the commit.
        """
        fields = data.model_dump(exclude_unset=True)
        try:
            record = await InventoryRepository(db).get(fragrance_id, for_update=True)
            if record is None:
                raise NotFoundError(resource="inventory record", resource_id=str(fragrance_id))

            for name, value in fields.items():
                if value is None and name != "opened_date":
                    continue
                setattr(record, name, value)

            if "current_level_percent" in fields or "bottle_size_ml" in fields:
                record.estimated_days_remaining = await self._estimate(db, record)

            await db.flush()
            logger.info("Inventory for %s edited: %s", fragrance_id, sorted(fields))
            return record

        except FragranceTrackerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error editing inventory %s: %s", fragrance_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the inventory record. Please try again.",
                context={"fragrance_id": str(fragrance_id)},
            )

    # ── Estimation ────────────────────────────────────────────────────────

    async def estimate_remaining_days(
        self,
        db: AsyncSession,
        fragrance_id: uuid.UUID,
        today: Optional[date] = None,
    ) -> Optional[int]:
        """
        Live projection from stored state; an untracked fragrance yields 0.

        Repeated calls without new usage return the same value.
        """
        try:
            record = await InventoryRepository(db).get(fragrance_id)
            if record is None:
                return 0
            return await self._estimate(db, record, today)
        except SQLAlchemyError as e:
            logger.error("Database error estimating %s: %s", fragrance_id, str(e))
            raise DatabaseError(context={"fragrance_id": str(fragrance_id)})

    async def refresh_estimate(
        self,
        db: AsyncSession,
        fragrance_id: uuid.UUID,
        today: Optional[date] = None,
    ) -> bool:
        """
        Recompute and store the cached estimate. Used by the periodic sweep.

        Returns True when the stored value changed. Last write wins against
        a concurrent usage update; the field is advisory.
        """
        record = await self._require(db, fragrance_id)
        estimate = await self._estimate(db, record, today)
        if estimate == record.estimated_days_remaining:
            return False
        record.estimated_days_remaining = estimate
        await db.flush()
        return True

    # ── Internal Helpers ──────────────────────────────────────────────────

    async def _require(self, db: AsyncSession, fragrance_id: uuid.UUID) -> InventoryRecord:
        record = await self.get(db, fragrance_id)
        if record is None:
            raise NotFoundError(resource="inventory record", resource_id=str(fragrance_id))
        return record

    async def _estimate(
        self,
        db: AsyncSession,
        record: InventoryRecord,
        today: Optional[date] = None,
    ) -> Optional[int]:
        today = today or date.today()
        events = []
        if record.current_level_percent > 0:
            events = await UsageEventRepository(db).list_between(
                record.fragrance_id,
                estimator.window_start(today),
                today,
            )
        return estimator.estimate_remaining_days(
            record.current_level_percent,
            record.bottle_size_ml,
            events,
            today,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
inventory_service = InventoryService()
