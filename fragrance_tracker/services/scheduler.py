"""
Fragrance Tracker Backend: Periodic Remaining-Days Sweep
=========================================================

What:  Recomputes `estimated_days_remaining` for every tracked bottle so
       estimates age even when nothing new is worn.
How:   APScheduler AsyncIOScheduler with a daily CronTrigger (local
       midnight by default). `run_now()` performs one sweep and is also
       exposed through POST /api/inventory/recalculate.
Who:   Constructed by `create_app()`, started and stopped by the lifespan.

Sweep semantics:
    - Population: all inventory records with tracking enabled, all users
    - Each fragrance is recomputed in its own session and transaction, so a
      failing item rolls back alone and the rest of the sweep continues
    - Failures are logged with the fragrance id and counted; the next run
      retries them
    - Every item boundary is an await point; cancelling the sweep task stops
      it there without committing a partial item
"""

import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fragrance_tracker.repositories import InventoryRepository
from fragrance_tracker.services.inventory_service import inventory_service

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "inventory_remaining_days_sweep"


@dataclass
class SweepResult:
    processed: int = 0
    updated: int = 0
    failed: int = 0
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SweepScheduler:
    """
    Owns the daily sweep job.

    Lifecycle:
        start()   → registers the cron job and starts the scheduler
                    (requires a running event loop)
        stop()    → shuts the scheduler down; a sweep in progress finishes
                    its current item
        run_now() → one sweep, awaited by the caller
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        hour: int = 0,
        minute: int = 0,
        enabled: bool = True,
    ):
        self._session_factory = session_factory
        self.hour = hour
        self.minute = minute
        self.enabled = enabled
        self._scheduler: Optional[AsyncIOScheduler] = None
        self.last_result: Optional[SweepResult] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def state(self) -> str:
        if not self.enabled:
            return "disabled"
        return "running" if self.running else "stopped"

    def start(self) -> None:
        if not self.enabled:
            logger.info("Inventory sweep disabled by configuration")
            return
        if self.running:
            return
        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_now,
            CronTrigger(hour=self.hour, minute=self.minute),
            id=SWEEP_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Inventory sweep scheduled daily at %02d:%02d", self.hour, self.minute)

    def stop(self) -> None:
        if self.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Inventory sweep scheduler stopped")
        self._scheduler = None

    async def run_now(self) -> SweepResult:
        """Recompute every tracked estimate; per-item failures are counted, not raised."""
        started = time.perf_counter()
        result = SweepResult()

        async with self._session_factory() as session:
            fragrance_ids: List[uuid.UUID] = await InventoryRepository(session).list_tracked_fragrance_ids()

        for fragrance_id in fragrance_ids:
            result.processed += 1
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        changed = await inventory_service.refresh_estimate(session, fragrance_id)
                if changed:
                    result.updated += 1
            except Exception as e:
                result.failed += 1
                logger.error("Sweep failed for fragrance %s: %s", fragrance_id, str(e), exc_info=True)

        result.duration_ms = round((time.perf_counter() - started) * 1000, 2)
        self.last_result = result
        logger.info(
            "Inventory sweep finished: %d processed, %d updated, %d failed in %.0fms",
            result.processed,
            result.updated,
            result.failed,
            result.duration_ms,
        )
        return result
