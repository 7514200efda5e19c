"""
Fragrance Tracker Backend: Inventory Ledger Model
==================================================

What:  ORM model for the `inventory` table, one row per tracked bottle.
Who:   InventoryRepository (ledger CRUD, atomic level decrements) and the
       periodic sweep.

Column notes:
    - fragrance_id is UNIQUE: at most one ledger per fragrance
    - current_level_percent / low_threshold_percent are floats in [0, 100],
      enforced by CHECK constraints
    - estimated_days_remaining is an advisory cache; NULL means "unbounded"
      (recorded usage never drains the bottle)
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Uuid,
    text,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

from fragrance_tracker.database import Base

DEFAULT_LEVEL_PERCENT = 100.0
DEFAULT_LOW_THRESHOLD_PERCENT = 20.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InventoryRecord(Base):
    """
    Fill-level ledger for a single fragrance bottle.

    Lifecycle:
        1. Created explicitly through POST /api/inventory/create
        2. Level decremented by recorded usage (tracking enabled only)
        3. Corrected by explicit edits (any field)
        4. Deleted only by cascade when the fragrance is deleted
    """

    __tablename__ = "inventory"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    fragrance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("fragrances.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    bottle_size_ml: Mapped[float] = mapped_column(Float, nullable=False)

    current_level_percent: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=DEFAULT_LEVEL_PERCENT,
        server_default=text("100"),
    )

    purchase_date: Mapped[date] = mapped_column(Date, nullable=False)
    opened_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    usage_tracking_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=true(),
    )

    low_threshold_percent: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=DEFAULT_LOW_THRESHOLD_PERCENT,
        server_default=text("20"),
    )

    estimated_days_remaining: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    __table_args__ = (
        CheckConstraint("bottle_size_ml > 0", name="ck_inventory_bottle_size"),
        CheckConstraint(
            "current_level_percent >= 0 AND current_level_percent <= 100",
            name="ck_inventory_level_range",
        ),
        CheckConstraint(
            "low_threshold_percent >= 0 AND low_threshold_percent <= 100",
            name="ck_inventory_threshold_range",
        ),
    )

    @property
    def remaining_ml(self) -> float:
        return self.current_level_percent / 100 * self.bottle_size_ml

    @property
    def is_low(self) -> bool:
        return self.current_level_percent <= self.low_threshold_percent

    def __repr__(self) -> str:
        return (
            f"<InventoryRecord(fragrance_id={self.fragrance_id}, "
            f"level={self.current_level_percent:.1f}%)>"
        )
