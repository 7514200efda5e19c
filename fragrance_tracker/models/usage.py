"""
Fragrance Tracker Backend: Usage Log Model
===========================================

What:  ORM model for the append-only `usage_events` table.
Who:   UsageEventRepository; read by the estimator over a trailing window.

Rows are never updated or deleted by the application. They disappear only
through ON DELETE CASCADE when the fragrance is deleted.

Index on (fragrance_id, date):
    Serves the estimator's range scan
    "events for fragrance X between today-30 and today".
"""

import uuid
import datetime as dt
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from fragrance_tracker.database import Base

# Approximate millilitres dispensed by one spray
SPRAY_TO_ML_RATIO = 0.1


class UsageEvent(Base):
    """A dated record of how much of a fragrance was used."""

    __tablename__ = "usage_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    fragrance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("fragrances.id", ondelete="CASCADE"),
        nullable=False,
    )

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    spray_count: Mapped[int] = mapped_column(Integer, nullable=False)

    # Millilitres consumed; derived from spray_count when not supplied
    estimated_usage_ml: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: dt.datetime.now(dt.timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("spray_count > 0", name="ck_usage_events_spray_count"),
        Index("idx_usage_events_fragrance_date", "fragrance_id", "date"),
    )

    @property
    def usage_ml(self) -> float:
        """Recorded millilitres, falling back to the spray-count estimate."""
        return self.estimated_usage_ml or self.spray_count * SPRAY_TO_ML_RATIO

    def __repr__(self) -> str:
        return (
            f"<UsageEvent(fragrance_id={self.fragrance_id}, date={self.date}, "
            f"sprays={self.spray_count})>"
        )
