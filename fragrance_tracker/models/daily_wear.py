"""
Fragrance Tracker Backend: Daily Wear Models
=============================================

What:  ORM models for `daily_wear` (one row per user per day) and
       `daily_wear_entries` (which fragrances were worn that day).
Who:   DailyWearRepository and CalendarService.

Entries are loaded eagerly with `selectin` so a DailyWear can be serialized
after the session is gone without triggering async lazy loads.
"""

import uuid
import datetime as dt
from typing import List, Optional

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fragrance_tracker.database import Base


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class DailyWear(Base):
    """What a user wore on a given calendar day, plus context."""

    __tablename__ = "daily_wear"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    weather: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    occasion: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    entries: Mapped[List["DailyWearEntry"]] = relationship(
        back_populates="daily_wear",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="DailyWearEntry.created_at",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_daily_wear_user_date"),
        Index("idx_daily_wear_user_date", "user_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<DailyWear(user_id='{self.user_id}', date={self.date}, entries={len(self.entries)})>"


class DailyWearEntry(Base):
    """One fragrance worn on a DailyWear day."""

    __tablename__ = "daily_wear_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    daily_wear_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("daily_wear.id", ondelete="CASCADE"),
        nullable=False,
    )
    fragrance_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("fragrances.id", ondelete="CASCADE"),
        nullable=False,
    )

    spray_count: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # wrists, neck, ...
    body_parts: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    daily_wear: Mapped[DailyWear] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("daily_wear_id", "fragrance_id", name="uq_daily_wear_entries_day_fragrance"),
        Index("idx_daily_wear_entries_fragrance", "fragrance_id"),
    )
