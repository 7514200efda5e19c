"""
Fragrance Tracker Backend: Fragrance SQLAlchemy Model
======================================================

What:  ORM model for the `fragrances` table (the user's catalog).
Who:   FragranceRepository for CRUD; the inventory ledger joins against it to
       scope low-stock alerts to a user's owned bottles.

Table Design:
    - UUID primary key, generated client-side (SQLite has no gen_random_uuid)
    - user_id: plain string, there is no users table while auth is absent
    - notes: three JSON arrays (top / middle / base accords)
    - list_type: owned | tried | wishlist, enforced by a CHECK constraint
    - Deleting a fragrance cascades (at the database level) to its inventory
      record, usage events and daily wear entries
"""

import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from fragrance_tracker.database import Base

LIST_TYPES = ("owned", "tried", "wishlist")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Fragrance(Base):
    """
    A fragrance in a user's collection, tried list or wishlist.

    Query Patterns:
        - List a user's fragrances with filters: WHERE user_id = :uid AND ...
          → idx_fragrances_user_id, idx_fragrances_list_type
        - Low-stock alerts: owned fragrances joined to inventory
    """

    __tablename__ = "fragrances"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Owner of this catalog entry",
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[str] = mapped_column(String(100), nullable=False)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # EDT, EDP, Parfum, ...
    concentration: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # ── Olfactory Pyramid ─────────────────────────────────────────────────
    top_notes: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    middle_notes: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    base_notes: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Reference into the external search source the entry was imported from
    external_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # ── Personal Data ─────────────────────────────────────────────────────
    personal_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    personal_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    purchase_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    purchase_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    purchase_retailer: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    list_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="owned",
        server_default="owned",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
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
        CheckConstraint(
            "personal_rating IS NULL OR (personal_rating >= 1 AND personal_rating <= 10)",
            name="ck_fragrances_rating_range",
        ),
        CheckConstraint(
            "list_type IN (" + ", ".join(f"'{t}'" for t in LIST_TYPES) + ")",
            name="ck_fragrances_list_type",
        ),
        Index("idx_fragrances_user_id", "user_id"),
        Index("idx_fragrances_brand", "brand"),
        Index("idx_fragrances_list_type", "list_type"),
        Index("idx_fragrances_rating", "personal_rating"),
    )

    def __repr__(self) -> str:
        return f"<Fragrance(id={self.id}, name='{self.name}', brand='{self.brand}')>"
