"""Initial schema: fragrances, inventory, usage events, daily wear

Revision ID: 001
Revises: None
Create Date: 2026-10-18 00:00:00.000000+00:00

What:  Creates the five tables of the fragrance tracker.
How:   Portable column types (sa.Uuid, sa.JSON) so the same migration runs on
       SQLite and PostgreSQL. Child tables cascade on fragrance deletion.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "fragrances",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(100), nullable=False, comment="Owner of this catalog entry"),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("brand", sa.String(100), nullable=False),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("concentration", sa.String(50), nullable=True),
        sa.Column("top_notes", sa.JSON(), nullable=False),
        sa.Column("middle_notes", sa.JSON(), nullable=False),
        sa.Column("base_notes", sa.JSON(), nullable=False),
        sa.Column("external_id", sa.String(100), nullable=True),
        sa.Column("personal_rating", sa.Integer(), nullable=True),
        sa.Column("personal_notes", sa.Text(), nullable=True),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("purchase_price", sa.Float(), nullable=True),
        sa.Column("purchase_retailer", sa.String(100), nullable=True),
        sa.Column("list_type", sa.String(20), nullable=False, server_default="owned"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "personal_rating IS NULL OR (personal_rating >= 1 AND personal_rating <= 10)",
            name="ck_fragrances_rating_range",
        ),
        sa.CheckConstraint(
            "list_type IN ('owned', 'tried', 'wishlist')",
            name="ck_fragrances_list_type",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_fragrances_user_id", "fragrances", ["user_id"])
    op.create_index("idx_fragrances_brand", "fragrances", ["brand"])
    op.create_index("idx_fragrances_list_type", "fragrances", ["list_type"])
    op.create_index("idx_fragrances_rating", "fragrances", ["personal_rating"])

    # One ledger row per bottle; level and threshold are percentages
    op.create_table(
        "inventory",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("fragrance_id", sa.Uuid(), nullable=False),
        sa.Column("bottle_size_ml", sa.Float(), nullable=False),
        sa.Column("current_level_percent", sa.Float(), nullable=False, server_default=sa.text("100")),
        sa.Column("purchase_date", sa.Date(), nullable=False),
        sa.Column("opened_date", sa.Date(), nullable=True),
        sa.Column("usage_tracking_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("low_threshold_percent", sa.Float(), nullable=False, server_default=sa.text("20")),
        sa.Column("estimated_days_remaining", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("bottle_size_ml > 0", name="ck_inventory_bottle_size"),
        sa.CheckConstraint(
            "current_level_percent >= 0 AND current_level_percent <= 100",
            name="ck_inventory_level_range",
        ),
        sa.CheckConstraint(
            "low_threshold_percent >= 0 AND low_threshold_percent <= 100",
            name="ck_inventory_threshold_range",
        ),
        sa.ForeignKeyConstraint(["fragrance_id"], ["fragrances.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fragrance_id"),
    )

    # Append-only
    op.create_table(
        "usage_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("fragrance_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("spray_count", sa.Integer(), nullable=False),
        sa.Column("estimated_usage_ml", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("spray_count > 0", name="ck_usage_events_spray_count"),
        sa.ForeignKeyConstraint(["fragrance_id"], ["fragrances.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_usage_events_fragrance_date", "usage_events", ["fragrance_id", "date"])

    op.create_table(
        "daily_wear",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(100), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("weather", sa.String(100), nullable=True),
        sa.Column("occasion", sa.String(100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "date", name="uq_daily_wear_user_date"),
    )
    op.create_index("idx_daily_wear_user_date", "daily_wear", ["user_id", "date"])

    op.create_table(
        "daily_wear_entries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("daily_wear_id", sa.Uuid(), nullable=False),
        sa.Column("fragrance_id", sa.Uuid(), nullable=False),
        sa.Column("spray_count", sa.Integer(), nullable=True),
        sa.Column("body_parts", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["daily_wear_id"], ["daily_wear.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["fragrance_id"], ["fragrances.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("daily_wear_id", "fragrance_id", name="uq_daily_wear_entries_day_fragrance"),
    )
    op.create_index("idx_daily_wear_entries_fragrance", "daily_wear_entries", ["fragrance_id"])


def downgrade() -> None:
    """Drop every table, children first. All data is lost."""
    op.drop_index("idx_daily_wear_entries_fragrance", table_name="daily_wear_entries")
    op.drop_table("daily_wear_entries")
    op.drop_index("idx_daily_wear_user_date", table_name="daily_wear")
    op.drop_table("daily_wear")
    op.drop_index("idx_usage_events_fragrance_date", table_name="usage_events")
    op.drop_table("usage_events")
    op.drop_table("inventory")
    op.drop_index("idx_fragrances_rating", table_name="fragrances")
    op.drop_index("idx_fragrances_list_type", table_name="fragrances")
    op.drop_index("idx_fragrances_brand", table_name="fragrances")
    op.drop_index("idx_fragrances_user_id", table_name="fragrances")
    op.drop_table("fragrances")
