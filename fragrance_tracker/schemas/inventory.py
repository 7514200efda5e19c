"""
Fragrance Tracker Backend: Inventory Ledger Schemas
====================================================

What:  Request and response models for /api/inventory.
Who:   Inventory route handlers; InventoryService builds the alert and
       status views directly.

Range checks here (sizes > 0, percentages in [0, 100]) reject malformed
input before it reaches the ledger. FastAPI turns their failures into the
400 VALIDATION_ERROR envelope.
"""

import uuid
import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class InventoryCreate(BaseModel):
    fragrance_id: uuid.UUID
    bottle_size_ml: float = Field(gt=0, le=10000, description="Bottle capacity in ml")
    purchase_date: dt.date
    opened_date: Optional[dt.date] = None
    current_level_percent: float = Field(default=100.0, ge=0, le=100)
    usage_tracking_enabled: bool = True
    low_threshold_percent: float = Field(default=20.0, ge=0, le=100)


class InventoryUpdate(BaseModel):
    """Corrective edit. Only fields present in the request body are applied."""

    bottle_size_ml: Optional[float] = Field(default=None, gt=0, le=10000)
    purchase_date: Optional[dt.date] = None
    opened_date: Optional[dt.date] = None
    current_level_percent: Optional[float] = Field(default=None, ge=0, le=100)
    usage_tracking_enabled: Optional[bool] = None
    low_threshold_percent: Optional[float] = Field(default=None, ge=0, le=100)


class UsageRecord(BaseModel):
    """Direct usage update: POST /api/inventory."""

    fragrance_id: uuid.UUID
    spray_count: int = Field(gt=0, le=100)
    estimated_usage_ml: Optional[float] = Field(
        default=None,
        ge=0,
        le=10000,
        description="Millilitres used; derived as spray_count × 0.1 when omitted",
    )
    date: Optional[dt.date] = Field(default=None, description="Defaults to today")
    notes: Optional[str] = Field(default=None, max_length=1000)


class InventoryResponse(BaseModel):
    id: uuid.UUID
    fragrance_id: uuid.UUID
    bottle_size_ml: float
    current_level_percent: float
    purchase_date: dt.date
    opened_date: Optional[dt.date] = None
    usage_tracking_enabled: bool
    low_threshold_percent: float
    estimated_days_remaining: Optional[int] = Field(
        default=None,
        description="Advisory projection; null means recorded usage never empties the bottle",
    )
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}


class LowStockAlert(BaseModel):
    fragrance_id: uuid.UUID
    name: str
    brand: str
    current_level: float
    low_threshold: float
    estimated_days_remaining: Optional[int] = None


class InventoryStatus(BaseModel):
    fragrance_id: uuid.UUID
    current_level: float
    is_low: bool
    estimated_days_remaining: Optional[int] = None
    last_used: Optional[dt.date] = None


class RemainingDays(BaseModel):
    fragrance_id: uuid.UUID
    estimated_days_remaining: Optional[int] = None
    unbounded: bool = False


class SweepResultResponse(BaseModel):
    processed: int
    updated: int
    failed: int
    duration_ms: float
