"""
Fragrance Tracker Backend: Daily Wear Schemas
==============================================

What:  Request and response models for /api/daily-wear.
"""

import uuid
import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from fragrance_tracker.models.daily_wear import DailyWear


class WearEntryInput(BaseModel):
    fragrance_id: uuid.UUID
    spray_count: Optional[int] = Field(
        default=None,
        ge=0,
        le=50,
        description="Positive counts are recorded as usage against the bottle",
    )
    body_parts: Optional[List[str]] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


def _unique_fragrances(entries: Optional[List[WearEntryInput]]) -> Optional[List[WearEntryInput]]:
    if entries is None:
        return entries
    ids = [entry.fragrance_id for entry in entries]
    if len(ids) != len(set(ids)):
        raise ValueError("each fragrance may appear only once per day")
    return entries


class DailyWearCreate(BaseModel):
    date: dt.date
    weather: Optional[str] = Field(default=None, max_length=100)
    occasion: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=2000)
    entries: List[WearEntryInput] = Field(min_length=1)

    @field_validator("entries")
    @classmethod
    def entries_unique(cls, v: List[WearEntryInput]) -> List[WearEntryInput]:
        return _unique_fragrances(v)


class DailyWearUpdate(BaseModel):
    """Field-level update; `entries`, when present, replaces the day's set."""

    date: Optional[dt.date] = None
    weather: Optional[str] = Field(default=None, max_length=100)
    occasion: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=2000)
    entries: Optional[List[WearEntryInput]] = Field(default=None, min_length=1)

    @field_validator("entries")
    @classmethod
    def entries_unique(cls, v: Optional[List[WearEntryInput]]) -> Optional[List[WearEntryInput]]:
        return _unique_fragrances(v)


class DailyWearEntryResponse(BaseModel):
    id: uuid.UUID
    fragrance_id: uuid.UUID
    spray_count: Optional[int] = None
    body_parts: Optional[List[str]] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class DailyWearResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    date: dt.date
    weather: Optional[str] = None
    occasion: Optional[str] = None
    notes: Optional[str] = None
    entries: List[DailyWearEntryResponse]
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, wear: DailyWear) -> "DailyWearResponse":
        return cls.model_validate(wear)


class WornFragrance(BaseModel):
    fragrance_id: uuid.UUID
    name: str
    brand: str
    spray_count: Optional[int] = None


class WearHistoryDay(BaseModel):
    id: uuid.UUID
    date: dt.date
    weather: Optional[str] = None
    occasion: Optional[str] = None
    notes: Optional[str] = None
    fragrances: List[WornFragrance]


class FavoriteFragrance(BaseModel):
    fragrance_id: uuid.UUID
    name: str
    brand: str
    wear_count: int


class MonthlyWearCount(BaseModel):
    month: str = Field(description="YYYY-MM")
    count: int


class WearStatistics(BaseModel):
    total_wears: int
    average_wears_per_month: float
    last_worn_date: Optional[dt.date] = None
    favorite_fragrances: List[FavoriteFragrance]
    wears_by_month: List[MonthlyWearCount]
