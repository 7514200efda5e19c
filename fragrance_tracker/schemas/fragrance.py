"""
Fragrance Tracker Backend: Fragrance Catalog Schemas
=====================================================

What:  Request and response models for /api/fragrances.
How:   The API groups the three note columns into `notes` and the purchase
       columns into `purchase_info`; `FragranceResponse.from_model` flattens
       the ORM row back into that shape.
"""

import uuid
import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from fragrance_tracker.models.fragrance import Fragrance

ListType = Literal["owned", "tried", "wishlist"]
SortField = Literal["name", "brand", "rating", "created_at", "last_worn"]
SortOrder = Literal["asc", "desc"]


class FragranceNotes(BaseModel):
    top: List[str] = Field(default_factory=list)
    middle: List[str] = Field(default_factory=list)
    base: List[str] = Field(default_factory=list)

    @field_validator("top", "middle", "base")
    @classmethod
    def strip_blank_notes(cls, v: List[str]) -> List[str]:
        return [note.strip() for note in v if note and note.strip()]


class PurchaseInfo(BaseModel):
    date: Optional[dt.date] = None
    price: Optional[float] = Field(default=None, ge=0)
    retailer: Optional[str] = Field(default=None, max_length=100)


class FragranceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    brand: str = Field(min_length=1, max_length=100)
    year: Optional[int] = Field(default=None, ge=1700, le=2100)
    concentration: Optional[str] = Field(default=None, max_length=50)
    notes: FragranceNotes = Field(default_factory=FragranceNotes)
    external_id: Optional[str] = Field(default=None, max_length=100)
    personal_rating: Optional[int] = Field(default=None, ge=1, le=10)
    personal_notes: Optional[str] = Field(default=None, max_length=5000)
    purchase_info: Optional[PurchaseInfo] = None
    list_type: ListType = "owned"

    @field_validator("name", "brand")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class FragranceUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    brand: Optional[str] = Field(default=None, min_length=1, max_length=100)
    year: Optional[int] = Field(default=None, ge=1700, le=2100)
    concentration: Optional[str] = Field(default=None, max_length=50)
    notes: Optional[FragranceNotes] = None
    external_id: Optional[str] = Field(default=None, max_length=100)
    personal_rating: Optional[int] = Field(default=None, ge=1, le=10)
    personal_notes: Optional[str] = Field(default=None, max_length=5000)
    purchase_info: Optional[PurchaseInfo] = None
    list_type: Optional[ListType] = None


class RatingUpdate(BaseModel):
    personal_rating: int = Field(ge=1, le=10)
    personal_notes: Optional[str] = Field(default=None, max_length=5000)


class FragranceResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    name: str
    brand: str
    year: Optional[int] = None
    concentration: Optional[str] = None
    notes: FragranceNotes
    external_id: Optional[str] = None
    personal_rating: Optional[int] = None
    personal_notes: Optional[str] = None
    purchase_info: Optional[PurchaseInfo] = None
    list_type: ListType
    created_at: dt.datetime
    updated_at: dt.datetime

    @classmethod
    def from_model(cls, fragrance: Fragrance) -> "FragranceResponse":
        purchase_info = None
        if (
            fragrance.purchase_date is not None
            or fragrance.purchase_price is not None
            or fragrance.purchase_retailer is not None
        ):
            purchase_info = PurchaseInfo(
                date=fragrance.purchase_date,
                price=fragrance.purchase_price,
                retailer=fragrance.purchase_retailer,
            )
        return cls(
            id=fragrance.id,
            user_id=fragrance.user_id,
            name=fragrance.name,
            brand=fragrance.brand,
            year=fragrance.year,
            concentration=fragrance.concentration,
            notes=FragranceNotes(
                top=fragrance.top_notes or [],
                middle=fragrance.middle_notes or [],
                base=fragrance.base_notes or [],
            ),
            external_id=fragrance.external_id,
            personal_rating=fragrance.personal_rating,
            personal_notes=fragrance.personal_notes,
            purchase_info=purchase_info,
            list_type=fragrance.list_type,
            created_at=fragrance.created_at,
            updated_at=fragrance.updated_at,
        )
