"""
Fragrance Tracker Backend: Fragrance Catalog Service
=====================================================

What:  CRUD over a user's fragrances (owned, tried, wishlist).
Who:   /api/fragrances route handlers.

Ownership:
    Every call is scoped to the acting user. A fragrance that belongs to
    somebody else is reported exactly like a missing one (NotFoundError),
    so ids of other users' rows are not confirmed to exist.
"""

import logging
import math
import uuid
from typing import Any, Dict, List, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fragrance_tracker.exceptions import DatabaseError, NotFoundError
from fragrance_tracker.models.fragrance import Fragrance
from fragrance_tracker.repositories import FragranceRepository
from fragrance_tracker.schemas.common import Pagination
from fragrance_tracker.schemas.fragrance import (
    FragranceCreate,
    FragranceResponse,
    FragranceUpdate,
    RatingUpdate,
)

logger = logging.getLogger(__name__)


def _flatten(data: Dict[str, Any]) -> Dict[str, Any]:
    """Map the API shape (notes / purchase_info objects) onto table columns."""
    fields = dict(data)
    if "notes" in fields:
        notes = fields.pop("notes") or {}
        fields["top_notes"] = notes.get("top", [])
        fields["middle_notes"] = notes.get("middle", [])
        fields["base_notes"] = notes.get("base", [])
    if "purchase_info" in fields:
        purchase = fields.pop("purchase_info") or {}
        fields["purchase_date"] = purchase.get("date")
        fields["purchase_price"] = purchase.get("price")
        fields["purchase_retailer"] = purchase.get("retailer")
    return fields


class FragranceService:

    async def create(self, db: AsyncSession, user_id: str, data: FragranceCreate) -> FragranceResponse:
        try:
            fields = _flatten(data.model_dump())
            fragrance = await FragranceRepository(db).add(Fragrance(user_id=user_id, **fields))
            logger.info("Fragrance created: %s (%s / %s)", fragrance.id, fragrance.brand, fragrance.name)
            return FragranceResponse.from_model(fragrance)
        except SQLAlchemyError as e:
            logger.error("Database error creating fragrance: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the fragrance. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get(self, db: AsyncSession, user_id: str, fragrance_id: uuid.UUID) -> FragranceResponse:
        fragrance = await self._require(db, user_id, fragrance_id)
        return FragranceResponse.from_model(fragrance)

    async def list(
        self,
        db: AsyncSession,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        **filters: Any,
    ) -> Tuple[List[FragranceResponse], Pagination]:
        """
        One page of the user's fragrances.

        Filters (all optional): brand, list_type, min_rating, max_rating,
        has_low_inventory, search, sort_by, sort_order.
        """
        try:
            rows, total = await FragranceRepository(db).list(
                user_id=user_id, page=page, limit=limit, **filters
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing fragrances: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve fragrances. Please try again.",
                context={"error_type": type(e).__name__},
            )
        pagination = Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        )
        return [FragranceResponse.from_model(row) for row in rows], pagination

    async def update(
        self,
        db: AsyncSession,
        user_id: str,
        fragrance_id: uuid.UUID,
        data: FragranceUpdate,
    ) -> FragranceResponse:
        """Partial update; an explicit `personal_rating: null` clears the rating."""
        fragrance = await self._require(db, user_id, fragrance_id)
        fields = data.model_dump(exclude_unset=True)
        # Required columns cannot be cleared
        for required in ("name", "brand", "list_type"):
            if fields.get(required, "") is None:
                fields.pop(required)
        try:
            await FragranceRepository(db).update(fragrance, _flatten(fields))
        except SQLAlchemyError as e:
            logger.error("Database error updating fragrance %s: %s", fragrance_id, str(e))
            raise DatabaseError(
                message="Could not update the fragrance. Please try again.",
                context={"fragrance_id": str(fragrance_id)},
            )
        return FragranceResponse.from_model(fragrance)

    async def update_rating(
        self,
        db: AsyncSession,
        user_id: str,
        fragrance_id: uuid.UUID,
        data: RatingUpdate,
    ) -> FragranceResponse:
        fields: Dict[str, Any] = {"personal_rating": data.personal_rating}
        if data.personal_notes is not None:
            fields["personal_notes"] = data.personal_notes
        return await self.update(db, user_id, fragrance_id, FragranceUpdate(**fields))

    async def delete(self, db: AsyncSession, user_id: str, fragrance_id: uuid.UUID) -> None:
        """Remove a fragrance with its inventory, usage log and wear entries."""
        fragrance = await self._require(db, user_id, fragrance_id)
        try:
            await FragranceRepository(db).delete(fragrance)
        except SQLAlchemyError as e:
            logger.error("Database error deleting fragrance %s: %s", fragrance_id, str(e))
            raise DatabaseError(
                message="Could not delete the fragrance. Please try again.",
                context={"fragrance_id": str(fragrance_id)},
            )
        logger.info("Fragrance deleted: %s", fragrance_id)

    async def _require(self, db: AsyncSession, user_id: str, fragrance_id: uuid.UUID) -> Fragrance:
        try:
            fragrance = await FragranceRepository(db).get(fragrance_id, user_id=user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching fragrance %s: %s", fragrance_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the fragrance. Please try again.",
                context={"fragrance_id": str(fragrance_id)},
            )
        if fragrance is None:
            raise NotFoundError(resource="fragrance", resource_id=str(fragrance_id))
        return fragrance


# ── Singleton Instance ────────────────────────────────────────────────────
fragrance_service = FragranceService()
