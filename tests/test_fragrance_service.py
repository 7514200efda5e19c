"""
Fragrance Tracker Backend: Fragrance Catalog Tests
===================================================

What:  Create / read / filter / update / delete through FragranceService.
"""

import uuid
from datetime import date

import pytest
from sqlalchemy import func, select

from fragrance_tracker.config import settings
from fragrance_tracker.exceptions import NotFoundError
from fragrance_tracker.models import InventoryRecord, UsageEvent
from fragrance_tracker.repositories import UsageEventRepository
from fragrance_tracker.schemas.fragrance import (
    FragranceCreate,
    FragranceNotes,
    FragranceUpdate,
    PurchaseInfo,
    RatingUpdate,
)
from fragrance_tracker.services.fragrance_service import FragranceService

USER = settings.default_user_id


class TestCreateAndGet:

    def setup_method(self):
        self.service = FragranceService()

    @pytest.mark.asyncio
    async def test_notes_and_purchase_round_trip(self, db):
        created = await self.service.create(
            db,
            USER,
            FragranceCreate(
                name=" Sauvage ",
                brand="Dior",
                concentration="EDT",
                notes=FragranceNotes(top=["Bergamot", " "], base=["Ambroxan"]),
                purchase_info=PurchaseInfo(date=date(2025, 12, 24), price=95.0, retailer="Sephora"),
            ),
        )

        fetched = await self.service.get(db, USER, created.id)

        assert fetched.name == "Sauvage"
        assert fetched.notes.top == ["Bergamot"]
        assert fetched.notes.middle == []
        assert fetched.purchase_info.retailer == "Sephora"
        assert fetched.list_type == "owned"

    @pytest.mark.asyncio
    async def test_without_purchase_info_reports_none(self, db):
        created = await self.service.create(db, USER, FragranceCreate(name="Aventus", brand="Creed"))
        assert created.purchase_info is None

    @pytest.mark.asyncio
    async def test_other_users_fragrance_is_not_found(self, db, make_fragrance):
        foreign = await make_fragrance(db, user_id="other")

        with pytest.raises(NotFoundError):
            await self.service.get(db, USER, foreign.id)

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, db):
        with pytest.raises(NotFoundError):
            await self.service.get(db, USER, uuid.uuid4())


class TestList:

    def setup_method(self):
        self.service = FragranceService()

    @pytest.mark.asyncio
    async def test_filters_by_brand_rating_and_list(self, db, make_fragrance):
        await make_fragrance(db, name="Sauvage", brand="Dior", personal_rating=8)
        await make_fragrance(db, name="Fahrenheit", brand="Dior", personal_rating=5)
        await make_fragrance(db, name="Aventus", brand="Creed", personal_rating=9)
        await make_fragrance(db, name="Oud Wood", brand="Tom Ford", list_type="wishlist")

        dior_good, _ = await self.service.list(db, USER, brand="dior", min_rating=7)
        wishlist, _ = await self.service.list(db, USER, list_type="wishlist")
        searched, _ = await self.service.list(db, USER, search="ven")

        assert [f.name for f in dior_good] == ["Sauvage"]
        assert [f.name for f in wishlist] == ["Oud Wood"]
        assert [f.name for f in searched] == ["Aventus"]

    @pytest.mark.asyncio
    async def test_low_inventory_filter(self, db, make_fragrance, make_inventory):
        low = await make_fragrance(db, name="Low")
        full = await make_fragrance(db, name="Full")
        await make_fragrance(db, name="Untracked")
        await make_inventory(db, low, level=5)
        await make_inventory(db, full, level=90)

        only_low, _ = await self.service.list(db, USER, has_low_inventory=True)
        not_low, _ = await self.service.list(db, USER, has_low_inventory=False, sort_by="name", sort_order="asc")

        assert [f.name for f in only_low] == ["Low"]
        assert [f.name for f in not_low] == ["Full", "Untracked"]

    @pytest.mark.asyncio
    async def test_sorting_puts_unrated_last(self, db, make_fragrance):
        await make_fragrance(db, name="Unrated")
        await make_fragrance(db, name="Seven", personal_rating=7)
        await make_fragrance(db, name="Nine", personal_rating=9)

        rows, _ = await self.service.list(db, USER, sort_by="rating", sort_order="asc")

        assert [f.name for f in rows] == ["Seven", "Nine", "Unrated"]

    @pytest.mark.asyncio
    async def test_pagination(self, db, make_fragrance):
        for index in range(5):
            await make_fragrance(db, name=f"F{index}")

        rows, pagination = await self.service.list(db, USER, page=2, limit=2, sort_by="name", sort_order="asc")

        assert [f.name for f in rows] == ["F2", "F3"]
        assert pagination.total == 5
        assert pagination.total_pages == 3

    @pytest.mark.asyncio
    async def test_empty_catalog_has_zero_pages(self, db):
        rows, pagination = await self.service.list(db, USER)
        assert rows == []
        assert pagination.total_pages == 0


class TestUpdateAndDelete:

    def setup_method(self):
        self.service = FragranceService()

    @pytest.mark.asyncio
    async def test_partial_update_leaves_other_fields(self, db, make_fragrance):
        fragrance = await make_fragrance(db, personal_rating=6)

        updated = await self.service.update(db, USER, fragrance.id, FragranceUpdate(concentration="Parfum"))

        assert updated.concentration == "Parfum"
        assert updated.personal_rating == 6
        assert updated.name == "Aventus"

    @pytest.mark.asyncio
    async def test_explicit_null_clears_rating(self, db, make_fragrance):
        fragrance = await make_fragrance(db, personal_rating=6)

        updated = await self.service.update(
            db, USER, fragrance.id, FragranceUpdate.model_validate({"personal_rating": None})
        )

        assert updated.personal_rating is None

    @pytest.mark.asyncio
    async def test_required_fields_cannot_be_cleared(self, db, make_fragrance):
        fragrance = await make_fragrance(db)

        updated = await self.service.update(
            db, USER, fragrance.id, FragranceUpdate.model_validate({"name": None, "brand": None})
        )

        assert updated.name == "Aventus"
        assert updated.brand == "Creed"

    @pytest.mark.asyncio
    async def test_rating_update(self, db, make_fragrance):
        fragrance = await make_fragrance(db)

        updated = await self.service.update_rating(
            db, USER, fragrance.id, RatingUpdate(personal_rating=10, personal_notes="Signature scent")
        )

        assert updated.personal_rating == 10
        assert updated.personal_notes == "Signature scent"

    @pytest.mark.asyncio
    async def test_delete_cascades_inventory_and_usage(self, db, make_fragrance, make_inventory):
        fragrance = await make_fragrance(db)
        await make_inventory(db, fragrance)
        await UsageEventRepository(db).append(fragrance.id, 3, date(2026, 3, 1))
        await db.commit()

        await self.service.delete(db, USER, fragrance.id)
        await db.commit()

        inventory = await db.execute(select(func.count(InventoryRecord.id)))
        events = await db.execute(select(func.count(UsageEvent.id)))
        assert inventory.scalar() == 0
        assert events.scalar() == 0
        with pytest.raises(NotFoundError):
            await self.service.get(db, USER, fragrance.id)

    @pytest.mark.asyncio
    async def test_delete_of_other_users_fragrance_is_not_found(self, db, make_fragrance):
        foreign = await make_fragrance(db, user_id="other")

        with pytest.raises(NotFoundError):
            await self.service.delete(db, USER, foreign.id)
