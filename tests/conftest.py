"""
Fragrance Tracker Backend: Test Configuration (conftest.py)
============================================================

What:  Shared pytest fixtures for the test suite.
How:   Every test gets its own SQLite file under pytest's tmp_path, created
       with the ORM metadata. The external search client runs on
       `httpx.MockTransport`, so no test touches the network.

Fixture Hierarchy (all function-scoped):
    engine ─▶ session_factory ─▶ db          (service-level tests)
                              └─▶ app ─▶ client  (HTTP tests)
    search_service: FragranceSearchService over a mock transport
    make_fragrance / make_inventory: seed helpers
"""

import os
import tempfile
from datetime import date, timedelta
from typing import AsyncGenerator, Optional

# Override settings BEFORE any application import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///" + os.path.join(
    tempfile.mkdtemp(prefix="fragrance_tracker_test_"), "unused.db"
)
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["SWEEP_ENABLED"] = "false"
os.environ["SEARCH_CACHE_ENABLED"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fragrance_tracker.config import settings
from fragrance_tracker.database import build_engine, init_models
from fragrance_tracker.models import Fragrance, InventoryRecord
from fragrance_tracker.services.search_service import FragranceSearchService, SearchCache

DEFAULT_USER = settings.default_user_id


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_models(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """
    A session for service-level tests.

    Services only flush; tests commit when they need a second session to
    see the data (for example the sweep).
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


# ══════════════════════════════════════════════════════════════════════════
# Seed Helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_fragrance():
    async def _make(
        session: AsyncSession,
        name: str = "Aventus",
        brand: str = "Creed",
        user_id: str = DEFAULT_USER,
        list_type: str = "owned",
        personal_rating: Optional[int] = None,
    ) -> Fragrance:
        fragrance = Fragrance(
            user_id=user_id,
            name=name,
            brand=brand,
            list_type=list_type,
            personal_rating=personal_rating,
        )
        session.add(fragrance)
        await session.flush()
        return fragrance

    return _make


@pytest.fixture
def make_inventory():
    async def _make(
        session: AsyncSession,
        fragrance: Fragrance,
        bottle_size_ml: float = 100.0,
        level: float = 100.0,
        threshold: float = 20.0,
        tracking: bool = True,
        estimate: Optional[int] = None,
    ) -> InventoryRecord:
        record = InventoryRecord(
            fragrance_id=fragrance.id,
            bottle_size_ml=bottle_size_ml,
            current_level_percent=level,
            purchase_date=date.today() - timedelta(days=90),
            usage_tracking_enabled=tracking,
            low_threshold_percent=threshold,
            estimated_days_remaining=estimate,
        )
        session.add(record)
        await session.flush()
        return record

    return _make


# ══════════════════════════════════════════════════════════════════════════
# External Search
# ══════════════════════════════════════════════════════════════════════════

FRAGRANTICA_URL = "https://fragrantica.test/api/search"
PARFUMO_URL = "https://parfumo.test/api/search"


def build_search_service(handler, cache: Optional[SearchCache] = None) -> FragranceSearchService:
    """Search service over a mock transport with instant retries."""
    return FragranceSearchService(
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        cache=cache or SearchCache(ttl_seconds=3600),
        fragrantica_url=FRAGRANTICA_URL,
        parfumo_url=PARFUMO_URL,
        max_attempts=2,
        min_wait=0,
        max_wait=0,
        jitter=0,
    )


def offline_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"error": "offline"})


@pytest.fixture
def make_search_service():
    return build_search_service


@pytest_asyncio.fixture
async def search_service():
    service = build_search_service(offline_handler)
    yield service
    await service.aclose()


# ══════════════════════════════════════════════════════════════════════════
# HTTP Client
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory, search_service):
    from fragrance_tracker.main import create_app

    return create_app(session_factory=session_factory, search_service=search_service)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    The lifespan does not run, so the scheduler stays stopped and the
    module-level engine is never touched.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
