"""
Fragrance Tracker Backend: Application Package
===============================================

What:  Personal fragrance-collection tracker exposed as a JSON REST API.
Who:   Imported by uvicorn (`fragrance_tracker.main:app`), Alembic and pytest.

Architecture Note:
    The backend is a thin layered service:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, response envelope
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ledger, estimator, wear, search
    ├─────────────────────────────────────┤
    │      Repositories (Data Access)     │  ← queries over one AsyncSession
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← async SQLAlchemy over SQLite
    └─────────────────────────────────────┘

    A background SweepScheduler keeps remaining-days estimates fresh.
"""

__version__ = "1.0.0"
