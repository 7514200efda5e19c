# Services package init
"""
Fragrance Tracker Backend: Services Layer
==========================================

What:  Business rules sitting between routes (HTTP) and repositories (SQL).
How:   Services are stateless; each call receives the AsyncSession of the
       current unit of work. Module-level singletons are imported by routes.

Service Inventory:
    - estimator:          pure remaining-days projection
    - InventoryService:   ledger creation, usage, corrective edits, low stock
    - FragranceService:   catalog CRUD, filtering and pagination
    - CalendarService:    daily wear log, history and statistics
    - FragranceSearchService: external lookup with cache and source fallback
    - SweepScheduler:     daily APScheduler job that refreshes estimates
"""
