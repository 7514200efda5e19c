"""
Fragrance Tracker Backend: Data Access Layer
=============================================

What:  Thin query objects over the ORM models.
How:   Each repository is constructed with the AsyncSession of the current
       unit of work. Repositories flush but never commit: the transaction
       boundary belongs to the caller (request dependency or sweep item).

Repository Inventory:
    - FragranceRepository:   catalog CRUD, filtered/paginated listing
    - InventoryRepository:   ledger rows, atomic level decrement, low stock
    - UsageEventRepository:  append-only usage log, window scans
    - DailyWearRepository:   wear days and their entries
"""

from fragrance_tracker.repositories.fragrance import FragranceRepository
from fragrance_tracker.repositories.inventory import InventoryRepository
from fragrance_tracker.repositories.usage import UsageEventRepository
from fragrance_tracker.repositories.daily_wear import DailyWearRepository

__all__ = [
    "FragranceRepository",
    "InventoryRepository",
    "UsageEventRepository",
    "DailyWearRepository",
]
