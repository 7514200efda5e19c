"""
Fragrance Tracker Backend: ORM Models
======================================

Importing this package registers every table on `Base.metadata`
(used by Alembic autogenerate and `init_models()`).
"""

from fragrance_tracker.models.fragrance import Fragrance, LIST_TYPES
from fragrance_tracker.models.inventory import InventoryRecord
from fragrance_tracker.models.usage import UsageEvent
from fragrance_tracker.models.daily_wear import DailyWear, DailyWearEntry

__all__ = [
    "Fragrance",
    "LIST_TYPES",
    "InventoryRecord",
    "UsageEvent",
    "DailyWear",
    "DailyWearEntry",
]
