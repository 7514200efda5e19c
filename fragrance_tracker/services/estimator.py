"""
Fragrance Tracker Backend: Remaining-Days Estimator
====================================================

What:  Pure functions that turn a fill level and recent usage into a
       remaining-days projection.
Who:   InventoryService (on creation, usage and level edits) and the
       periodic sweep.

Algorithm:
    1. level <= 0                       → 0
    2. keep events dated in [today - 30 days, today]
    3. no events in the window          → floor(remaining_ml / 0.5)
    4. avg = total_ml / distinct_usage_days
    5. avg <= 0                         → None (unbounded)
    6. otherwise                        → max(0, floor(remaining_ml / avg)),
                                          capped at MAX_ESTIMATE_DAYS

The average divides by the days the fragrance was actually worn, not by the
30 calendar days of the window. A bottle worn twice a month is projected at
its per-wear burn rate.
"""

import math
from datetime import date, timedelta
from typing import Iterable, Optional, Protocol

from fragrance_tracker.models.usage import SPRAY_TO_ML_RATIO

# Assumed daily consumption when there is no recent history
BASELINE_DAILY_USAGE_ML = 0.5

USAGE_WINDOW_DAYS = 30

# Ceiling for a projection; near-zero averages would otherwise exceed a
# 64-bit INTEGER column (or reach float infinity)
MAX_ESTIMATE_DAYS = 36500


class UsageLike(Protocol):
    date: date
    spray_count: int
    estimated_usage_ml: Optional[float]


def usage_ml(spray_count: int, estimated_usage_ml: Optional[float] = None) -> float:
    """Millilitres an event stands for; zero or missing falls back to sprays."""
    return estimated_usage_ml or spray_count * SPRAY_TO_ML_RATIO


def percent_delta(usage_ml_value: float, bottle_size_ml: float) -> float:
    return usage_ml_value / bottle_size_ml * 100


def remaining_ml(level_percent: float, bottle_size_ml: float) -> float:
    return level_percent / 100 * bottle_size_ml


def window_start(today: date) -> date:
    return today - timedelta(days=USAGE_WINDOW_DAYS)


def estimate_remaining_days(
    level_percent: float,
    bottle_size_ml: float,
    events: Iterable[UsageLike],
    today: Optional[date] = None,
) -> Optional[int]:
    """
    Project how many days of wear are left in a bottle.

    Args:
        level_percent:  current fill level, 0..100
        bottle_size_ml: bottle capacity
        events:         usage events; anything outside the trailing window
                        is ignored, so callers may pass a wider set
        today:          reference day, defaults to the local date

    Returns:
        Whole days remaining, or None when recorded usage never drains the
        bottle (unbounded).
    """
    if level_percent <= 0:
        return 0

    today = today or date.today()
    start = window_start(today)
    in_window = [event for event in events if start <= event.date <= today]

    left_ml = remaining_ml(level_percent, bottle_size_ml)

    if not in_window:
        return _floor_days(left_ml / BASELINE_DAILY_USAGE_ML)

    total_ml = sum(usage_ml(event.spray_count, event.estimated_usage_ml) for event in in_window)
    distinct_days = len({event.date for event in in_window})
    average_daily_ml = total_ml / max(distinct_days, 1)

    if average_daily_ml <= 0:
        return None

    return max(0, _floor_days(left_ml / average_daily_ml))


def _floor_days(days: float) -> int:
    if days >= MAX_ESTIMATE_DAYS:
        return MAX_ESTIMATE_DAYS
    # Spray-to-ml products carry binary float noise (3 * 0.1 != 0.3)
    return math.floor(round(days, 6))
