"""
Fragrance Tracker Backend: Remaining-Days Estimator Tests
==========================================================

Pure-function tests; no database.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

import pytest

from fragrance_tracker.services import estimator

TODAY = date(2026, 3, 15)


@dataclass
class Event:
    date: date
    spray_count: int
    estimated_usage_ml: Optional[float] = None


class TestConversions:

    def test_sprays_convert_at_a_tenth_of_a_millilitre(self):
        assert estimator.usage_ml(5) == pytest.approx(0.5)

    def test_explicit_millilitres_win_over_sprays(self):
        assert estimator.usage_ml(5, 1.2) == pytest.approx(1.2)

    def test_zero_millilitres_fall_back_to_sprays(self):
        assert estimator.usage_ml(3, 0) == pytest.approx(0.3)

    def test_percent_delta_is_relative_to_bottle(self):
        assert estimator.percent_delta(0.5, 100) == pytest.approx(0.5)
        assert estimator.percent_delta(5, 50) == pytest.approx(10)

    def test_remaining_ml(self):
        assert estimator.remaining_ml(50, 100) == pytest.approx(50)
        assert estimator.remaining_ml(25, 200) == pytest.approx(50)


class TestEstimateRemainingDays:

    def test_empty_bottle_has_zero_days(self):
        events = [Event(TODAY, 5)]
        assert estimator.estimate_remaining_days(0, 100, events, TODAY) == 0

    def test_no_recent_usage_uses_baseline(self):
        # 50ml left at 0.5ml/day
        assert estimator.estimate_remaining_days(50, 100, [], TODAY) == 100

    def test_average_over_distinct_usage_days(self):
        events = [
            Event(TODAY - timedelta(days=3), 3, 0.3),
            Event(TODAY - timedelta(days=1), 5, 0.5),
        ]
        # 0.8ml over 2 days → 0.4ml/day → 50 / 0.4
        assert estimator.estimate_remaining_days(50, 100, events, TODAY) == 125

    def test_several_events_on_one_day_count_once(self):
        events = [
            Event(TODAY, 2, 0.2),
            Event(TODAY, 2, 0.2),
        ]
        # 0.4ml on 1 day → 50 / 0.4
        assert estimator.estimate_remaining_days(50, 100, events, TODAY) == 125

    def test_events_outside_window_are_ignored(self):
        events = [Event(TODAY - timedelta(days=31), 50, 5.0)]
        assert estimator.estimate_remaining_days(50, 100, events, TODAY) == 100

    def test_window_includes_its_first_day(self):
        events = [Event(TODAY - timedelta(days=30), 10, 1.0)]
        assert estimator.estimate_remaining_days(50, 100, events, TODAY) == 50

    def test_future_events_are_ignored(self):
        events = [Event(TODAY + timedelta(days=1), 10, 1.0)]
        assert estimator.estimate_remaining_days(50, 100, events, TODAY) == 100

    def test_result_is_floored(self):
        # 10ml at 3 sprays (0.3ml) per day → 33.33
        events = [Event(TODAY, 3)]
        assert estimator.estimate_remaining_days(10, 100, events, TODAY) == 33

    def test_spray_float_noise_does_not_lose_a_day(self):
        # 0.3 * 100 is not exactly 30 in binary floating point
        events = [Event(TODAY, 3)]
        assert estimator.estimate_remaining_days(9, 100, events, TODAY) == 30

    def test_repeated_estimates_are_equal(self):
        events = [Event(TODAY - timedelta(days=2), 4)]
        first = estimator.estimate_remaining_days(73.5, 100, events, TODAY)
        second = estimator.estimate_remaining_days(73.5, 100, events, TODAY)
        assert first == second

    def test_today_defaults_to_local_date(self):
        events = [Event(date.today(), 5)]
        assert estimator.estimate_remaining_days(50, 100, events) == 100

    def test_near_zero_usage_is_capped(self):
        events = [Event(TODAY, 1, 1e-18)]
        assert estimator.estimate_remaining_days(100, 100, events, TODAY) == estimator.MAX_ESTIMATE_DAYS

    def test_infinite_projection_is_capped(self):
        events = [Event(TODAY, 1, 5e-324)]
        assert estimator.estimate_remaining_days(100, 10000, events, TODAY) == estimator.MAX_ESTIMATE_DAYS
