"""Tests for the pure aggregation functions - no storage involved."""

from datetime import date

import pytest
import pytz

from puff_tracker.config import config
from puff_tracker.core import statistics
from puff_tracker.core.models import DailyLog, DayStatus, TimePeriod, YearMonth


def _log(counts, timestamps=None):
    return DailyLog(
        {date.fromisoformat(day): count for day, count in counts.items()},
        {date.fromisoformat(day): stamps for day, stamps in (timestamps or {}).items()}
    )


# =============================================================================
# TEST: MONTHLY BREAKDOWN
# =============================================================================


class TestMonthlyBreakdown:

    def test_filters_and_sorts_by_day(self):
        log = _log({"2024-03-05": 3, "2024-03-02": 7, "2024-02-29": 4, "2023-03-03": 1})

        breakdown = statistics.monthly_breakdown(log, YearMonth(2024, 3))

        assert [entry.day for entry in breakdown.entries] == [date(2024, 3, 2), date(2024, 3, 5)]
        assert breakdown.total == 10

    def test_empty_month(self):
        breakdown = statistics.monthly_breakdown(_log({"2024-03-05": 3}), YearMonth(2024, 4))
        assert len(breakdown) == 0
        assert breakdown.total == 0
        assert breakdown.to_display() == []


# =============================================================================
# TEST: AVERAGES
# =============================================================================


class TestAverages:

    LOG = {"2024-02-29": 2, "2024-03-04": 4, "2024-03-06": 6, "2024-03-11": 10}

    def test_daily_average(self):
        assert statistics.daily_average(_log(self.LOG)) == pytest.approx(22 / 4)

    def test_daily_average_empty(self):
        assert statistics.daily_average(DailyLog()) == 0

    def test_weekly_average_uses_present_days(self):
        # 2024-03-04 is a Monday; the week runs through Sunday 2024-03-10
        assert statistics.weekly_average(_log(self.LOG), date(2024, 3, 7)) == pytest.approx(5.0)

    def test_weekly_average_reference_on_sunday(self):
        assert statistics.weekly_average(_log(self.LOG), date(2024, 3, 10)) == pytest.approx(5.0)

    def test_weekly_average_empty_window(self):
        assert statistics.weekly_average(_log(self.LOG), date(2024, 3, 20)) == 0

    def test_monthly_average(self):
        assert statistics.monthly_average(_log(self.LOG), date(2024, 3, 15)) == pytest.approx(20 / 3)

    def test_monthly_average_december(self):
        log = _log({"2023-12-31": 3, "2024-01-01": 9})
        assert statistics.monthly_average(log, date(2023, 12, 1)) == pytest.approx(3.0)


# =============================================================================
# TEST: STREAKS
# =============================================================================


class TestCurrentStreak:

    def test_gaps_count_as_qualifying(self):
        log = _log({"2024-03-01": 12, "2024-03-03": 4})
        assert statistics.current_streak(log, date(2024, 3, 5), daily_goal=10) == 4

    def test_day_over_goal_breaks(self):
        log = _log({"2024-03-05": 11})
        assert statistics.current_streak(log, date(2024, 3, 5), daily_goal=10) == 0

    def test_day_at_goal_qualifies(self):
        log = _log({"2024-03-05": 10, "2024-03-04": 11})
        assert statistics.current_streak(log, date(2024, 3, 5), daily_goal=10) == 1

    def test_stops_at_floor_date(self):
        streak = statistics.current_streak(DailyLog(), date(2024, 3, 5), daily_goal=10,
                                           floor_date=date(2024, 3, 1))
        assert streak == 5

    def test_default_floor(self):
        streak = statistics.current_streak(DailyLog(), date(2020, 1, 10), daily_goal=10)
        assert streak == 10


# =============================================================================
# TEST: WEEKLY IMPROVEMENT
# =============================================================================


class TestWeeklyImprovement:

    def test_decrease_is_positive(self):
        log = _log({"2024-03-01": 10, "2024-03-03": 10, "2024-03-10": 5, "2024-03-14": 10})
        assert statistics.weekly_improvement(log, date(2024, 3, 14)) == 25

    def test_increase_is_negative(self):
        log = _log({"2024-03-07": 10, "2024-03-14": 15})
        assert statistics.weekly_improvement(log, date(2024, 3, 14)) == -50

    def test_rounds_half_up(self):
        log = _log({"2024-03-07": 8, "2024-03-14": 7})
        assert statistics.weekly_improvement(log, date(2024, 3, 14)) == 13

    def test_no_previous_week(self):
        log = _log({"2024-03-14": 7})
        assert statistics.weekly_improvement(log, date(2024, 3, 14)) == 0


# =============================================================================
# TEST: TIME OF DAY
# =============================================================================


class TestTimeOfDay:

    def test_no_timestamps(self):
        log = _log({"2024-03-01": 2})
        assert statistics.peak_usage_hour(log) is None
        assert statistics.most_active_time_period(log) is None

    def test_tie_goes_to_first_bucket(self):
        log = _log({"2024-03-01": 4}, {"2024-03-01": [
            "2024-03-01T14:05:00+00:00",
            "2024-03-01T09:10:00+00:00",
            "2024-03-01T14:40:00+00:00",
            "2024-03-01T09:55:00+00:00",
        ]})
        assert statistics.peak_usage_hour(log) == 9
        assert statistics.most_active_time_period(log) == TimePeriod.MORNING

    def test_periods(self):
        log = _log({"2024-03-01": 3, "2024-03-02": 1}, {
            "2024-03-01": ["2024-03-01T02:00:00", "2024-03-01T23:59:00", "2024-03-01T05:59:00"],
            "2024-03-02": ["2024-03-02T18:00:00"],
        })
        distribution = statistics.period_distribution(log)
        assert distribution[TimePeriod.NIGHT] == 2
        assert distribution[TimePeriod.EVENING] == 2
        assert statistics.most_active_time_period(log) == TimePeriod.EVENING

    def test_malformed_timestamp_skipped(self):
        log = _log({"2024-03-01": 2}, {"2024-03-01": ["yesterday", "2024-03-01T20:00:00"]})
        assert statistics.peak_usage_hour(log) == 20

    def test_utc_z_timestamps_bucketed_in_local_zone(self, monkeypatch):
        monkeypatch.setattr(config, "timezone", pytz.timezone("America/New_York"))
        log = _log({"2024-03-01": 3}, {"2024-03-01": [
            "2024-03-01T14:05:00.000Z",
            "2024-03-01T14:40:00.000Z",
            "2024-03-01T23:15:00.000Z",
        ]})
        assert statistics.peak_usage_hour(log) == 9
        assert statistics.most_active_time_period(log) == TimePeriod.MORNING


# =============================================================================
# TEST: COST AND STATUS
# =============================================================================


class TestCost:

    def test_cost_spent(self):
        assert statistics.cost_spent(5, 0.50) == pytest.approx(2.50)

    def test_cost_saved_against_baseline(self):
        log = _log({"2024-03-01": 5, "2024-03-02": 25})
        assert statistics.cost_saved(log, 0.50) == pytest.approx(5.0)

    def test_cost_saved_never_negative(self):
        log = _log({"2024-03-01": 50})
        assert statistics.cost_saved(log, 0.50) == 0

    def test_custom_baseline(self):
        log = _log({"2024-03-01": 5})
        assert statistics.cost_saved(log, 1.0, baseline_daily_average=8) == pytest.approx(3.0)


class TestDayStatusAndTrend:

    def test_day_status(self):
        log = _log({"2024-03-01": 10, "2024-03-02": 11})
        assert statistics.day_status(log, date(2024, 3, 1), 10) == DayStatus.WITHIN_GOAL
        assert statistics.day_status(log, date(2024, 3, 2), 10) == DayStatus.OVER_GOAL
        assert statistics.day_status(log, date(2024, 3, 3), 10) == DayStatus.EMPTY

    def test_trend_is_zero_filled(self):
        log = _log({"2024-02-28": 2, "2024-03-01": 5})
        assert statistics.trend(log, date(2024, 3, 1), days=3) == [
            (date(2024, 2, 28), 2), (date(2024, 2, 29), 0), (date(2024, 3, 1), 5)
        ]

    def test_trend_requires_positive_days(self):
        with pytest.raises(ValueError):
            statistics.trend(DailyLog(), date(2024, 3, 1), days=0)
