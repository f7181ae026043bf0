#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Puff Tracker - Statistics
Pure aggregation functions over a DailyLog

Nothing here touches storage or the clock; every function takes the log
and its reference date explicitly.

Version: 1.2.0
"""

import math
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from puff_tracker.core.models import (
    DailyLog, DayStatus, MonthlyBreakdown, MonthlyEntry, TimePeriod, YearMonth
)
from puff_tracker.config import TrackerDefaults
from puff_tracker.utils.datetime_utils import week_start

DEFAULT_STREAK_FLOOR = TrackerDefaults.streak_floor_date
DEFAULT_BASELINE_DAILY_AVERAGE = TrackerDefaults.baseline_daily_average

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def _window_average(log: DailyLog, start: date, end: date) -> float:
    counts = [count for day, count in log.counts.items() if start <= day <= end]
    if not counts:
        return 0.0
    return sum(counts) / len(counts)

def _window_total(log: DailyLog, start: date, end: date) -> int:
    return sum(count for day, count in log.counts.items() if start <= day <= end)

def monthly_breakdown(log: DailyLog, month: YearMonth) -> MonthlyBreakdown:
    entries = [
        MonthlyEntry(day=day, count=count)
        for day, count in log.items()
        if month.contains(day)
    ]
    return MonthlyBreakdown(month=month, entries=entries)

def daily_average(log: DailyLog) -> float:
    if not log:
        return 0.0
    return log.total / len(log)

def weekly_average(log: DailyLog, reference_date: date) -> float:
    """Average over the present days of the Monday-Sunday week"""
    start = week_start(reference_date)
    return _window_average(log, start, start + timedelta(days=6))

def monthly_average(log: DailyLog, reference_date: date) -> float:
    start = reference_date.replace(day=1)
    if start.month == 12:
        next_month = start.replace(year=start.year + 1, month=1)
    else:
        next_month = start.replace(month=start.month + 1)
    return _window_average(log, start, next_month - timedelta(days=1))

def current_streak(log: DailyLog, reference_date: date, daily_goal: int,
                   floor_date: date = DEFAULT_STREAK_FLOOR) -> int:
    """Consecutive days at or under goal, walking back from reference_date.

    Days without entries count as zero and qualify. The walk never goes
    before floor_date.
    """
    streak = 0
    check_date = reference_date
    while check_date >= floor_date:
        if log.count(check_date) > daily_goal:
            break
        streak += 1
        check_date -= timedelta(days=1)
    return streak

def weekly_improvement(log: DailyLog, reference_date: date) -> int:
    """Percent drop of the trailing 7 days against the 7 before; 0 without history"""
    current_start = reference_date - timedelta(days=6)
    previous_end = current_start - timedelta(days=1)
    previous_start = previous_end - timedelta(days=6)

    current = _window_total(log, current_start, reference_date)
    previous = _window_total(log, previous_start, previous_end)
    if previous == 0:
        return 0
    return _round_half_up((previous - current) / previous * 100)

def hourly_distribution(log: DailyLog) -> Dict[int, int]:
    buckets = {hour: 0 for hour in range(24)}
    for timestamp in log.all_timestamps():
        buckets[timestamp.hour] += 1
    return buckets

def period_distribution(log: DailyLog) -> Dict[TimePeriod, int]:
    buckets = {period: 0 for period in TimePeriod}
    for timestamp in log.all_timestamps():
        buckets[TimePeriod.for_hour(timestamp.hour)] += 1
    return buckets

def _first_max(buckets: Dict) -> Optional[object]:
    best_key, best_value = None, 0
    for key, value in buckets.items():
        if value > best_value:
            best_key, best_value = key, value
    return best_key

def peak_usage_hour(log: DailyLog) -> Optional[int]:
    """Busiest hour of day, earliest hour on ties; None without timestamps"""
    return _first_max(hourly_distribution(log))

def most_active_time_period(log: DailyLog) -> Optional[TimePeriod]:
    return _first_max(period_distribution(log))

def cost_spent(count: int, cost_per_unit: float) -> float:
    return count * cost_per_unit

def cost_saved(log: DailyLog, cost_per_unit: float,
               baseline_daily_average: int = DEFAULT_BASELINE_DAILY_AVERAGE) -> float:
    """Savings against an assumed prior habit of baseline events per tracked day"""
    avoided = max(0, len(log) * baseline_daily_average - log.total)
    return avoided * cost_per_unit

def day_status(log: DailyLog, day: date, daily_goal: int) -> DayStatus:
    count = log.count(day)
    if count == 0:
        return DayStatus.EMPTY
    if count <= daily_goal:
        return DayStatus.WITHIN_GOAL
    return DayStatus.OVER_GOAL

def trend(log: DailyLog, reference_date: date, days: int = 7) -> List[Tuple[date, int]]:
    """Zero-filled series for the trailing window, oldest first"""
    if days <= 0:
        raise ValueError("days must be positive")
    start = reference_date - timedelta(days=days - 1)
    return [(start + timedelta(days=offset), log.count(start + timedelta(days=offset)))
            for offset in range(days)]

__all__ = [
    'DEFAULT_STREAK_FLOOR',
    'DEFAULT_BASELINE_DAILY_AVERAGE',
    'monthly_breakdown',
    'daily_average',
    'weekly_average',
    'monthly_average',
    'current_streak',
    'weekly_improvement',
    'hourly_distribution',
    'period_distribution',
    'peak_usage_hour',
    'most_active_time_period',
    'cost_spent',
    'cost_saved',
    'day_status',
    'trend'
]
