#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Puff Tracker - Core Data Models
Data models with validation and typing

Version: 1.2.0
"""

import re
from datetime import date, datetime
from typing import Dict, List, Optional, Any, Tuple
from dataclasses import dataclass, field, asdict
from enum import Enum
import logging

from puff_tracker.utils.datetime_utils import format_display, parse_date_key, parse_timestamp

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class DayStatus(Enum):
    """Color coding of a calendar day against the daily goal"""
    EMPTY = "empty"
    WITHIN_GOAL = "within_goal"
    OVER_GOAL = "over_goal"

class TimePeriod(Enum):
    """Named quarters of the day, in bucket order"""
    MORNING = "Morning"      # 06:00 - 12:00
    AFTERNOON = "Afternoon"  # 12:00 - 18:00
    EVENING = "Evening"      # 18:00 - 24:00
    NIGHT = "Night"          # 00:00 - 06:00

    @classmethod
    def for_hour(cls, hour: int) -> "TimePeriod":
        if 6 <= hour < 12:
            return cls.MORNING
        if 12 <= hour < 18:
            return cls.AFTERNOON
        if hour >= 18:
            return cls.EVENING
        return cls.NIGHT

# ===== VALIDATION HELPERS =====

class ValidationError(Exception):
    """Invalid data"""
    pass

_YEAR_MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")

# ===== VALUE TYPES =====

@dataclass(frozen=True, order=True)
class YearMonth:
    """A calendar month, used instead of YYYY-MM string prefixes"""
    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValidationError(f"Invalid month: {self.month}")

    def contains(self, day: date) -> bool:
        return day.year == self.year and day.month == self.month

    @classmethod
    def parse(cls, value: str) -> "YearMonth":
        match = _YEAR_MONTH_RE.match(value)
        if not match:
            raise ValidationError(f"Invalid year-month: {value}")
        return cls(int(match.group(1)), int(match.group(2)))

    @classmethod
    def of(cls, day: date) -> "YearMonth":
        return cls(day.year, day.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

# ===== CORE MODELS =====

@dataclass
class Settings:
    """User settings"""
    daily_goal: int = 10
    cost_per_unit: float = 0.50
    is_dark_mode: bool = False

    def __post_init__(self):
        """Validate after construction"""
        if isinstance(self.daily_goal, bool) or not isinstance(self.daily_goal, int) or self.daily_goal <= 0:
            raise ValidationError("daily_goal must be a positive integer")

        if isinstance(self.cost_per_unit, bool) or not isinstance(self.cost_per_unit, (int, float)):
            raise ValidationError("cost_per_unit must be a number")
        if self.cost_per_unit < 0:
            raise ValidationError("cost_per_unit must not be negative")
        self.cost_per_unit = float(self.cost_per_unit)

        if not isinstance(self.is_dark_mode, bool):
            raise ValidationError("is_dark_mode must be a boolean")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

@dataclass
class UnlockedAchievement:
    """An achievement the user has earned"""
    achievement_id: str
    title: str
    description: str
    icon: str
    unlocked_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        # Persisted shape uses the mobile app's camelCase keys
        return {
            'id': self.achievement_id,
            'title': self.title,
            'description': self.description,
            'icon': self.icon,
            'unlockedAt': self.unlocked_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnlockedAchievement":
        if not isinstance(data, dict) or not isinstance(data.get('id'), str):
            raise ValidationError(f"Invalid achievement record: {data!r}")
        return cls(
            achievement_id=data['id'],
            title=data.get('title', ''),
            description=data.get('description', ''),
            icon=data.get('icon', ''),
            unlocked_at=data.get('unlockedAt') or datetime.now().isoformat()
        )

@dataclass
class MonthlyEntry:
    day: date
    count: int

    @property
    def display_date(self) -> str:
        return format_display(self.day)

@dataclass
class MonthlyBreakdown:
    """Per-day counts for one month, ascending by day"""
    month: YearMonth
    entries: List[MonthlyEntry] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(entry.count for entry in self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def to_display(self) -> List[Tuple[str, int]]:
        return [(entry.display_date, entry.count) for entry in self.entries]

@dataclass
class SaveResult:
    """Durability status of a write"""
    persisted: bool = True
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.persisted and self.error is None

@dataclass
class MutationResult:
    """Outcome of record/undo: new count plus durability status"""
    count: int
    persisted: bool = True
    error: Optional[str] = None
    new_achievements: List[UnlockedAchievement] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.persisted and self.error is None

@dataclass
class TrackerSummary:
    """Statistics shown on the stats screen"""
    reference_date: date
    today_count: int
    total_count: int
    days_tracked: int
    daily_average: float
    weekly_average: float
    monthly_average: float
    current_streak: int
    weekly_improvement: int
    cost_spent_today: float
    cost_saved: float
    peak_hour: Optional[int] = None
    active_period: Optional[TimePeriod] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'reference_date': self.reference_date.isoformat(),
            'today_count': self.today_count,
            'total_count': self.total_count,
            'days_tracked': self.days_tracked,
            'daily_average': round(self.daily_average, 1),
            'weekly_average': round(self.weekly_average, 1),
            'monthly_average': round(self.monthly_average, 1),
            'current_streak': self.current_streak,
            'weekly_improvement': self.weekly_improvement,
            'cost_spent_today': round(self.cost_spent_today, 2),
            'cost_saved': round(self.cost_saved, 2),
            'peak_hour': self.peak_hour,
            'active_period': self.active_period.value if self.active_period else None
        }

class DailyLog:
    """Date -> count mapping with its per-event timestamps.

    A date is present only while its count is positive. The timestamp list
    of a date grows and shrinks with its count, last in first out.
    """

    def __init__(self, counts: Optional[Dict[date, int]] = None,
                 timestamps: Optional[Dict[date, List[str]]] = None):
        self.counts: Dict[date, int] = dict(counts or {})
        self.timestamps: Dict[date, List[str]] = {
            day: list(stamps) for day, stamps in (timestamps or {}).items()
        }

    def __len__(self) -> int:
        return len(self.counts)

    def __contains__(self, day: date) -> bool:
        return day in self.counts

    def count(self, day: date) -> int:
        return self.counts.get(day, 0)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def dates(self) -> List[date]:
        return sorted(self.counts)

    def items(self) -> List[Tuple[date, int]]:
        return [(day, self.counts[day]) for day in self.dates()]

    def all_timestamps(self) -> List[datetime]:
        """Every event timestamp, by date then recording order"""
        parsed = []
        for day in sorted(self.timestamps):
            for stamp in self.timestamps[day]:
                try:
                    parsed.append(parse_timestamp(stamp))
                except ValueError:
                    logger.warning(f"Skipping malformed timestamp {stamp!r} for {day}")
        return parsed

    def record(self, day: date, timestamp: str) -> int:
        new_count = self.counts.get(day, 0) + 1
        self.counts[day] = new_count
        self.timestamps.setdefault(day, []).append(timestamp)
        return new_count

    def undo(self, day: date) -> Optional[int]:
        """Remove the latest event of a day; None if there is nothing to undo"""
        current = self.counts.get(day, 0)
        if current <= 0:
            return None

        new_count = current - 1
        if new_count == 0:
            del self.counts[day]
        else:
            self.counts[day] = new_count

        stamps = self.timestamps.get(day)
        if stamps:
            stamps.pop()
            if not stamps:
                del self.timestamps[day]

        return new_count

    def clear(self) -> None:
        self.counts.clear()
        self.timestamps.clear()

    def reconcile(self) -> int:
        """Bring timestamp lists in line with counts; returns entries fixed.

        Data written before timestamps existed has counts without lists, so
        short lists are left alone.
        """
        fixed = 0
        for day in list(self.timestamps):
            count = self.counts.get(day, 0)
            stamps = self.timestamps[day]
            if count == 0 or not stamps:
                del self.timestamps[day]
                fixed += 1
            elif len(stamps) > count:
                self.timestamps[day] = stamps[-count:]
                fixed += 1
        return fixed

    # ===== SERIALIZATION =====

    def counts_to_dict(self) -> Dict[str, int]:
        return {day.isoformat(): count for day, count in self.items()}

    def timestamps_to_dict(self) -> Dict[str, List[str]]:
        return {day.isoformat(): list(self.timestamps[day]) for day in sorted(self.timestamps)}

    @staticmethod
    def parse_counts(data: Any) -> Dict[date, int]:
        if not isinstance(data, dict):
            raise ValidationError("puff data must be a JSON object")

        counts = {}
        for key, value in data.items():
            try:
                day = parse_date_key(key)
            except (TypeError, ValueError):
                logger.warning(f"Dropping entry with invalid date key {key!r}")
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                logger.warning(f"Dropping non-integer count for {key}: {value!r}")
                continue
            if value > 0:
                counts[day] = value
        return counts

    @staticmethod
    def parse_timestamps(data: Any) -> Dict[date, List[str]]:
        if not isinstance(data, dict):
            raise ValidationError("puff timestamps must be a JSON object")

        timestamps = {}
        for key, value in data.items():
            try:
                day = parse_date_key(key)
            except (TypeError, ValueError):
                logger.warning(f"Dropping timestamps with invalid date key {key!r}")
                continue
            if not isinstance(value, list):
                logger.warning(f"Dropping non-list timestamps for {key}")
                continue
            stamps = [stamp for stamp in value if isinstance(stamp, str)]
            if stamps:
                timestamps[day] = stamps
        return timestamps

__all__ = [
    'DayStatus',
    'TimePeriod',
    'ValidationError',
    'YearMonth',
    'Settings',
    'UnlockedAchievement',
    'MonthlyEntry',
    'MonthlyBreakdown',
    'SaveResult',
    'MutationResult',
    'TrackerSummary',
    'DailyLog'
]
