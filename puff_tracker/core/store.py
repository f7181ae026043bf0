#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Puff Tracker - Daily Log Store
Owns the daily log, settings and unlocked achievements; persists them
through a key-value storage after every mutation.

Version: 1.2.0
"""

import json
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
import logging

from puff_tracker.config import config
from puff_tracker.core import statistics
from puff_tracker.core.achievements import (
    AchievementManager, AchievementRegistry, AchievementSnapshot
)
from puff_tracker.core.models import (
    DailyLog, DayStatus, MonthlyBreakdown, MutationResult, SaveResult, Settings,
    TimePeriod, TrackerSummary, UnlockedAchievement, ValidationError, YearMonth
)
from puff_tracker.core.storage import KeyValueStorage
from puff_tracker.services.data_export import export_data
from puff_tracker.utils.datetime_utils import DateLike, now_local, to_date

logger = logging.getLogger(__name__)

# ===== STORAGE KEYS =====

KEY_PUFF_DATA = "puffData"
KEY_PUFF_TIMESTAMPS = "puffTimestamps"
KEY_DARK_MODE = "isDarkMode"
KEY_DAILY_GOAL = "dailyGoal"
KEY_COST_PER_UNIT = "costPerUnit"
KEY_ACHIEVEMENTS = "achievements"

YearMonthLike = Union[YearMonth, str]

class PuffStore:
    """Daily log store and aggregator.

    Mutations update memory first, then await the storage write. A failed
    write is logged and reported in the returned result; memory is kept.
    """

    def __init__(self, storage: KeyValueStorage,
                 registry: Optional[AchievementRegistry] = None,
                 streak_floor_date: Optional[date] = None,
                 baseline_daily_average: Optional[int] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.storage = storage
        self.log = DailyLog()
        self.settings = Settings(
            daily_goal=config.defaults.daily_goal,
            cost_per_unit=config.defaults.cost_per_unit
        )
        self.achievements = AchievementManager(registry)
        self.streak_floor_date = streak_floor_date or config.defaults.streak_floor_date
        self.baseline_daily_average = (baseline_daily_average if baseline_daily_average is not None
                                       else config.defaults.baseline_daily_average)
        self.clock = clock or now_local
        self.is_loaded = False

    # ===== LOADING =====

    async def _read_json(self, key: str) -> Any:
        """Parsed value of a key, or None when missing or unreadable"""
        try:
            raw = await self.storage.get_item(key)
        except Exception as e:
            logger.error(f"Failed to read {key}: {e}")
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"Malformed JSON under {key}, using default: {e}")
            return None

    async def load(self) -> None:
        """Load all persisted state; anything missing or malformed falls back to defaults"""
        counts: Dict[date, int] = {}
        timestamps: Dict[date, List[str]] = {}

        data = await self._read_json(KEY_PUFF_DATA)
        if data is not None:
            try:
                counts = DailyLog.parse_counts(data)
            except ValidationError as e:
                logger.warning(f"Ignoring {KEY_PUFF_DATA}: {e}")

        data = await self._read_json(KEY_PUFF_TIMESTAMPS)
        if data is not None:
            try:
                timestamps = DailyLog.parse_timestamps(data)
            except ValidationError as e:
                logger.warning(f"Ignoring {KEY_PUFF_TIMESTAMPS}: {e}")

        self.log = DailyLog(counts, timestamps)
        fixed = self.log.reconcile()
        if fixed:
            logger.info(f"Reconciled timestamps for {fixed} days")

        self.settings = await self._load_settings()

        records = []
        data = await self._read_json(KEY_ACHIEVEMENTS)
        if isinstance(data, list):
            for item in data:
                try:
                    records.append(UnlockedAchievement.from_dict(item))
                except ValidationError as e:
                    logger.warning(f"Skipping achievement record: {e}")
        elif data is not None:
            logger.warning(f"Ignoring {KEY_ACHIEVEMENTS}: expected a JSON array")
        self.achievements.load_unlocked(records)

        self.is_loaded = True
        logger.info(f"Loaded {len(self.log)} tracked days, "
                    f"{len(self.achievements.unlocked)} unlocked achievements")

    async def _load_settings(self) -> Settings:
        settings = Settings(
            daily_goal=config.defaults.daily_goal,
            cost_per_unit=config.defaults.cost_per_unit
        )

        dark_mode = await self._read_json(KEY_DARK_MODE)
        if isinstance(dark_mode, bool):
            settings.is_dark_mode = dark_mode

        goal = await self._read_json(KEY_DAILY_GOAL)
        if goal is not None:
            if isinstance(goal, (int, float)) and not isinstance(goal, bool) \
                    and float(goal).is_integer() and goal > 0:
                settings.daily_goal = int(goal)
            else:
                logger.warning(f"Ignoring invalid {KEY_DAILY_GOAL}: {goal!r}")

        cost = await self._read_json(KEY_COST_PER_UNIT)
        if cost is not None:
            if isinstance(cost, (int, float)) and not isinstance(cost, bool) and cost >= 0:
                settings.cost_per_unit = float(cost)
            else:
                logger.warning(f"Ignoring invalid {KEY_COST_PER_UNIT}: {cost!r}")

        return settings

    # ===== PERSISTENCE =====

    def _serialize(self, key: str) -> str:
        if key == KEY_PUFF_DATA:
            return json.dumps(self.log.counts_to_dict())
        if key == KEY_PUFF_TIMESTAMPS:
            return json.dumps(self.log.timestamps_to_dict())
        if key == KEY_DARK_MODE:
            return json.dumps(self.settings.is_dark_mode)
        if key == KEY_DAILY_GOAL:
            return json.dumps(self.settings.daily_goal)
        if key == KEY_COST_PER_UNIT:
            return json.dumps(self.settings.cost_per_unit)
        if key == KEY_ACHIEVEMENTS:
            return json.dumps([record.to_dict() for record in self.achievements.unlocked_records()],
                              ensure_ascii=False)
        raise KeyError(key)

    async def _persist(self, *keys: str) -> SaveResult:
        """Write the given keys; every key is attempted even after a failure"""
        errors = []
        for key in keys:
            try:
                await self.storage.set_item(key, self._serialize(key))
            except Exception as e:
                logger.error(f"Failed to save {key}: {e}")
                errors.append(f"{key}: {e}")

        if errors:
            return SaveResult(persisted=False, error="; ".join(errors))
        return SaveResult()

    async def save_all(self) -> SaveResult:
        """Write every key, e.g. after load to normalize stored data"""
        return await self._persist(KEY_PUFF_DATA, KEY_PUFF_TIMESTAMPS, KEY_DARK_MODE,
                                   KEY_DAILY_GOAL, KEY_COST_PER_UNIT, KEY_ACHIEVEMENTS)

    # ===== MUTATIONS =====

    async def record_event(self, day: DateLike) -> MutationResult:
        """Log one event on a day, then evaluate achievements for that day"""
        day = to_date(day)
        new_count = self.log.record(day, self.clock().isoformat())
        logger.debug(f"Recorded event on {day}, count={new_count}")

        saved = await self._persist(KEY_PUFF_DATA, KEY_PUFF_TIMESTAMPS)
        new_achievements, achievements_saved = await self._evaluate_and_persist(new_count, day)

        errors = [result.error for result in (saved, achievements_saved) if result.error]
        return MutationResult(
            count=new_count,
            persisted=saved.persisted and achievements_saved.persisted,
            error="; ".join(errors) or None,
            new_achievements=new_achievements
        )

    async def undo_event(self, day: DateLike) -> MutationResult:
        """Remove the latest event of a day. A day without events is left untouched."""
        day = to_date(day)
        new_count = self.log.undo(day)
        if new_count is None:
            return MutationResult(count=0)

        logger.debug(f"Undid event on {day}, count={new_count}")
        saved = await self._persist(KEY_PUFF_DATA, KEY_PUFF_TIMESTAMPS)
        return MutationResult(count=new_count, persisted=saved.persisted, error=saved.error)

    async def evaluate_achievements(self, count_for_day: int,
                                    reference_date: Optional[DateLike] = None) -> List[UnlockedAchievement]:
        new_achievements, _ = await self._evaluate_and_persist(count_for_day, reference_date)
        return new_achievements

    async def _evaluate_and_persist(self, count_for_day: int, reference_date: Optional[DateLike]
                                    ) -> Tuple[List[UnlockedAchievement], SaveResult]:
        reference_date = to_date(reference_date) if reference_date is not None else self.today()
        snapshot = self.snapshot(count_for_day, reference_date)
        new_achievements = self.achievements.evaluate(snapshot, self.clock().isoformat())
        if not new_achievements:
            return [], SaveResult()
        return new_achievements, await self._persist(KEY_ACHIEVEMENTS)

    async def save_settings(self, daily_goal: Optional[int] = None,
                            cost_per_unit: Optional[float] = None,
                            is_dark_mode: Optional[bool] = None) -> SaveResult:
        """Validate and persist changed settings; raises ValidationError on bad values"""
        updated = Settings(
            daily_goal=self.settings.daily_goal if daily_goal is None else daily_goal,
            cost_per_unit=self.settings.cost_per_unit if cost_per_unit is None else cost_per_unit,
            is_dark_mode=self.settings.is_dark_mode if is_dark_mode is None else is_dark_mode
        )

        keys = []
        if updated.daily_goal != self.settings.daily_goal:
            keys.append(KEY_DAILY_GOAL)
        if updated.cost_per_unit != self.settings.cost_per_unit:
            keys.append(KEY_COST_PER_UNIT)
        if updated.is_dark_mode != self.settings.is_dark_mode:
            keys.append(KEY_DARK_MODE)

        self.settings = updated
        if not keys:
            return SaveResult()
        logger.info(f"Settings updated: {', '.join(keys)}")
        return await self._persist(*keys)

    async def toggle_dark_mode(self) -> SaveResult:
        return await self.save_settings(is_dark_mode=not self.settings.is_dark_mode)

    async def reset(self) -> SaveResult:
        """Clear the log and achievements; settings survive"""
        self.log.clear()
        self.achievements.clear()
        logger.info("Tracker data reset")

        errors = []
        for key in (KEY_PUFF_DATA, KEY_PUFF_TIMESTAMPS, KEY_ACHIEVEMENTS):
            try:
                await self.storage.remove_item(key)
            except Exception as e:
                logger.error(f"Failed to remove {key}: {e}")
                errors.append(f"{key}: {e}")

        if errors:
            return SaveResult(persisted=False, error="; ".join(errors))
        return SaveResult()

    # ===== QUERIES =====

    def today(self) -> date:
        return self.clock().date()

    def _reference(self, reference_date: Optional[DateLike]) -> date:
        return to_date(reference_date) if reference_date is not None else self.today()

    def get_count_for_date(self, day: DateLike) -> int:
        return self.log.count(to_date(day))

    def marked_dates(self) -> Dict[date, int]:
        return dict(self.log.items())

    def day_status(self, day: DateLike) -> DayStatus:
        return statistics.day_status(self.log, to_date(day), self.settings.daily_goal)

    def monthly_breakdown(self, year_month: YearMonthLike) -> MonthlyBreakdown:
        if isinstance(year_month, str):
            year_month = YearMonth.parse(year_month)
        return statistics.monthly_breakdown(self.log, year_month)

    def daily_average(self) -> float:
        return statistics.daily_average(self.log)

    def weekly_average(self, reference_date: Optional[DateLike] = None) -> float:
        return statistics.weekly_average(self.log, self._reference(reference_date))

    def monthly_average(self, reference_date: Optional[DateLike] = None) -> float:
        return statistics.monthly_average(self.log, self._reference(reference_date))

    def current_streak(self, reference_date: Optional[DateLike] = None) -> int:
        return statistics.current_streak(self.log, self._reference(reference_date),
                                         self.settings.daily_goal, self.streak_floor_date)

    def weekly_improvement(self, reference_date: Optional[DateLike] = None) -> int:
        return statistics.weekly_improvement(self.log, self._reference(reference_date))

    def peak_usage_hour(self) -> Optional[int]:
        return statistics.peak_usage_hour(self.log)

    def most_active_time_period(self) -> Optional[TimePeriod]:
        return statistics.most_active_time_period(self.log)

    def cost_spent(self, count: int) -> float:
        return statistics.cost_spent(count, self.settings.cost_per_unit)

    def cost_saved(self) -> float:
        return statistics.cost_saved(self.log, self.settings.cost_per_unit,
                                     self.baseline_daily_average)

    def trend(self, reference_date: Optional[DateLike] = None, days: int = 7) -> List[Tuple[date, int]]:
        return statistics.trend(self.log, self._reference(reference_date), days)

    def snapshot(self, count_for_day: int, reference_date: Optional[DateLike] = None) -> AchievementSnapshot:
        return AchievementSnapshot(
            day_count=count_for_day,
            daily_goal=self.settings.daily_goal,
            streak=self.current_streak(reference_date),
            cost_saved=self.cost_saved()
        )

    def summary(self, reference_date: Optional[DateLike] = None) -> TrackerSummary:
        reference_date = self._reference(reference_date)
        today_count = self.log.count(reference_date)
        return TrackerSummary(
            reference_date=reference_date,
            today_count=today_count,
            total_count=self.log.total,
            days_tracked=len(self.log),
            daily_average=self.daily_average(),
            weekly_average=self.weekly_average(reference_date),
            monthly_average=self.monthly_average(reference_date),
            current_streak=self.current_streak(reference_date),
            weekly_improvement=self.weekly_improvement(reference_date),
            cost_spent_today=self.cost_spent(today_count),
            cost_saved=self.cost_saved(),
            peak_hour=self.peak_usage_hour(),
            active_period=self.most_active_time_period()
        )

    def get_achievements(self) -> List[Dict[str, Any]]:
        return self.achievements.get_achievements_summary()

    def is_unlocked(self, achievement_id: str) -> bool:
        return self.achievements.is_unlocked(achievement_id)

    def export_data(self, format: str = "json") -> Optional[bytes]:
        return export_data(self.log, self.settings, self.achievements.unlocked_records(), format)

# ===== CONVENIENCE FUNCTIONS =====

async def create_store(storage: Optional[KeyValueStorage] = None, **kwargs) -> PuffStore:
    """Build a store over the configured file storage and load it"""
    if storage is None:
        from puff_tracker.core.storage import create_storage
        storage = create_storage()
    store = PuffStore(storage, **kwargs)
    await store.load()
    return store

__all__ = [
    'KEY_PUFF_DATA',
    'KEY_PUFF_TIMESTAMPS',
    'KEY_DARK_MODE',
    'KEY_DAILY_GOAL',
    'KEY_COST_PER_UNIT',
    'KEY_ACHIEVEMENTS',
    'PuffStore',
    'create_store'
]
