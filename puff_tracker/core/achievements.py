#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Puff Tracker - Achievement System
Static achievement catalog, checkers and unlock bookkeeping

Version: 1.2.0
"""

from datetime import datetime
from typing import Dict, List, Optional, Any, Callable, Iterable, Tuple
from dataclasses import dataclass
from enum import Enum
from abc import ABC, abstractmethod
import logging

from puff_tracker.core.models import UnlockedAchievement, ValidationError

logger = logging.getLogger(__name__)

# ===== ENUMS =====

class AchievementCategory(Enum):
    """Achievement categories"""
    MILESTONES = "milestones"
    GOALS = "goals"
    STREAKS = "streaks"
    SAVINGS = "savings"

# ===== DATA CLASSES =====

@dataclass(frozen=True)
class AchievementSnapshot:
    """Aggregate state the predicates are evaluated against"""
    day_count: int
    daily_goal: int
    streak: int
    cost_saved: float

# ===== ACHIEVEMENT CHECKERS =====

class AchievementChecker(ABC):
    """Base class for achievement predicates"""

    @abstractmethod
    def check(self, snapshot: AchievementSnapshot) -> bool:
        pass

    @abstractmethod
    def get_progress(self, snapshot: AchievementSnapshot) -> Tuple[float, float]:
        """(current, target)"""
        pass

    def __call__(self, snapshot: AchievementSnapshot) -> bool:
        return self.check(snapshot)

class ThresholdChecker(AchievementChecker):
    """Value read from the snapshot must reach a target"""

    def __init__(self, target: float, value_getter: Callable[[AchievementSnapshot], float]):
        self.target = target
        self.value_getter = value_getter

    def check(self, snapshot: AchievementSnapshot) -> bool:
        return self.value_getter(snapshot) >= self.target

    def get_progress(self, snapshot: AchievementSnapshot) -> Tuple[float, float]:
        return min(self.target, self.value_getter(snapshot)), self.target

class ConditionalChecker(AchievementChecker):
    """Arbitrary condition over the snapshot"""

    def __init__(self, condition_func: Callable[[AchievementSnapshot], bool]):
        self.condition_func = condition_func

    def check(self, snapshot: AchievementSnapshot) -> bool:
        return self.condition_func(snapshot)

    def get_progress(self, snapshot: AchievementSnapshot) -> Tuple[float, float]:
        return (1 if self.check(snapshot) else 0), 1

@dataclass
class AchievementDefinition:
    """Catalog entry: identity, presentation and predicate"""
    achievement_id: str
    title: str
    description: str
    icon: str
    category: AchievementCategory
    predicate: AchievementChecker

    def unlock(self, unlocked_at: Optional[str] = None) -> UnlockedAchievement:
        return UnlockedAchievement(
            achievement_id=self.achievement_id,
            title=self.title,
            description=self.description,
            icon=self.icon,
            unlocked_at=unlocked_at or datetime.now().isoformat()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.achievement_id,
            'title': self.title,
            'description': self.description,
            'icon': self.icon,
            'category': self.category.value
        }

# ===== ACHIEVEMENT REGISTRY =====

class AchievementRegistry:
    """Ordered catalog of achievements; declaration order is evaluation order"""

    def __init__(self, load_defaults: bool = True):
        self.achievements: Dict[str, AchievementDefinition] = {}
        if load_defaults:
            self._load_default_achievements()

    def register_achievement(self, definition: AchievementDefinition) -> None:
        if definition.achievement_id in self.achievements:
            raise ValidationError(f"Duplicate achievement id: {definition.achievement_id}")
        self.achievements[definition.achievement_id] = definition
        logger.debug(f"Registered achievement: {definition.achievement_id}")

    def get_achievement(self, achievement_id: str) -> Optional[AchievementDefinition]:
        return self.achievements.get(achievement_id)

    def __iter__(self):
        return iter(self.achievements.values())

    def __len__(self) -> int:
        return len(self.achievements)

    def _load_default_achievements(self):
        """Default catalog"""

        # ===== MILESTONES =====

        self.register_achievement(AchievementDefinition(
            achievement_id="first_log",
            title="First Step",
            description="Log your first puff",
            icon="🎯",
            category=AchievementCategory.MILESTONES,
            predicate=ThresholdChecker(1, lambda s: s.day_count)
        ))

        # ===== GOALS =====

        self.register_achievement(AchievementDefinition(
            achievement_id="goal_met",
            title="Goal Keeper",
            description="Log a day that stays within your daily goal",
            icon="✅",
            category=AchievementCategory.GOALS,
            predicate=ConditionalChecker(lambda s: 1 <= s.day_count <= s.daily_goal)
        ))

        # ===== STREAKS =====

        for days, title, icon in ((3, "Getting Started", "🔥"),
                                  (7, "Week Warrior", "💪"),
                                  (30, "Monthly Master", "💎")):
            self.register_achievement(AchievementDefinition(
                achievement_id=f"streak_{days}",
                title=title,
                description=f"Stay within your goal {days} days in a row",
                icon=icon,
                category=AchievementCategory.STREAKS,
                predicate=ThresholdChecker(days, lambda s: s.streak)
            ))

        # ===== SAVINGS =====

        for amount, title, icon in ((10, "Money Saver", "💰"),
                                    (50, "Big Saver", "🏦")):
            self.register_achievement(AchievementDefinition(
                achievement_id=f"saved_{amount}",
                title=title,
                description=f"Save ${amount} compared to your old habit",
                icon=icon,
                category=AchievementCategory.SAVINGS,
                predicate=ThresholdChecker(amount, lambda s: s.cost_saved)
            ))

# ===== ACHIEVEMENT MANAGER =====

class AchievementManager:
    """Tracks which catalog entries are unlocked. Unlocks are never revoked."""

    def __init__(self, registry: Optional[AchievementRegistry] = None):
        self.registry = registry or AchievementRegistry()
        self.unlocked: Dict[str, UnlockedAchievement] = {}

    def is_unlocked(self, achievement_id: str) -> bool:
        return achievement_id in self.unlocked

    def load_unlocked(self, records: Iterable[UnlockedAchievement]) -> None:
        """Replace the unlocked set; first record of a duplicated id wins"""
        self.unlocked = {}
        for record in records:
            if record.achievement_id in self.unlocked:
                logger.warning(f"Ignoring duplicate unlocked achievement {record.achievement_id}")
                continue
            self.unlocked[record.achievement_id] = record

    def unlocked_records(self) -> List[UnlockedAchievement]:
        return list(self.unlocked.values())

    def clear(self) -> None:
        self.unlocked.clear()

    def evaluate(self, snapshot: AchievementSnapshot,
                 unlocked_at: Optional[str] = None) -> List[UnlockedAchievement]:
        """Unlock every locked achievement whose predicate holds, in catalog order"""
        new_achievements = []

        for definition in self.registry:
            if definition.achievement_id in self.unlocked:
                continue

            if not definition.predicate(snapshot):
                continue

            record = definition.unlock(unlocked_at)
            self.unlocked[definition.achievement_id] = record
            new_achievements.append(record)
            logger.info(f"🏆 Achievement unlocked: {definition.achievement_id}")

        return new_achievements

    def get_progress(self, achievement_id: str, snapshot: AchievementSnapshot) -> Optional[Tuple[float, float]]:
        definition = self.registry.get_achievement(achievement_id)
        if not definition:
            return None
        if self.is_unlocked(achievement_id):
            _, target = definition.predicate.get_progress(snapshot)
            return target, target
        return definition.predicate.get_progress(snapshot)

    def get_achievements_summary(self) -> List[Dict[str, Any]]:
        """Catalog with unlock state, for the achievements screen"""
        summary = []
        for definition in self.registry:
            entry = definition.to_dict()
            record = self.unlocked.get(definition.achievement_id)
            entry['unlocked'] = record is not None
            entry['unlockedAt'] = record.unlocked_at if record else None
            summary.append(entry)
        return summary

__all__ = [
    'AchievementCategory',
    'AchievementSnapshot',
    'AchievementChecker',
    'ThresholdChecker',
    'ConditionalChecker',
    'AchievementDefinition',
    'AchievementRegistry',
    'AchievementManager'
]
