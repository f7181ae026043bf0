#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Puff Tracker - Core Package
Daily event log, statistics and achievements for the Puff Tracker app

Version: 1.2.0
"""

from .core.models import (
    DayStatus,
    TimePeriod,
    ValidationError,
    YearMonth,
    Settings,
    UnlockedAchievement,
    MonthlyBreakdown,
    SaveResult,
    MutationResult,
    TrackerSummary,
    DailyLog
)

from .core.achievements import (
    AchievementSnapshot,
    AchievementRegistry,
    AchievementManager
)

from .core.storage import (
    StorageError,
    KeyValueStorage,
    MemoryStorage,
    JsonFileStorage
)

from .core.store import (
    PuffStore,
    create_store
)

__version__ = "1.2.0"

__all__ = [
    # Models
    'DayStatus',
    'TimePeriod',
    'ValidationError',
    'YearMonth',
    'Settings',
    'UnlockedAchievement',
    'MonthlyBreakdown',
    'SaveResult',
    'MutationResult',
    'TrackerSummary',
    'DailyLog',

    # Achievements
    'AchievementSnapshot',
    'AchievementRegistry',
    'AchievementManager',

    # Storage
    'StorageError',
    'KeyValueStorage',
    'MemoryStorage',
    'JsonFileStorage',

    # Store
    'PuffStore',
    'create_store'
]
