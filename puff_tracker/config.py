#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Puff Tracker - Configuration
Centralized, environment-driven configuration with validation

Version: 1.2.0
"""

import os
import sys
from datetime import date
from pathlib import Path
from typing import Dict, Any
from dataclasses import dataclass
from enum import Enum

import pytz

class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    PRODUCTION = "production"

class LogLevel(Enum):
    """Logging levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

@dataclass
class StorageConfig:
    """Persistent storage settings"""
    path: Path
    max_workers: int = 1

@dataclass
class TrackerDefaults:
    """Defaults and heuristics used by the aggregator"""
    daily_goal: int = 10
    cost_per_unit: float = 0.50
    streak_floor_date: date = date(2020, 1, 1)
    baseline_daily_average: int = 20

class TrackerConfig:
    """Main configuration class"""

    def __init__(self):
        self.environment = Environment(os.getenv('ENVIRONMENT', 'development'))
        self._load_config()
        self._validate_config()

    def _load_config(self):
        """Load configuration from environment variables"""

        # Directories
        self.data_dir = Path(os.getenv('PUFF_DATA_DIR', 'data'))
        self.log_dir = Path(os.getenv('LOG_DIR', 'logs'))

        self.storage = StorageConfig(
            path=self.data_dir / "puff_storage.json",
            max_workers=int(os.getenv('STORAGE_WORKERS', 1))
        )

        self.defaults = TrackerDefaults(
            daily_goal=int(os.getenv('DEFAULT_DAILY_GOAL', 10)),
            cost_per_unit=float(os.getenv('DEFAULT_COST_PER_UNIT', 0.50)),
            streak_floor_date=date.fromisoformat(os.getenv('STREAK_FLOOR_DATE', '2020-01-01')),
            baseline_daily_average=int(os.getenv('BASELINE_DAILY_AVERAGE', 20))
        )

        self.timezone_name = os.getenv('PUFF_TIMEZONE', 'UTC')

        # Logging
        self.log_level = LogLevel(os.getenv('LOG_LEVEL', 'INFO'))
        self.log_to_file = os.getenv('LOG_TO_FILE', 'false').lower() == 'true'
        self.log_format = os.getenv(
            'LOG_FORMAT',
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        )

    def _validate_config(self):
        """Validate configuration values"""
        errors = []

        if self.defaults.daily_goal <= 0:
            errors.append("DEFAULT_DAILY_GOAL must be a positive integer")

        if self.defaults.cost_per_unit < 0:
            errors.append("DEFAULT_COST_PER_UNIT must not be negative")

        if self.defaults.baseline_daily_average < 0:
            errors.append("BASELINE_DAILY_AVERAGE must not be negative")

        if self.storage.max_workers < 1:
            errors.append("STORAGE_WORKERS must be at least 1")

        try:
            self.timezone = pytz.timezone(self.timezone_name)
        except pytz.exceptions.UnknownTimeZoneError:
            errors.append(f"Unknown timezone: {self.timezone_name}")

        if errors:
            raise ValueError("Configuration errors:\n" + "\n".join(f"• {error}" for error in errors))

    def ensure_directories(self):
        """Create required directories"""
        for directory in [self.data_dir, self.log_dir]:
            directory.mkdir(parents=True, exist_ok=True)

    def get_logging_config(self) -> Dict[str, Any]:
        """Build a dictConfig for the logging module"""
        handlers = ['console']
        if self.log_to_file:
            handlers.append('file')

        logging_config = {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'default': {
                    'format': self.log_format,
                    'datefmt': '%Y-%m-%d %H:%M:%S'
                }
            },
            'handlers': {
                'console': {
                    'class': 'logging.StreamHandler',
                    'level': self.log_level.value,
                    'formatter': 'default',
                    'stream': sys.stdout
                }
            },
            'loggers': {
                '': {
                    'level': self.log_level.value,
                    'handlers': handlers,
                    'propagate': False
                }
            }
        }

        if self.log_to_file:
            logging_config['handlers']['file'] = {
                'class': 'logging.handlers.RotatingFileHandler',
                'level': self.log_level.value,
                'formatter': 'default',
                'filename': str(self.log_dir / f"puff_tracker_{self.environment.value}.log"),
                'maxBytes': 10485760,  # 10MB
                'backupCount': 5,
                'encoding': 'utf-8'
            }

        return logging_config

# Global configuration instance
config = TrackerConfig()

__all__ = [
    'config',
    'TrackerConfig',
    'Environment',
    'LogLevel',
    'StorageConfig',
    'TrackerDefaults'
]
