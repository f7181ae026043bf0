#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Puff Tracker - Key-Value Storage
Async string key-value stores backing the tracker state

Version: 1.2.0
"""

import json
import asyncio
import threading
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Any
from dataclasses import dataclass
from concurrent.futures import ThreadPoolExecutor
from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)

# ===== EXCEPTIONS =====

class StorageError(Exception):
    """Base class for storage errors"""
    pass

class StorageReadError(StorageError):
    """Reading from storage failed"""
    pass

class StorageWriteError(StorageError):
    """Writing to storage failed"""
    pass

# ===== HELPER CLASSES =====

@dataclass
class StorageStats:
    """Storage counters"""
    load_count: int = 0
    save_count: int = 0
    error_count: int = 0
    last_save: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'load_count': self.load_count,
            'save_count': self.save_count,
            'error_count': self.error_count,
            'last_save': self.last_save
        }

# ===== STORAGE BACKENDS =====

class KeyValueStorage(ABC):
    """Async string -> string store"""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        pass

    async def close(self) -> None:
        pass

class MemoryStorage(KeyValueStorage):
    """Dictionary-backed storage"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})
        self.stats = StorageStats()

    async def get_item(self, key: str) -> Optional[str]:
        self.stats.load_count += 1
        return self.data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.data[key] = value
        self.stats.save_count += 1
        self.stats.last_save = datetime.now().isoformat()

    async def remove_item(self, key: str) -> None:
        self.data.pop(key, None)
        self.stats.save_count += 1

class JsonFileStorage(KeyValueStorage):
    """All keys in one JSON document on disk.

    Writes go through a temporary file that is re-parsed before it replaces
    the original. Blocking file I/O runs in a thread pool.
    """

    def __init__(self, path: Path, max_workers: int = 1):
        self.path = Path(path)
        self.file_lock = threading.RLock()
        self.executor = ThreadPoolExecutor(max_workers=max_workers)
        self.stats = StorageStats()
        self._data: Optional[Dict[str, str]] = None

    async def _run(self, func, *args):
        return await asyncio.get_running_loop().run_in_executor(self.executor, func, *args)

    def _load_sync(self) -> Dict[str, str]:
        with self.file_lock:
            if self._data is not None:
                return self._data

            if not self.path.exists():
                logger.info(f"Storage file {self.path} does not exist, starting empty")
                self._data = {}
                return self._data

            try:
                with open(self.path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.error(f"Storage file is corrupted: {e}")
                self._move_corrupted()
                self._data = {}
                return self._data
            except OSError as e:
                self.stats.error_count += 1
                raise StorageReadError(f"Failed to read {self.path}: {e}") from e

            if not isinstance(data, dict):
                logger.warning("Storage file has unexpected layout, starting empty")
                self._move_corrupted()
                data = {}

            # Values are strings by contract; anything else is dropped
            self._data = {key: value for key, value in data.items() if isinstance(value, str)}
            self.stats.load_count += 1
            return self._data

    def _move_corrupted(self) -> None:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        target = self.path.with_name(f"{self.path.name}.corrupted_{timestamp}")
        try:
            shutil.move(str(self.path), str(target))
            logger.warning(f"Corrupted storage moved to {target}")
        except OSError as e:
            logger.error(f"Failed to move corrupted storage: {e}")

    def _save_sync(self, data: Dict[str, str]) -> None:
        with self.file_lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_file = self.path.with_suffix('.tmp')

            try:
                with open(temp_file, 'w', encoding='utf-8') as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)

                with open(temp_file, 'r', encoding='utf-8') as f:
                    json.load(f)

                temp_file.replace(self.path)

                self.stats.save_count += 1
                self.stats.last_save = datetime.now().isoformat()

            except (OSError, ValueError) as e:
                if temp_file.exists():
                    temp_file.unlink()
                self.stats.error_count += 1
                raise StorageWriteError(f"Failed to write {self.path}: {e}") from e

    def _set_sync(self, key: str, value: str) -> None:
        with self.file_lock:
            data = dict(self._load_sync())
            data[key] = value
            self._save_sync(data)
            self._data = data

    def _remove_sync(self, key: str) -> None:
        with self.file_lock:
            data = dict(self._load_sync())
            if key not in data:
                return
            del data[key]
            self._save_sync(data)
            self._data = data

    async def get_item(self, key: str) -> Optional[str]:
        data = await self._run(self._load_sync)
        return data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await self._run(self._set_sync, key, value)

    async def remove_item(self, key: str) -> None:
        await self._run(self._remove_sync, key)

    async def close(self) -> None:
        self.executor.shutdown(wait=True)

# ===== CONVENIENCE FUNCTIONS =====

def create_storage(path: Optional[Path] = None) -> JsonFileStorage:
    """Create the file storage configured for this environment"""
    from puff_tracker.config import config
    if path is None:
        config.ensure_directories()
        path = config.storage.path
    return JsonFileStorage(path, config.storage.max_workers)

__all__ = [
    'StorageError',
    'StorageReadError',
    'StorageWriteError',
    'StorageStats',
    'KeyValueStorage',
    'MemoryStorage',
    'JsonFileStorage',
    'create_storage'
]
