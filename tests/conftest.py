from datetime import date, datetime, timedelta

import pytest
import pytz

from puff_tracker.core.storage import MemoryStorage, StorageWriteError
from puff_tracker.core.store import PuffStore


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class FailingStorage(MemoryStorage):
    """Reads work, every write fails"""

    async def set_item(self, key: str, value: str) -> None:
        raise StorageWriteError("disk full")

    async def remove_item(self, key: str) -> None:
        raise StorageWriteError("disk full")


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 3, 1, 9, 30, tzinfo=pytz.UTC))


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage, clock):
    return PuffStore(storage, clock=clock)


@pytest.fixture
def short_floor_store(storage, clock):
    """Streaks walk back no further than February 2024"""
    return PuffStore(storage, clock=clock, streak_floor_date=date(2024, 2, 1))


class BrokenStorage(MemoryStorage):
    """Back-end failing with plain OS errors instead of storage errors"""

    async def get_item(self, key: str):
        raise OSError("disk gone")

    async def set_item(self, key: str, value: str) -> None:
        raise OSError("disk gone")

    async def remove_item(self, key: str) -> None:
        raise OSError("disk gone")
