from datetime import date, datetime, timedelta
from typing import Union, Optional
import pytz

from puff_tracker.config import config

DateLike = Union[date, str]

def now_local(tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    return datetime.now(tz or config.timezone)

def today(tz: Optional[pytz.BaseTzInfo] = None) -> date:
    return now_local(tz).date()

def to_date(value: DateLike) -> date:
    """Accept a date (or datetime) or a YYYY-MM-DD string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)

def parse_date_key(key: str) -> date:
    """Strict YYYY-MM-DD; other ISO spellings of a day are rejected"""
    day = date.fromisoformat(key)
    if day.isoformat() != key:
        raise ValueError(f"Not a YYYY-MM-DD date: {key!r}")
    return day

def format_display(value: date) -> str:
    """MM-DD-YYYY, the calendar screen's format"""
    return value.strftime("%m-%d-%Y")

def week_start(value: date) -> date:
    """Monday of the ISO week containing value"""
    return value - timedelta(days=value.weekday())

def parse_timestamp(timestamp: str, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """ISO-8601 timestamp in local time; a trailing Z means UTC"""
    if timestamp.endswith(('Z', 'z')):
        timestamp = timestamp[:-1] + '+00:00'
    parsed = datetime.fromisoformat(timestamp)
    if parsed.tzinfo is None:
        return parsed
    return parsed.astimezone(tz or config.timezone)
