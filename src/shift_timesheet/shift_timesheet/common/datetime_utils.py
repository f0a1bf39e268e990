from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo

from ..core.constants import DEFAULT_TIMEZONE


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive local datetime."""
    parsed = datetime.fromisoformat(value.strip())
    return parsed.replace(tzinfo=None)


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock:
    """Wall clock localized to the configured timezone.

    Returns naive datetimes: every timestamp the engine stores is local time.
    """

    def __init__(self, timezone: str = DEFAULT_TIMEZONE):
        self._tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self._tz).replace(tzinfo=None, microsecond=0)


def floor_minutes(delta: timedelta) -> int:
    return math.floor(delta.total_seconds() / 60)


def ceil_minutes(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / 60)


def format_minutes(minutes: int) -> str:
    """Format a minute count as HH:MM."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
