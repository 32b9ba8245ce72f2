from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Callable

Clock = Callable[[], datetime]

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def next_utc_midnight(now: datetime) -> datetime:
    now = now.astimezone(timezone.utc)
    return datetime(now.year, now.month, now.day, tzinfo=timezone.utc) + timedelta(days=1)

def utc_day(now: datetime) -> str:
    """Quota day key, e.g. '2026-10-19'."""
    return now.astimezone(timezone.utc).date().isoformat()
