"""
Shared datetime helpers.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Optional

SECONDS_PER_DAY = 86400.0


def mtime_to_datetime(mtime: Optional[float]) -> Optional[datetime]:
    """Convert an epoch-seconds modification time to a UTC datetime."""
    if mtime is None:
        return None
    return datetime.fromtimestamp(mtime, tz=timezone.utc)


def days_between(earlier: float, later: float) -> float:
    return (later - earlier) / SECONDS_PER_DAY


def age_in_days(mtime: Optional[float], now: Optional[float] = None) -> Optional[float]:
    """Days elapsed since ``mtime``; None when there is no timestamp."""
    if mtime is None:
        return None
    if now is None:
        now = time.time()
    return days_between(mtime, now)


def format_age(mtime: Optional[float], now: Optional[float] = None) -> str:
    """Short human-readable age such as ``<1m``, ``5m``, ``3h`` or ``12d``."""
    if mtime is None:
        return "-"
    if now is None:
        now = time.time()
    elapsed = max(now - mtime, 0.0)

    minutes = int(elapsed // 60)
    hours = int(elapsed // 3600)
    days = int(elapsed // SECONDS_PER_DAY)

    if hours == 0:
        return "<1m" if minutes == 0 else f"{minutes}m"
    if days == 0:
        return f"{hours}h"
    return f"{days}d"
