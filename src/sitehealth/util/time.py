"""Timestamp and duration utilities.

Simple helpers to keep time handling consistent across the scanner.
Wall clock for report timestamps and certificate expiry math,
monotonic clock for anything we measure as latency.
"""

import time
from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Return current UTC time with timezone info.

    Always use UTC for timestamps - makes expiry math unambiguous.
    """
    return datetime.now(timezone.utc)


def timestamp_str(dt: Optional[datetime] = None) -> str:
    """Format timestamp for filenames and logs.

    Returns: YYYYMMDD_HHMMSS format (filesystem-safe)
    """
    if dt is None:
        dt = now_utc()
    return dt.strftime("%Y%m%d_%H%M%S")


def date_str(dt: Optional[datetime] = None) -> str:
    """Format date for directory names.

    Returns: YYYY-MM-DD format
    """
    if dt is None:
        dt = now_utc()
    return dt.strftime("%Y-%m-%d")


def monotonic_ms() -> float:
    """Current monotonic clock reading in milliseconds."""
    return time.monotonic() * 1000


def elapsed_ms(start_ms: float) -> float:
    """Milliseconds elapsed since a monotonic_ms() reading."""
    return monotonic_ms() - start_ms


def parse_utc(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given.

    Raises ValueError on garbage.
    """
    text = value.strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
