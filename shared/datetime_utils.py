"""
Date/time helpers — framework-agnostic.

MongoDB stores naive UTC datetimes; the app client is tz-aware, but values
that come from elsewhere (fixtures, older documents) may still be naive.
Every expiry comparison goes through as_utc() so both shapes compare safely.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return *value* as an aware UTC datetime; naive values are assumed UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def expires_in(seconds: int, now: Optional[datetime] = None) -> datetime:
    """``now + seconds`` as an aware UTC datetime."""
    return (now or utc_now()) + timedelta(seconds=seconds)


def is_expired(expiry: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when *expiry* is missing or not strictly in the future."""
    if expiry is None:
        return True
    return as_utc(expiry) <= (now or utc_now())


def is_in_future(value: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True when *value* is set and strictly after *now*."""
    if value is None:
        return False
    return as_utc(value) > (now or utc_now())
