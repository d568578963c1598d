"""Shared schema helpers"""
from datetime import datetime, timezone
from typing import Any, Optional


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def to_float(value: Any) -> float:
    return float(value) if value is not None else 0.0
