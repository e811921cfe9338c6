# app/utils/datetime_utils.py
"""Timestamps are stored as naive UTC. Normalise anything coming in from outside."""

from datetime import datetime, timezone
from typing import Optional


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
