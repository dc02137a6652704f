"""Timestamp normalisation

Domain timestamps are naive UTC, the form the clocks produce. Aware values
are converted to UTC and their tzinfo dropped so they compare with `now`.
"""

from datetime import datetime, timezone
from typing import Optional


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
