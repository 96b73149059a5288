"""
Time helpers for the insight feed.

The ranking engine only ever sees a numeric age in hours. These helpers are
the thin adapter layer that turns ``(now, timestamp)`` pairs and timeframe
presets into those numbers.

Naive datetimes are read as UTC throughout.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from session_insights.taxonomy.insight_taxonomy import Timeframe

_SECONDS_PER_HOUR = 3600.0

_TIMEFRAME_DELTAS: dict[str, Optional[timedelta]] = {
    Timeframe.DAY.value:   timedelta(days=1),
    Timeframe.WEEK.value:  timedelta(days=7),
    Timeframe.MONTH.value: timedelta(days=30),
    Timeframe.ALL.value:   None,
}


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def age_hours_between(now: datetime, then: Optional[datetime]) -> float:
    """Hours elapsed from ``then`` to ``now``.

    Returns ``math.inf`` when ``then`` is unknown, so the item decays to zero
    recency instead of failing. Future timestamps give a negative age; the
    recency model clamps it.
    """
    if then is None:
        return math.inf
    delta = ensure_utc(now) - ensure_utc(then)
    return delta.total_seconds() / _SECONDS_PER_HOUR


def timeframe_to_timedelta(timeframe: str | None) -> Optional[timedelta]:
    """Lookback window for a timeframe preset.

    ``"all"`` → ``None`` (no limit). Unknown or missing presets fall back to
    seven days.
    """
    if timeframe is None:
        return _TIMEFRAME_DELTAS[Timeframe.WEEK.value]
    return _TIMEFRAME_DELTAS.get(str(timeframe), _TIMEFRAME_DELTAS[Timeframe.WEEK.value])
