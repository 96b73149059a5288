"""
Trending keys: frequency-based fallback relevance signal.

When a feed has no explicit candidate keys (cold start, pages without
event/currency context), the most frequent insight keys across a recent
window of items stand in for them.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable

from session_insights.models.insight import InsightItem


def aggregate_trending_keys(items: Iterable[InsightItem], top_k: int = 6) -> list[str]:
    """Return the ``top_k`` most frequent insight keys.

    Ties keep first-encountered order (``Counter`` preserves insertion order
    and ``most_common`` sorts stably).

    Args:
        items: Window of items, usually the most recent activity entries.
        top_k: Maximum number of keys. ``<= 0`` returns ``[]``.

    Returns:
        Up to ``top_k`` keys by descending count.
    """
    if top_k <= 0:
        return []

    counts: Counter[str] = Counter()
    for item in items:
        counts.update(item.insight_keys)

    return [key for key, _ in counts.most_common(top_k)]
