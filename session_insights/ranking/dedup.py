"""
Identity-based deduplication of insight items.

The same item can arrive through several retrieval paths (e.g. matched by
``event:nfp`` and by ``currency:USD``). Identity is ``(source_type,
source_id)``; the first occurrence wins and input order is preserved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TypeVar

from session_insights.models.insight import InsightItem

logger = logging.getLogger(__name__)

_ItemT = TypeVar("_ItemT", bound=InsightItem)


def deduplicate_items(items: Iterable[_ItemT]) -> list[_ItemT]:
    """Drop repeated items, keeping the first occurrence per identity.

    Idempotent: ``deduplicate_items(deduplicate_items(xs)) == deduplicate_items(xs)``.

    Args:
        items: Items in retrieval order, possibly with repeats.

    Returns:
        New list with one item per ``(source_type, source_id)``.
    """
    seen: set[tuple[str, str]] = set()
    result: list[_ItemT] = []
    dropped = 0
    for item in items:
        key = item.identity
        if key in seen:
            dropped += 1
            continue
        seen.add(key)
        result.append(item)

    if dropped:
        logger.debug("Dropped %d duplicate insight item(s); %d kept.", dropped, len(result))
    return result
