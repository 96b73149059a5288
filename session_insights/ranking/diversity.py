"""
Diversity constraints: greedy, position-aware reordering of a ranked feed.

Constraints (checked against the output being built, not the input order)
--------------------------------------------------------------------------
1. Source run  : no more than ``max_same_source_run`` (2) consecutive items
                 of the same source type.
2. Event cap   : while fewer than ``event_cap_window`` (10) items are placed,
                 an event key may be placed at most ``event_key_cap`` (3)
                 times.
3. Article slot: while fewer than ``article_window`` (6) items are placed and
                 no article has been placed, a non-article is rejected if an
                 article is still waiting in the unplaced pool.

Placement
---------
For each output position, the first remaining item (in score order) that
satisfies all three constraints is placed. If none does, the first item
satisfying constraint 1 is placed; if none does either (e.g. one source type
left), the highest-scoring remaining item is placed unconditionally.

The pass never backtracks: a lower-scored item only moves ahead of a
higher-scored one to satisfy a constraint.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from session_insights.config import DiversityConfig
from session_insights.taxonomy.insight_taxonomy import InsightKeyPrefix, SourceType

if TYPE_CHECKING:
    from session_insights.ranking.ranker import ScoredInsight

logger = logging.getLogger(__name__)

_EVENT_PREFIX = f"{InsightKeyPrefix.EVENT.value}:"


def extract_event_key(insight_keys: Iterable[str] | None) -> str | None:
    """Return the first ``event:<slug>`` key with its prefix stripped.

    ``None`` when the item has no keys or no (non-empty) event key.
    """
    if not insight_keys:
        return None
    for key in insight_keys:
        if key.startswith(_EVENT_PREFIX):
            return key[len(_EVENT_PREFIX):] or None
    return None


@dataclass
class PlacementState:
    """Accumulator threaded through the diversity pass.

    Attributes:
        placed:             Items placed so far, in output order.
        event_key_counts:   Placements per event key.
        article_placed:     Whether any article has been placed.
        articles_remaining: Articles still in the unplaced pool.
        relaxed:            Placements that only satisfied constraint 1.
        forced:             Placements that satisfied no constraint.
    """

    placed:             list[ScoredInsight] = field(default_factory=list)
    event_key_counts:   Counter[str] = field(default_factory=Counter)
    article_placed:     bool = False
    articles_remaining: int = 0
    relaxed:            int = 0
    forced:             int = 0

    @property
    def position(self) -> int:
        return len(self.placed)

    def place(self, item: ScoredInsight) -> None:
        self.placed.append(item)
        event_key = extract_event_key(item.insight_keys)
        if event_key:
            self.event_key_counts[event_key] += 1
        if item.source_type == SourceType.ARTICLE:
            self.article_placed = True
            self.articles_remaining -= 1


def satisfies_source_run(item: ScoredInsight, state: PlacementState, config: DiversityConfig) -> bool:
    """Constraint 1: placing ``item`` must not extend a same-type run past the limit."""
    run = config.max_same_source_run
    if state.position < run:
        return True
    recent = state.placed[-run:]
    return not all(p.source_type == item.source_type for p in recent)


def satisfies_event_cap(item: ScoredInsight, state: PlacementState, config: DiversityConfig) -> bool:
    """Constraint 2: event key under its cap within the leading window."""
    if state.position >= config.event_cap_window:
        return True
    event_key = extract_event_key(item.insight_keys)
    if event_key is None:
        return True
    return state.event_key_counts[event_key] < config.event_key_cap


def satisfies_article_slot(item: ScoredInsight, state: PlacementState, config: DiversityConfig) -> bool:
    """Constraint 3: hold the leading window open for a waiting article."""
    if state.position >= config.article_window or state.article_placed:
        return True
    if item.source_type == SourceType.ARTICLE:
        return True
    return state.articles_remaining <= 0


def satisfies_all(item: ScoredInsight, state: PlacementState, config: DiversityConfig) -> bool:
    return (
        satisfies_source_run(item, state, config)
        and satisfies_event_cap(item, state, config)
        and satisfies_article_slot(item, state, config)
    )


def apply_diversity_constraints(
    ranked: list[ScoredInsight],
    config: DiversityConfig | None = None,
) -> list[ScoredInsight]:
    """Reorder a score-sorted list so it satisfies the diversity constraints.

    Args:
        ranked: Items sorted by score descending (output of ``sort_by_score``).
        config: Placement limits; defaults to ``DiversityConfig()``.

    Returns:
        A new list holding the same items in display order.
    """
    if not ranked:
        return []

    cfg = config or DiversityConfig()
    remaining = list(ranked)
    state = PlacementState(
        articles_remaining=sum(1 for r in remaining if r.source_type == SourceType.ARTICLE),
    )

    while remaining:
        idx = _first_index(remaining, lambda c: satisfies_all(c, state, cfg))
        if idx is None:
            idx = _first_index(remaining, lambda c: satisfies_source_run(c, state, cfg))
            if idx is None:
                idx = 0
                state.forced += 1
            else:
                state.relaxed += 1
        state.place(remaining.pop(idx))

    if state.relaxed or state.forced:
        logger.debug(
            "Diversity pass relaxed %d and forced %d of %d placements.",
            state.relaxed, state.forced, len(state.placed),
        )
    return state.placed


def _first_index(
    items: list[ScoredInsight],
    predicate: Callable[[ScoredInsight], bool],
) -> int | None:
    for i, item in enumerate(items):
        if predicate(item):
            return i
    return None
