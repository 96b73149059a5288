"""
Insight ranker: deduplicates, scores, sorts and diversifies a feed snapshot.

Usage flow
----------
1. deduplicate_items(items)              -> list[InsightItem]
2. score_items(items, context, config)   -> list[ScoredInsight]
3. sort_by_score(scored)                 -> list[ScoredInsight]  (stable, desc)
4. apply_diversity_constraints(sorted)   -> list[ScoredInsight]  (display order)

``rank_insights()`` runs all four steps and is the main entry point.

Ties in score keep their input order. There is deliberately no secondary
sort key: callers that need reproducible ordering across retrieval paths
should feed items in a stable order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from session_insights.config import RankingConfig
from session_insights.models.insight import InsightItem, RankingContext
from session_insights.ranking.dedup import deduplicate_items
from session_insights.ranking.diversity import apply_diversity_constraints
from session_insights.ranking.scorer import ScoreComponents, compute_score
from session_insights.taxonomy.insight_taxonomy import SourceType
from session_insights.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class ScoredInsight:
    """An InsightItem annotated with its ranking score.

    Attributes:
        item:       The underlying (frozen) InsightItem.
        score:      Total score; mutable so callers can re-weight.
        components: Detailed score breakdown.
    """

    item:       InsightItem
    score:      float
    components: ScoreComponents

    @property
    def source_type(self) -> str:
        return self.item.source_type

    @property
    def source_id(self) -> str:
        return self.item.source_id

    @property
    def insight_keys(self) -> tuple[str, ...]:
        return self.item.insight_keys


def score_items(
    items:   Iterable[InsightItem],
    context: RankingContext,
    config:  RankingConfig | None = None,
) -> list[ScoredInsight]:
    """Score every item against the ranking context; order is preserved."""
    scored: list[ScoredInsight] = []
    for item in items:
        components = compute_score(
            item,
            candidate_keys=context.candidate_keys,
            now=context.now,
            config=config,
        )
        scored.append(ScoredInsight(item=item, score=components.total, components=components))
    return scored


def sort_by_score(scored: Iterable[ScoredInsight]) -> list[ScoredInsight]:
    """Stable sort by score descending."""
    return sorted(scored, key=lambda s: s.score, reverse=True)


def rank_insights(
    items:           Iterable[InsightItem],
    candidate_keys:  Iterable[str] | None = None,
    now:             Optional[datetime] = None,
    apply_diversity: bool | None = None,
    config:          RankingConfig | None = None,
) -> list[ScoredInsight]:
    """Rank a snapshot of insight items for display.

    Args:
        items:           Items from any number of retrieval paths; duplicates
                         and unknown source types are tolerated.
        candidate_keys:  Keys the caller is interested in (multi-match bonus).
        now:             Reference time for timestamp-based ages. Defaults to
                         the current UTC time; items with ``age_hours`` set
                         never consult it.
        apply_diversity: Run the diversity pass. ``None`` defers to
                         ``config.apply_diversity`` (True by default).
        config:          Ranking parameters; defaults to ``RankingConfig()``.

    Returns:
        Every deduplicated item, scored, in final display order.
    """
    cfg = config or RankingConfig()
    context = RankingContext(
        now=now if now is not None else utc_now(),
        candidate_keys=tuple(candidate_keys or ()),
        apply_diversity=cfg.apply_diversity if apply_diversity is None else apply_diversity,
    )

    deduped = deduplicate_items(items)
    ranked = sort_by_score(score_items(deduped, context, cfg))

    if context.apply_diversity:
        ranked = apply_diversity_constraints(ranked, cfg.diversity)

    logger.debug(
        "Ranked %d insight item(s) (candidate_keys=%d, diversity=%s).",
        len(ranked), len(context.candidate_keys), context.apply_diversity,
    )
    return ranked


def count_by_source(items: Iterable[ScoredInsight | InsightItem]) -> dict[str, int]:
    """Count items per known source type; unknown types are not counted."""
    totals = {t.value: 0 for t in SourceType}
    for entry in items:
        if entry.source_type in totals:
            totals[entry.source_type] += 1
    return totals
