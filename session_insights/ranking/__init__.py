"""
Insight ranking engine: scores heterogeneous insight items and reorders
them into a relevance-ordered, diversified feed.

Modules
-------
scorer    : ScoreComponents + recency_score() + boosters + compute_score()
            - pure functions, no I/O.
dedup     : deduplicate_items() - first occurrence per (source_type, source_id).
ranker    : ScoredInsight + score_items() + sort_by_score() + rank_insights().
diversity : PlacementState + apply_diversity_constraints() - greedy placement
            with constraint relaxation.
trending  : aggregate_trending_keys() - fallback candidate keys.
"""

from session_insights.ranking.dedup import deduplicate_items
from session_insights.ranking.diversity import apply_diversity_constraints
from session_insights.ranking.ranker import ScoredInsight, rank_insights
from session_insights.ranking.trending import aggregate_trending_keys

__all__ = [
    "ScoredInsight",
    "aggregate_trending_keys",
    "apply_diversity_constraints",
    "deduplicate_items",
    "rank_insights",
]
