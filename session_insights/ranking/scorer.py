"""
Insight scoring: converts an InsightItem into a ScoreComponents breakdown.

Score formula (additive, every term >= 0)
-----------------------------------------
    total = recency + severity_boost + engagement_boost + multi_match_bonus

Component explanations
----------------------
recency (0–1):
    exp(-age_hours / half_life), age clamped to >= 0 first so future-dated
    items never exceed 1. Half-life per source type: article 72h,
    activity 24h, note 168h. At one half-life the score is e**-1 ≈ 0.368.
    Unknown source type or unknown age → 0.

severity_boost (0–0.3, activity only):
    error 0.3, warning 0.2, success 0.1, info 0. Unknown severity → 0.

engagement_boost (0–4, article only):
    min(2, views * 0.01) + min(2, likes * 0.1), capped at 4.

multi_match_bonus (0–0.75, any type, only with candidate keys):
    The first matching key carries no bonus; each additional match adds
    0.15, capped at 0.75.

No function here raises on malformed input: missing fields contribute 0.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from session_insights.config import RankingConfig
from session_insights.models.insight import InsightItem
from session_insights.taxonomy.insight_taxonomy import SourceType
from session_insights.utils.time_utils import age_hours_between

_SEVERITY_BOOST: dict[str, float] = {
    "error":   0.3,
    "warning": 0.2,
    "success": 0.1,
    "info":    0.0,
}

_VIEW_WEIGHT = 0.01
_VIEW_CAP = 2.0
_LIKE_WEIGHT = 0.1
_LIKE_CAP = 2.0
_ENGAGEMENT_CAP = 4.0

_MULTI_MATCH_STEP = 0.15
_MULTI_MATCH_CAP = 0.75

_DEFAULT_CONFIG = RankingConfig()


@dataclass
class ScoreComponents:
    """All components of an insight score.

    Attributes:
        recency:           0–1, exponential time decay.
        severity_boost:    0–0.3, activities only.
        engagement_boost:  0–4, articles only.
        multi_match_bonus: 0–0.75, extra candidate-key matches.
        age_hours:         Age used for the recency term (``inf`` if unknown).
        half_life_hours:   Half-life used, ``None`` for unknown source types.
        match_count:       Number of item keys found in the candidate keys.
    """

    recency:           float
    severity_boost:    float
    engagement_boost:  float
    multi_match_bonus: float
    age_hours:         float
    half_life_hours:   float | None
    match_count:       int

    @property
    def total(self) -> float:
        return (
            self.recency
            + self.severity_boost
            + self.engagement_boost
            + self.multi_match_bonus
        )


# ── Recency model ─────────────────────────────────────────────────────────────

def recency_score(age_hours: float, half_life_hours: float) -> float:
    """Exponential decay score in [0, 1].

    Args:
        age_hours:       Hours since the item was created. Negative values
                         (future timestamps) are treated as 0; ``inf`` or NaN
                         give 0.
        half_life_hours: Decay time constant. Non-positive → 0.

    Returns:
        ``exp(-max(0, age_hours) / half_life_hours)`` clamped to [0, 1].
    """
    if half_life_hours is None or half_life_hours <= 0:
        return 0.0
    if age_hours is None or math.isnan(age_hours):
        return 0.0
    score = math.exp(-max(0.0, age_hours) / half_life_hours)
    return _clamp(score, 0.0, 1.0)


# ── Signal boosters ───────────────────────────────────────────────────────────

def severity_boost(severity: str | None) -> float:
    """Boost for an activity's severity level; unknown → 0."""
    if not severity:
        return 0.0
    return _SEVERITY_BOOST.get(str(severity).lower(), 0.0)


def engagement_boost(view_count: float | None, like_count: float | None) -> float:
    """Boost for article views and likes, capped at 4."""
    views = max(0.0, float(view_count or 0))
    likes = max(0.0, float(like_count or 0))
    boost = min(_VIEW_CAP, views * _VIEW_WEIGHT) + min(_LIKE_CAP, likes * _LIKE_WEIGHT)
    return min(_ENGAGEMENT_CAP, boost)


def multi_match_bonus(match_count: int) -> float:
    """Bonus for matching more than one candidate key.

    The first match is implied by retrieval and earns nothing; each
    additional match adds 0.15, up to 0.75.
    """
    if match_count <= 1:
        return 0.0
    return min(_MULTI_MATCH_CAP, (match_count - 1) * _MULTI_MATCH_STEP)


def count_key_matches(insight_keys: Iterable[str] | None, candidate_keys: Iterable[str] | None) -> int:
    """Size of the intersection of an item's keys and the candidate keys."""
    if not insight_keys or not candidate_keys:
        return 0
    return len(set(insight_keys) & set(candidate_keys))


# ── Scorer ────────────────────────────────────────────────────────────────────

def resolve_age_hours(item: InsightItem, now: Optional[datetime]) -> float:
    """Age of ``item`` in hours.

    ``item.age_hours`` wins when set. Otherwise the age is derived from
    ``item.timestamp`` and ``now``; if either is missing the age is ``inf``.
    """
    if item.age_hours is not None:
        return item.age_hours
    if now is None:
        return math.inf
    return age_hours_between(now, item.timestamp)


def compute_score(
    item:           InsightItem,
    candidate_keys: Iterable[str] | None = None,
    now:            Optional[datetime] = None,
    config:         RankingConfig | None = None,
) -> ScoreComponents:
    """Compute all score components for one insight item.

    Only the terms that apply to ``item.source_type`` are non-zero: articles
    never get a severity boost, activities never get an engagement boost.

    Args:
        item:           The item to score.
        candidate_keys: Keys the caller is interested in. Empty or ``None``
                        disables the multi-match bonus.
        now:            Reference time for items without ``age_hours``.
        config:         Half-life settings; defaults to ``RankingConfig()``.

    Returns:
        ScoreComponents with all fields populated.
    """
    cfg = config or _DEFAULT_CONFIG
    source_type = item.source_type

    age = resolve_age_hours(item, now)
    half_life = cfg.half_life_for(source_type)
    recency = recency_score(age, half_life) if half_life is not None else 0.0

    sev = 0.0
    if source_type == SourceType.ACTIVITY:
        sev = severity_boost(getattr(item, "severity", None))

    engagement = 0.0
    if source_type == SourceType.ARTICLE:
        engagement = engagement_boost(
            getattr(item, "view_count", 0),
            getattr(item, "like_count", 0),
        )

    matches = count_key_matches(item.insight_keys, candidate_keys)

    return ScoreComponents(
        recency=recency,
        severity_boost=sev,
        engagement_boost=engagement,
        multi_match_bonus=multi_match_bonus(matches),
        age_hours=age,
        half_life_hours=half_life,
        match_count=matches,
    )


# ── Helper ────────────────────────────────────────────────────────────────────

def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
