"""
Feed assembly: turns a page context + user filters into a query plan, and a
fetched snapshot of items into a ranked feed.

Flow
----
1. resolve_query_plan(context, filters, role)
   -> QueryPlan  (candidate keys, source types, limits, timeframe, visibility)

2. The caller fetches items from its store using the plan (outside this
   package).

3. build_feed(items, plan, now)
   -> FeedResult  (ranked items, per-source totals, trending flag)

When the plan has no candidate keys the feed runs in *trending mode*: the
most frequent keys of the fetched items become the candidate keys. When a
bounded timeframe leaves nothing to show, the window is dropped and the full
snapshot is used instead.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from session_insights.config import FeedConfig, RankingConfig
from session_insights.models.insight import ActivityItem, InsightItem
from session_insights.ranking.dedup import deduplicate_items
from session_insights.ranking.ranker import ScoredInsight, count_by_source, rank_insights
from session_insights.ranking.scorer import resolve_age_hours
from session_insights.ranking.trending import aggregate_trending_keys
from session_insights.taxonomy.insight_taxonomy import (
    ActivityVisibility,
    InsightKeyPrefix,
    SourceType,
    determine_activity_visibility,
)
from session_insights.utils.time_utils import timeframe_to_timedelta, utc_now

logger = logging.getLogger(__name__)

_ROLE_VISIBILITY: dict[str, tuple[str, ...]] = {
    "superadmin": (
        ActivityVisibility.PUBLIC.value,
        ActivityVisibility.INTERNAL.value,
        ActivityVisibility.ADMIN.value,
    ),
    "admin": (
        ActivityVisibility.PUBLIC.value,
        ActivityVisibility.INTERNAL.value,
    ),
}


# ── Models ────────────────────────────────────────────────────────────────────


class PageContext(BaseModel):
    """What the current page is showing (article page, calendar event ...)."""

    model_config = ConfigDict(frozen=True)

    post_id: Optional[str] = None
    event_tags: tuple[str, ...] = ()
    currency_tags: tuple[str, ...] = ()


class FeedFilters(BaseModel):
    """User-selected filters. ``None`` fields fall back to ``FeedConfig``."""

    model_config = ConfigDict(frozen=True)

    source_types: Optional[tuple[str, ...]] = None
    event_key: Optional[str] = None
    currency: Optional[str] = None
    timeframe: Optional[str] = None


class QueryPlan(BaseModel):
    """Resolved retrieval and ranking plan for one feed request."""

    model_config = ConfigDict(frozen=True)

    candidate_keys: tuple[str, ...] = ()
    source_types: tuple[str, ...] = tuple(t.value for t in SourceType)
    limits: dict[str, int] = {}
    timeframe: str = "7d"
    visibility_levels: tuple[str, ...] = (ActivityVisibility.PUBLIC.value,)

    @field_validator("candidate_keys")
    @classmethod
    def dedupe_candidate_keys(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(dict.fromkeys(v))

    @property
    def trending_mode(self) -> bool:
        return not self.candidate_keys


@dataclass
class FeedResult:
    """Ranked feed plus summary counts.

    Attributes:
        items:           Scored items in display order.
        total_by_source: Item count per known source type.
        candidate_keys:  Keys actually used for scoring (trending keys in
                         trending mode).
        trending_mode:   True when the plan had no candidate keys.
        window_relaxed:  True when the timeframe was dropped because it left
                         no items.
    """

    items:           list[ScoredInsight] = field(default_factory=list)
    total_by_source: dict[str, int] = field(default_factory=lambda: count_by_source([]))
    candidate_keys:  tuple[str, ...] = ()
    trending_mode:   bool = False
    window_relaxed:  bool = False


# ── Planning ──────────────────────────────────────────────────────────────────


def visibility_levels_for_role(role: str | None) -> tuple[str, ...]:
    """Visibility levels a user role may see; unknown roles see public only."""
    return _ROLE_VISIBILITY.get(role or "", (ActivityVisibility.PUBLIC.value,))


def resolve_query_plan(
    context: PageContext | None = None,
    filters: FeedFilters | None = None,
    role:    str | None = None,
    config:  FeedConfig | None = None,
) -> QueryPlan:
    """Derive candidate keys, source types and limits from context + filters.

    Candidate keys, in order:
      - ``eventCurrency:<event>_<CCY>`` when both filters are set, otherwise
        ``event:<event>`` or ``currency:<CCY>`` for whichever is set;
      - ``event:`` / ``currency:`` keys for the page's tags;
      - ``post:<postId>`` for the page's article.
    """
    context = context or PageContext()
    filters = filters or FeedFilters()
    cfg = config or FeedConfig()

    keys: list[str] = []
    if filters.event_key and filters.currency:
        keys.append(InsightKeyPrefix.EVENT_CURRENCY.key(f"{filters.event_key}_{filters.currency}"))
    elif filters.event_key:
        keys.append(InsightKeyPrefix.EVENT.key(filters.event_key))
    elif filters.currency:
        keys.append(InsightKeyPrefix.CURRENCY.key(filters.currency))

    keys.extend(InsightKeyPrefix.EVENT.key(tag) for tag in context.event_tags)
    keys.extend(InsightKeyPrefix.CURRENCY.key(ccy) for ccy in context.currency_tags)
    if context.post_id:
        keys.append(InsightKeyPrefix.POST.key(context.post_id))

    return QueryPlan(
        candidate_keys=tuple(keys),
        source_types=tuple(filters.source_types or cfg.source_types),
        limits=dict(cfg.source_limits),
        timeframe=filters.timeframe or cfg.default_timeframe,
        visibility_levels=visibility_levels_for_role(role),
    )


# ── Assembly ──────────────────────────────────────────────────────────────────


def _within_window(items: list[InsightItem], plan: QueryPlan, now: datetime) -> list[InsightItem]:
    window = timeframe_to_timedelta(plan.timeframe)
    if window is None:
        return items
    max_age = window.total_seconds() / 3600.0
    return [i for i in items if resolve_age_hours(i, now) <= max_age]


def _effective_visibility(item: InsightItem) -> str | None:
    """Item visibility; activity entries without one get their type's default."""
    if item.visibility is not None:
        return item.visibility
    if isinstance(item, ActivityItem):
        return determine_activity_visibility(item.activity_type).value
    return None


def _visible_to(item: InsightItem, allowed: set[str]) -> bool:
    visibility = _effective_visibility(item)
    return visibility is None or visibility in allowed


def _newest_first(items: list[InsightItem], now: datetime) -> list[InsightItem]:
    return sorted(items, key=lambda i: resolve_age_hours(i, now))


def _apply_limits(items: list[InsightItem], limits: dict[str, int]) -> list[InsightItem]:
    """Keep the first ``limits[source_type]`` items of each source type.

    ``items`` must already be newest first.
    """
    seen: dict[str, int] = {}
    kept: list[InsightItem] = []
    for item in items:
        limit = limits.get(item.source_type)
        count = seen.get(item.source_type, 0)
        if limit is not None and count >= limit:
            continue
        seen[item.source_type] = count + 1
        kept.append(item)
    return kept


def build_feed(
    items:  Iterable[InsightItem],
    plan:   QueryPlan,
    now:    Optional[datetime] = None,
    config: RankingConfig | None = None,
) -> FeedResult:
    """Filter, deduplicate, rank and count a fetched snapshot.

    Per-source limits keep the newest items of each type. Activity entries
    without a stored visibility take the default for their activity type.

    Args:
        items:  Items fetched for ``plan`` (any order, duplicates allowed).
        plan:   Output of ``resolve_query_plan()``.
        now:    Reference time; defaults to the current UTC time.
        config: Ranking parameters; defaults to ``RankingConfig()``.

    Returns:
        FeedResult. An empty snapshot gives an empty result, not an error.
    """
    cfg = config or RankingConfig()
    now = now or utc_now()

    allowed_types = set(plan.source_types)
    allowed_visibility = set(plan.visibility_levels)
    visible = [
        i for i in deduplicate_items(items)
        if i.source_type in allowed_types
        and _visible_to(i, allowed_visibility)
    ]
    if not visible:
        return FeedResult(trending_mode=plan.trending_mode)

    windowed = _within_window(visible, plan, now)
    window_relaxed = False
    if not windowed:
        logger.debug("No items within timeframe %s; dropping the window.", plan.timeframe)
        windowed = visible
        window_relaxed = True

    limited = _apply_limits(_newest_first(windowed, now), plan.limits)

    candidate_keys = plan.candidate_keys
    if plan.trending_mode:
        candidate_keys = tuple(aggregate_trending_keys(limited, top_k=cfg.trending_top_k))
        logger.debug("Trending mode: using %d fallback candidate key(s).", len(candidate_keys))

    ranked = rank_insights(limited, candidate_keys=candidate_keys, now=now, config=cfg)

    return FeedResult(
        items=ranked,
        total_by_source=count_by_source(ranked),
        candidate_keys=candidate_keys,
        trending_mode=plan.trending_mode,
        window_relaxed=window_relaxed,
    )
