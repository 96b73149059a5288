"""
Insight item models - the input records of the ranking engine.

``InsightItem`` is the common base shared by every source type. The three
recognised variants narrow ``source_type`` to a literal and add their own
optional fields:

  - ``ArticleItem``  → ``view_count`` / ``like_count`` (engagement boost)
  - ``ActivityItem`` → ``severity`` / ``activity_type`` (severity boost)
  - ``NoteItem``     → no extra scoring fields

A bare ``InsightItem`` stands for an item whose ``source_type`` is not
recognised; it is still scored and ranked, it just earns no type-specific
terms.

Field names are snake_case in Python; the camelCase names used by the
document store (``sourceType``, ``insightKeys``, ``createdAt`` ...) are
accepted on input so raw documents validate directly.

All models are frozen. The derived ranking score lives on ``ScoredInsight``
(see ``session_insights.ranking.ranker``), never on the item itself.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_ITEM_MODEL_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
)


class InsightItem(BaseModel):
    """A unit of content eligible for ranking.

    Attributes:
        source_type: ``"article"``, ``"activity"`` or ``"note"``. Other values
            are tolerated and contribute no recency or boosts.
        source_id: Opaque identifier, unique within ``source_type``.
        timestamp: Creation / publication time. Accepts ``timestamp``,
            ``createdAt`` or ``publishedAt`` on input.
        age_hours: Precomputed age relative to the caller's ``now``. When set
            it takes precedence over ``timestamp``.
        insight_keys: Tag strings such as ``"event:nfp"``. Duplicates are
            dropped, first-seen order kept.
        title: Display title, ignored by the engine.
        summary: Display summary, ignored by the engine.
        visibility: Access level (activity logs), ``None`` when not set.
    """

    model_config = _ITEM_MODEL_CONFIG

    source_type: str
    source_id: str
    timestamp: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("timestamp", "createdAt", "publishedAt"),
    )
    age_hours: Optional[float] = None
    insight_keys: tuple[str, ...] = ()
    title: Optional[str] = None
    summary: Optional[str] = None
    visibility: Optional[str] = None

    @field_validator("source_id", mode="before")
    @classmethod
    def coerce_source_id(cls, v: Any) -> Any:
        """Numeric document ids are stored as strings."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("insight_keys", mode="before")
    @classmethod
    def normalize_insight_keys(cls, v: Any) -> Any:
        """``None`` → empty; drop duplicates and non-string entries."""
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        return tuple(dict.fromkeys(k for k in v if isinstance(k, str)))

    @property
    def identity(self) -> tuple[str, str]:
        """Deduplication key: ``(source_type, source_id)``."""
        return (self.source_type, self.source_id)


class ArticleItem(InsightItem):
    """Published article. Engagement counts default to 0 when absent."""

    source_type: Literal["article"] = "article"
    view_count: int = 0
    like_count: int = 0

    @field_validator("view_count", "like_count", mode="before")
    @classmethod
    def none_count_is_zero(cls, v: Any) -> Any:
        return 0 if v is None else v


class ActivityItem(InsightItem):
    """Activity log entry.

    ``severity`` is kept as a plain string so that unknown levels validate
    and simply earn no boost.
    """

    source_type: Literal["activity"] = "activity"
    severity: Optional[str] = None
    activity_type: Optional[str] = None


class NoteItem(InsightItem):
    """Personal note on an economic event."""

    source_type: Literal["note"] = "note"


class RankingContext(BaseModel):
    """Per-call ranking inputs. Not persisted.

    Attributes:
        now: Reference time for items that carry a ``timestamp`` but no
            ``age_hours``.
        candidate_keys: Keys the caller is interested in; drives the
            multi-match bonus. Empty disables the bonus.
        apply_diversity: Whether the diversity pass reorders the output.
    """

    model_config = ConfigDict(frozen=True)

    now: Optional[datetime] = None
    candidate_keys: tuple[str, ...] = ()
    apply_diversity: bool = True

    @field_validator("candidate_keys", mode="before")
    @classmethod
    def normalize_candidate_keys(cls, v: Any) -> Any:
        if v is None:
            return ()
        return tuple(dict.fromkeys(v))
