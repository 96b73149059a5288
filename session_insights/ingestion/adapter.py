"""
Adapter from raw store documents to typed InsightItem models.

``parse_insight_item`` picks the model variant from the document's
``sourceType`` (or ``source_type``). Unknown source types become a plain
``InsightItem`` rather than an error so they can still be ranked.

Documents stored without ``insightKeys`` get keys derived from their tags,
event names and currencies (see ``ingestion.insight_keys``).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Mapping

from pydantic import ValidationError

from session_insights.ingestion.insight_keys import (
    compute_activity_insight_keys,
    compute_article_insight_keys,
    compute_note_insight_keys,
)
from session_insights.models.insight import (
    ActivityItem,
    ArticleItem,
    InsightItem,
    NoteItem,
)
from session_insights.taxonomy.insight_taxonomy import SourceType

logger = logging.getLogger(__name__)

_MODEL_BY_SOURCE: dict[str, type[InsightItem]] = {
    SourceType.ARTICLE.value:  ArticleItem,
    SourceType.ACTIVITY.value: ActivityItem,
    SourceType.NOTE.value:     NoteItem,
}


def _flatten_metadata(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Lift scoring fields out of a nested ``metadata`` mapping.

    Documents keep ``viewCount``, ``likeCount``, ``severity``,
    ``activityType`` and ``visibility`` under ``metadata``; top-level values
    win when both are present.
    """
    data = dict(raw)
    metadata = data.pop("metadata", None)
    if isinstance(metadata, Mapping):
        for key in ("viewCount", "likeCount", "severity", "activityType", "visibility"):
            if key in metadata and key not in data:
                data[key] = metadata[key]
    return data


def _derive_insight_keys(source_type: str, raw: Mapping[str, Any]) -> list[str]:
    """Compute insight keys for a document stored without them.

    Top-level fields win over ``metadata`` ones. Articles use ``id``, then
    ``postId``, then ``sourceId`` as the post id.
    """
    metadata = raw.get("metadata")
    fields: dict[str, Any] = dict(metadata) if isinstance(metadata, Mapping) else {}
    fields.update((k, v) for k, v in raw.items() if k != "metadata")

    if source_type == SourceType.ARTICLE:
        fields["id"] = fields.get("id") or fields.get("postId") or fields.get("sourceId")
        return compute_article_insight_keys(fields)
    if source_type == SourceType.ACTIVITY:
        return compute_activity_insight_keys(fields.get("activityType"), fields)
    if source_type == SourceType.NOTE:
        return compute_note_insight_keys(fields)
    return []


def parse_insight_item(raw: Mapping[str, Any] | InsightItem) -> InsightItem:
    """Validate one raw document into the matching InsightItem variant.

    Raises:
        pydantic.ValidationError: If required fields are missing or invalid.
    """
    if isinstance(raw, InsightItem):
        return raw
    data = _flatten_metadata(raw)
    source_type = data.get("sourceType", data.get("source_type"))
    if not data.get("insightKeys") and not data.get("insight_keys"):
        data.pop("insight_keys", None)
        data["insightKeys"] = _derive_insight_keys(str(source_type), raw)
    model = _MODEL_BY_SOURCE.get(str(source_type), InsightItem)
    return model.model_validate(data)


def parse_insight_items(
    raw_items:    Iterable[Mapping[str, Any] | InsightItem],
    skip_invalid: bool = False,
) -> list[InsightItem]:
    """Validate a batch of documents.

    Args:
        raw_items:    Documents in retrieval order.
        skip_invalid: When True, documents that fail validation are logged at
                      DEBUG and skipped instead of raising.

    Returns:
        Parsed items in input order.
    """
    items: list[InsightItem] = []
    for idx, raw in enumerate(raw_items):
        try:
            items.append(parse_insight_item(raw))
        except ValidationError as exc:
            if not skip_invalid:
                raise
            logger.debug(
                "Skipping invalid insight document #%d: %d error(s).",
                idx, exc.error_count(),
            )
    return items
