"""
Tests for session_insights/ingestion/adapter.py.

What we test
------------
parse_insight_item():
  - Picks ArticleItem / ActivityItem / NoteItem from sourceType.
  - Unknown source types become a plain InsightItem.
  - Scoring fields nested under ``metadata`` are lifted; top level wins.
  - Already-parsed items pass through.
  - Documents without insightKeys get derived keys; stored keys are kept.

parse_insight_items():
  - Parses a realistic mixed snapshot in order.
  - Raises on invalid documents unless skip_invalid=True.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from session_insights.ingestion.adapter import parse_insight_item, parse_insight_items
from session_insights.models.insight import (
    ActivityItem,
    ArticleItem,
    InsightItem,
    NoteItem,
)


class TestParseInsightItem:
    def test_variant_selection(self):
        assert isinstance(parse_insight_item({"sourceType": "article", "sourceId": "p"}), ArticleItem)
        assert isinstance(parse_insight_item({"sourceType": "activity", "sourceId": "a"}), ActivityItem)
        assert isinstance(parse_insight_item({"sourceType": "note", "sourceId": "n"}), NoteItem)

    def test_snake_case_source_type(self):
        assert isinstance(parse_insight_item({"source_type": "note", "source_id": "n"}), NoteItem)

    def test_unknown_source_type_is_base_item(self):
        item = parse_insight_item({"sourceType": "video", "sourceId": "v"})
        assert type(item) is InsightItem
        assert item.source_type == "video"

    def test_metadata_lifted(self):
        item = parse_insight_item({
            "sourceType": "article",
            "sourceId": "p",
            "metadata": {"viewCount": 120, "likeCount": 4, "slug": "ignored"},
        })
        assert item.view_count == 120
        assert item.like_count == 4

    def test_top_level_wins_over_metadata(self):
        item = parse_insight_item({
            "sourceType": "activity",
            "sourceId": "a",
            "severity": "warning",
            "metadata": {"severity": "error", "visibility": "internal"},
        })
        assert item.severity == "warning"
        assert item.visibility == "internal"

    def test_passthrough(self):
        item = NoteItem(source_id="n")
        assert parse_insight_item(item) is item

    def test_existing_keys_kept(self):
        item = parse_insight_item({
            "sourceType": "article",
            "sourceId": "p",
            "eventTags": ["cpi"],
            "insightKeys": ["event:nfp"],
        })
        assert item.insight_keys == ("event:nfp",)

    def test_missing_source_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_insight_item({"sourceId": "x"})


class TestParseInsightItems:
    def test_mixed_snapshot(self, mixed_documents):
        items = parse_insight_items(mixed_documents)
        assert [type(i) for i in items] == [
            ActivityItem, ArticleItem, NoteItem, ActivityItem, InsightItem,
        ]
        assert items[0].severity == "error"
        assert items[1].view_count == 500

    def test_invalid_raises_by_default(self):
        with pytest.raises(ValidationError):
            parse_insight_items([{"sourceType": "note", "sourceId": "ok"}, {"sourceType": "note"}])

    def test_skip_invalid(self):
        items = parse_insight_items(
            [{"sourceType": "note", "sourceId": "ok"}, {"sourceType": "note"}],
            skip_invalid=True,
        )
        assert [i.source_id for i in items] == ["ok"]


class TestDerivedInsightKeys:
    def test_article_from_tags(self):
        item = parse_insight_item({
            "sourceType": "article",
            "sourceId": "blogPosts/p7",
            "id": "p7",
            "eventTags": ["NFP"],
            "currencyTags": ["usd"],
        })
        assert item.insight_keys == (
            "post:p7", "event:nfp", "currency:USD", "eventCurrency:nfp_USD",
        )

    def test_article_falls_back_to_source_id(self):
        item = parse_insight_item({"sourceType": "article", "sourceId": "p8"})
        assert item.insight_keys == ("post:p8",)

    def test_activity_from_metadata(self):
        item = parse_insight_item({
            "sourceType": "activity",
            "sourceId": "a1",
            "insightKeys": [],
            "metadata": {"activityType": "event_rescheduled", "eventName": "CPI", "currency": "USD"},
        })
        assert item.activity_type == "event_rescheduled"
        assert item.insight_keys == ("event:cpi", "currency:USD", "eventCurrency:cpi_USD")

    def test_note_name_key(self):
        item = parse_insight_item({
            "sourceType": "note",
            "sourceId": "n1",
            "nameKey": "fomc",
            "currencyKey": "usd",
        })
        assert item.insight_keys == ("event:fomc", "currency:USD", "eventCurrency:fomc_USD")

    def test_unknown_source_type_gets_no_keys(self):
        item = parse_insight_item({"sourceType": "video", "sourceId": "v", "eventTags": ["nfp"]})
        assert item.insight_keys == ()
