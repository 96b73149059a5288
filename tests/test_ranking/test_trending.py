"""
Tests for session_insights/ranking/trending.py.

What we test
------------
aggregate_trending_keys():
  - Top keys by descending frequency.
  - Equal counts keep first-encountered order.
  - At most top_k keys; fewer when fewer distinct keys exist.
  - Empty / key-less input and top_k <= 0 → [].
"""

from __future__ import annotations

from session_insights.models.insight import ActivityItem, InsightItem
from session_insights.ranking.trending import aggregate_trending_keys


def _items(*key_lists: list[str]) -> list[InsightItem]:
    return [ActivityItem(source_id=str(i), insight_keys=keys) for i, keys in enumerate(key_lists)]


class TestAggregateTrendingKeys:
    def test_top_two_by_frequency(self):
        items = _items(["a"], ["a"], ["b"], ["c"], ["a"], ["b"])
        assert aggregate_trending_keys(items, top_k=2) == ["a", "b"]

    def test_ties_keep_first_encountered_order(self):
        items = _items(["b"], ["a", "c"], ["a", "b"], ["c"])
        assert aggregate_trending_keys(items, top_k=3) == ["b", "a", "c"]

    def test_default_top_k_is_six(self):
        items = _items([f"k{i}" for i in range(10)])
        assert len(aggregate_trending_keys(items)) == 6

    def test_fewer_distinct_keys_than_top_k(self):
        items = _items(["a"], ["b"])
        assert aggregate_trending_keys(items, top_k=10) == ["a", "b"]

    def test_duplicate_keys_within_item_count_once(self):
        items = _items(["a", "a", "a"], ["b"], ["b"])
        assert aggregate_trending_keys(items, top_k=1) == ["b"]

    def test_empty_input(self):
        assert aggregate_trending_keys([]) == []

    def test_keyless_items(self):
        items = [ActivityItem(source_id="1"), ActivityItem(source_id="2", insight_keys=None)]
        assert aggregate_trending_keys(items) == []

    def test_non_positive_top_k(self):
        items = _items(["a"])
        assert aggregate_trending_keys(items, top_k=0) == []
        assert aggregate_trending_keys(items, top_k=-3) == []
