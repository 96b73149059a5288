"""
Tests for session_insights/taxonomy/insight_taxonomy.py.

What we test
------------
  - InsightKeyPrefix.key() builds ``<prefix>:<value>`` keys.
  - determine_activity_visibility(): known activity types map to their access
    level; unknown or missing types are internal.
"""

from __future__ import annotations

import pytest

from session_insights.taxonomy.insight_taxonomy import (
    VISIBILITY_BY_ACTIVITY_TYPE,
    ActivityVisibility,
    InsightKeyPrefix,
    determine_activity_visibility,
)


class TestInsightKeyPrefix:
    def test_key(self):
        assert InsightKeyPrefix.EVENT.key("nfp") == "event:nfp"
        assert InsightKeyPrefix.EVENT_CURRENCY.key("nfp_USD") == "eventCurrency:nfp_USD"


class TestActivityVisibility:
    @pytest.mark.parametrize(
        "activity_type, expected",
        [
            ("event_rescheduled", ActivityVisibility.PUBLIC),
            ("blog_published", ActivityVisibility.PUBLIC),
            ("sync_failed", ActivityVisibility.INTERNAL),
            ("gpt_upload", ActivityVisibility.INTERNAL),
            ("user_signup", ActivityVisibility.ADMIN),
            ("settings_changed", ActivityVisibility.ADMIN),
        ],
    )
    def test_known_types(self, activity_type, expected):
        assert determine_activity_visibility(activity_type) == expected

    @pytest.mark.parametrize("activity_type", ["something_new", "", None])
    def test_unknown_types_are_internal(self, activity_type):
        assert determine_activity_visibility(activity_type) == ActivityVisibility.INTERNAL

    def test_every_level_in_use(self):
        assert set(VISIBILITY_BY_ACTIVITY_TYPE.values()) == set(ActivityVisibility)
