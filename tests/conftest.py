"""
Shared pytest fixtures for the Session Insights test suite.

Provides:
  - ``fixed_now``: a deterministic reference time.
  - ``mixed_documents``: raw store documents covering every source type,
    a duplicate, and an unknown source type.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest


@pytest.fixture
def fixed_now() -> datetime:
    """2026-02-10 12:00 UTC."""
    return datetime(2026, 2, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mixed_documents() -> list[dict]:
    """Raw documents as the store returns them (camelCase, nested metadata)."""
    return [
        {
            "sourceType": "activity",
            "sourceId": "systemActivityLog/a1",
            "createdAt": "2026-02-10T11:00:00Z",
            "insightKeys": ["event:nfp", "currency:USD", "eventCurrency:nfp_USD"],
            "title": "NFP actuals synced",
            "metadata": {"severity": "error", "visibility": "public"},
        },
        {
            "sourceType": "article",
            "sourceId": "blogPosts/p1",
            "publishedAt": "2026-02-07T12:00:00Z",
            "insightKeys": ["post:p1", "event:nfp", "currency:USD"],
            "title": "Trading the NFP release",
            "metadata": {"viewCount": 500, "likeCount": 10},
        },
        {
            "sourceType": "note",
            "sourceId": "eventNotes/n1",
            "createdAt": "2026-02-09T12:00:00Z",
            "insightKeys": ["event:cpi", "currency:USD"],
            "title": "Watch CPI core",
        },
        {
            "sourceType": "activity",
            "sourceId": "systemActivityLog/a1",
            "createdAt": "2026-02-10T11:00:00Z",
            "insightKeys": ["event:nfp"],
            "title": "duplicate via a second query path",
        },
        {
            "sourceType": "video",
            "sourceId": "v1",
            "insightKeys": ["event:fomc"],
        },
    ]
