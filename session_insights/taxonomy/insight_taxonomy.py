"""
Insight taxonomy for the session-insights feed.

Every insight item is described by:
  - ``SourceType``         - the *what*: article, activity log entry, or note.
  - ``ActivitySeverity``   - the *how loud*: only meaningful for activities.
  - ``ActivityVisibility`` - the *who*: access level of an activity log entry.

``InsightKeyPrefix`` lists the tag namespaces used in ``insight_keys``
(``event:nfp``, ``currency:USD`` ...). ``Timeframe`` is the user-facing
lookback window for a feed. ``determine_activity_visibility`` maps an
activity type to the access level of its log entries.

This module has NO imports from any other ``session_insights`` package.
"""

from enum import StrEnum


class SourceType(StrEnum):
    """Kind of content an insight item was built from."""

    ARTICLE = "article"
    """Published blog article; long-lived, engagement-boosted."""

    ACTIVITY = "activity"
    """System activity log entry; short-lived, severity-boosted."""

    NOTE = "note"
    """Personal note attached to an economic event; decays slowest."""


class ActivitySeverity(StrEnum):
    """Severity of an activity log entry, highest boost first."""

    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


class ActivityVisibility(StrEnum):
    """Access level required to see an activity log entry."""

    PUBLIC = "public"
    """Any visitor, signed in or not."""

    INTERNAL = "internal"
    """Admins and superadmins."""

    ADMIN = "admin"
    """Superadmins only."""


class InsightKeyPrefix(StrEnum):
    """Namespaces of insight keys (``<prefix>:<value>``)."""

    EVENT = "event"
    """``event:<slug>``, e.g. ``event:nfp``."""

    CURRENCY = "currency"
    """``currency:<CCY>``, e.g. ``currency:USD``."""

    EVENT_CURRENCY = "eventCurrency"
    """``eventCurrency:<slug>_<CCY>``, e.g. ``eventCurrency:nfp_USD``."""

    POST = "post"
    """``post:<postId>``."""

    EVENT_NAME_KEY = "eventNameKey"
    """``eventNameKey:<normalized>`` fallback for unmapped event names."""

    EVENT_IDENTITY = "eventIdentity"
    """``eventIdentity:<nameKey>:<currencyKey>:<dateKey>``."""

    def key(self, value: str) -> str:
        """Build a full insight key in this namespace."""
        return f"{self.value}:{value}"


class Timeframe(StrEnum):
    """Lookback window presets for a feed."""

    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"
    ALL = "all"


# ── Activity visibility ───────────────────────────────────────────────────────

_PUBLIC = ActivityVisibility.PUBLIC
_INTERNAL = ActivityVisibility.INTERNAL
_ADMIN = ActivityVisibility.ADMIN

VISIBILITY_BY_ACTIVITY_TYPE: dict[str, ActivityVisibility] = {
    # Calendar changes and published articles
    "event_rescheduled":         _PUBLIC,
    "event_cancelled":           _PUBLIC,
    "event_reinstated":          _PUBLIC,
    "event_created":             _PUBLIC,
    "event_deleted":             _PUBLIC,
    "event_updated":             _PUBLIC,
    "canonical_event_updated":   _PUBLIC,
    "blog_published":            _PUBLIC,
    # Sync jobs and editorial work
    "sync_completed":            _INTERNAL,
    "sync_failed":               _INTERNAL,
    "gpt_upload":                _INTERNAL,
    "blog_created":              _INTERNAL,
    "blog_updated":              _INTERNAL,
    "blog_deleted":              _INTERNAL,
    "event_description_created": _INTERNAL,
    "event_description_updated": _INTERNAL,
    "event_description_deleted": _INTERNAL,
    "blog_author_created":       _INTERNAL,
    "blog_author_updated":       _INTERNAL,
    "blog_author_deleted":       _INTERNAL,
    "events_exported":           _INTERNAL,
    # Account and settings audit
    "user_signup":               _ADMIN,
    "settings_changed":          _ADMIN,
}


def determine_activity_visibility(activity_type: str | None) -> ActivityVisibility:
    """Visibility of an activity log entry from its type.

    Unknown or missing types are internal.
    """
    return VISIBILITY_BY_ACTIVITY_TYPE.get(activity_type or "", ActivityVisibility.INTERNAL)
