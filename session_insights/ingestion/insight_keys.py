"""
Insight key derivation for articles, activity log entries and notes.

Keys are ``<prefix>:<value>`` strings:

  - ``event:<slug>``                 canonical economic event
  - ``eventNameKey:<normalized>``    fallback for unmapped event names
  - ``currency:<CCY>``               canonical currency code
  - ``eventCurrency:<slug>_<CCY>``   event × currency combination
  - ``post:<postId>``                article reference

All functions are pure and return keys deduplicated in first-seen order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any, Mapping, Optional

from session_insights.taxonomy.insight_taxonomy import InsightKeyPrefix

# 25 major economic events used across articles and the calendar.
ECONOMIC_EVENT_SLUGS: tuple[str, ...] = (
    "nfp", "fomc", "cpi", "ppi", "rba", "ecb", "boe", "boj", "snb", "rbnz",
    "china-gdp", "china-pmi", "eurozone-gdp", "eurozone-pmi", "uk-gdp",
    "uk-pmi", "japan-gdp", "japan-pmi", "canada-gdp", "ism-pmi",
    "unemployment", "retail-sales", "housing-starts", "consumer-sentiment",
    "oil-inventory",
)

# 17 major trading currencies.
CURRENCY_CODES: tuple[str, ...] = (
    "USD", "EUR", "GBP", "JPY", "CHF", "CAD", "AUD", "NZD", "CNY",
    "SGD", "HKD", "INR", "MXN", "BRL", "KRW", "SEK", "NOK",
)

_EVENT_SLUG_SET = frozenset(ECONOMIC_EVENT_SLUGS)
_CURRENCY_SET = frozenset(CURRENCY_CODES)

_WHITESPACE_RE = re.compile(r"\s+")
_INVALID_CHARS_RE = re.compile(r"[^a-z0-9-]")
_MULTI_HYPHEN_RE = re.compile(r"-+")


# ── Helpers ───────────────────────────────────────────────────────────────────

def normalize_key(value: Any) -> str:
    """Normalize a string for slug matching.

    Lowercase, trim, spaces and underscores → hyphens, drop anything outside
    ``[a-z0-9-]``, collapse and trim hyphens. Non-strings give ``""``.

    >>> normalize_key("Non-Farm Payroll")
    'non-farm-payroll'
    >>> normalize_key("china_gdp")
    'china-gdp'
    """
    if not value or not isinstance(value, str):
        return ""
    slug = _WHITESPACE_RE.sub("-", value.lower().strip())
    slug = slug.replace("_", "-")
    slug = _INVALID_CHARS_RE.sub("", slug)
    slug = _MULTI_HYPHEN_RE.sub("-", slug)
    return slug.strip("-")


def find_canonical_slug(event_name: Any) -> Optional[str]:
    """Map a human-readable event name to a canonical slug.

    Exact match after normalization first, then the first slug that contains
    or is contained in the normalized name. ``None`` when nothing matches.
    """
    normalized = normalize_key(event_name)
    if not normalized:
        return None
    if normalized in _EVENT_SLUG_SET:
        return normalized
    for slug in ECONOMIC_EVENT_SLUGS:
        if slug in normalized or normalized in slug:
            return slug
    return None


def deduplicate_keys(keys: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(keys))


def filter_keys_by_prefix(keys: Iterable[str], prefix: str) -> list[str]:
    """Keep keys starting with ``prefix`` (e.g. ``"event:"``)."""
    return [k for k in keys if k.startswith(prefix)]


def _canonical_currency(code: Any) -> Optional[str]:
    if not code or not isinstance(code, str):
        return None
    upper = code.strip().upper()
    return upper if upper in _CURRENCY_SET else None


def _as_list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _tag_keys(event_tags: list, currency_tags: list) -> list[str]:
    """Keys from taxonomy tag lists: events, currencies, then combinations."""
    keys: list[str] = []
    events: list[str] = []
    currencies: list[str] = []

    for tag in event_tags:
        normalized = normalize_key(tag)
        if normalized in _EVENT_SLUG_SET:
            events.append(normalized)
            keys.append(InsightKeyPrefix.EVENT.key(normalized))
        elif normalized:
            keys.append(InsightKeyPrefix.EVENT_NAME_KEY.key(normalized))

    for code in currency_tags:
        currency = _canonical_currency(code)
        if currency:
            currencies.append(currency)
            keys.append(InsightKeyPrefix.CURRENCY.key(currency))

    for event in events:
        for currency in currencies:
            keys.append(InsightKeyPrefix.EVENT_CURRENCY.key(f"{event}_{currency}"))

    return keys


# ── Public functions ──────────────────────────────────────────────────────────

def compute_article_insight_keys(post: Mapping[str, Any]) -> list[str]:
    """Insight keys for a blog article.

    Args:
        post: Mapping with ``id`` and optional ``eventTags`` / ``currencyTags``.

    Returns:
        ``post:`` key, event / currency keys, and every event × currency pair.
    """
    keys: list[str] = []
    if post.get("id"):
        keys.append(InsightKeyPrefix.POST.key(str(post["id"])))
    keys.extend(_tag_keys(_as_list(post.get("eventTags")), _as_list(post.get("currencyTags"))))
    return deduplicate_keys(keys)


def compute_activity_insight_keys(activity_type: str | None, metadata: Mapping[str, Any] | None = None) -> list[str]:
    """Insight keys for an activity log entry.

    ``metadata`` may carry ``postId``, ``eventTags`` / ``currencyTags``
    (article activities), ``eventName`` and ``currencyCode`` or ``currency``.
    ``activity_type`` does not change the keys; it is accepted so callers can
    pass the raw log entry fields straight through.
    """
    metadata = metadata or {}
    keys: list[str] = []

    if metadata.get("postId"):
        keys.append(InsightKeyPrefix.POST.key(str(metadata["postId"])))

    keys.extend(_tag_keys(_as_list(metadata.get("eventTags")), _as_list(metadata.get("currencyTags"))))

    event_slug = None
    if metadata.get("eventName"):
        event_slug = find_canonical_slug(metadata["eventName"])
        if event_slug:
            keys.append(InsightKeyPrefix.EVENT.key(event_slug))
        else:
            fallback = normalize_key(metadata["eventName"])
            if fallback:
                keys.append(InsightKeyPrefix.EVENT_NAME_KEY.key(fallback))

    currency = _canonical_currency(metadata.get("currencyCode") or metadata.get("currency"))
    if currency:
        keys.append(InsightKeyPrefix.CURRENCY.key(currency))

    if event_slug and currency:
        keys.append(InsightKeyPrefix.EVENT_CURRENCY.key(f"{event_slug}_{currency}"))

    return deduplicate_keys(keys)


def compute_note_insight_keys(note: Mapping[str, Any]) -> list[str]:
    """Insight keys for a personal event note.

    Args:
        note: Mapping with optional ``primaryNameKey`` (or ``nameKey``) and
              ``currencyKey``.
    """
    keys: list[str] = []
    event = normalize_key(note.get("primaryNameKey") or note.get("nameKey"))
    currency = _canonical_currency(note.get("currencyKey"))

    if event in _EVENT_SLUG_SET:
        keys.append(InsightKeyPrefix.EVENT.key(event))
    elif event:
        keys.append(InsightKeyPrefix.EVENT_NAME_KEY.key(event))

    if currency:
        keys.append(InsightKeyPrefix.CURRENCY.key(currency))

    if event in _EVENT_SLUG_SET and currency:
        keys.append(InsightKeyPrefix.EVENT_CURRENCY.key(f"{event}_{currency}"))

    return deduplicate_keys(keys)
