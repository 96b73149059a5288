"""Ingestion helpers: raw documents → InsightItem, and insight key derivation.

Modules
-------
adapter      - parse_insight_item() / parse_insight_items()
insight_keys - canonical slugs, normalize_key(), compute_*_insight_keys()
"""
