"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      - committed static defaults
  2. ``config/local.toml``        - optional local overrides (gitignored)
  3. ``.env``                     - local env overrides (gitignored)
  4. Environment variables        - ``SESSION_INSIGHTS_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The ranking engine itself never loads configuration: every engine function
takes an optional ``RankingConfig`` / ``DiversityConfig`` and falls back to
the model defaults, so library callers need no config file at all.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from session_insights.taxonomy.insight_taxonomy import SourceType, Timeframe

_DEFAULT_HALF_LIFE_HOURS: dict[str, float] = {
    SourceType.ARTICLE.value:  72.0,
    SourceType.ACTIVITY.value: 24.0,
    SourceType.NOTE.value:    168.0,
}

# ── Sub-config models ─────────────────────────────────────────────────────────


class DiversityConfig(BaseModel):
    """Placement limits for the diversity pass."""

    model_config = ConfigDict(frozen=True)

    max_same_source_run: int = 2     # longest allowed run of one source type
    event_key_cap: int = 3           # max placements per event key ...
    event_cap_window: int = 10       # ... within this many leading positions
    article_window: int = 6          # an article must appear within this prefix

    @field_validator("max_same_source_run", "event_key_cap")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Diversity limits must be >= 1, got {v}.")
        return v


class RankingConfig(BaseModel):
    """Scoring parameters for the ranking engine.

    Half-lives are the time constants of the exponential recency decay: at
    exactly one half-life the recency score is ``e**-1`` (about 0.368), not 0.5.
    """

    model_config = ConfigDict(frozen=True)

    half_life_hours: dict[str, float] = dict(_DEFAULT_HALF_LIFE_HOURS)
    apply_diversity: bool = True
    trending_top_k: int = 6
    diversity: DiversityConfig = DiversityConfig()

    @field_validator("half_life_hours")
    @classmethod
    def validate_half_lives(cls, v: dict[str, float]) -> dict[str, float]:
        """Fill in default half-lives for source types the override omits."""
        merged = {**_DEFAULT_HALF_LIFE_HOURS, **v}
        for source_type, hours in merged.items():
            if hours <= 0:
                raise ValueError(
                    f"half_life_hours[{source_type!r}] must be > 0, got {hours}."
                )
        return merged

    def half_life_for(self, source_type: str) -> float | None:
        """Half-life for ``source_type``, or ``None`` if the type is unknown."""
        return self.half_life_hours.get(source_type)


class FeedConfig(BaseModel):
    """Feed assembly defaults (filters, per-source limits)."""

    model_config = ConfigDict(frozen=True)

    default_timeframe: str = Timeframe.WEEK.value
    source_types: list[str] = [t.value for t in SourceType]
    source_limits: dict[str, int] = {
        SourceType.ARTICLE.value:  10,
        SourceType.ACTIVITY.value: 20,
        SourceType.NOTE.value:     10,
    }

    @field_validator("default_timeframe")
    @classmethod
    def validate_timeframe(cls, v: str) -> str:
        valid = {t.value for t in Timeframe}
        if v not in valid:
            raise ValueError(f"default_timeframe must be one of {sorted(valid)}, got '{v}'.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration.

    Constructed by ``load_config()``, which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    ranking: RankingConfig = RankingConfig()
    feed: FeedConfig = FeedConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    # Also merge local.toml if present (gitignored local overrides)
    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists() and local_config_path != config_path:
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply SESSION_INSIGHTS_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _env_flag(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply SESSION_INSIGHTS_* env vars to the raw config dict.

    Supported overrides:
      SESSION_INSIGHTS_LOG_LEVEL        → raw["logging"]["level"]
      SESSION_INSIGHTS_APPLY_DIVERSITY  → raw["ranking"]["apply_diversity"]
      SESSION_INSIGHTS_TRENDING_TOP_K   → raw["ranking"]["trending_top_k"]
      SESSION_INSIGHTS_DEBUG            → raw["debug"]
    """
    if log_level := os.environ.get("SESSION_INSIGHTS_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if apply_diversity := os.environ.get("SESSION_INSIGHTS_APPLY_DIVERSITY"):
        raw.setdefault("ranking", {})["apply_diversity"] = _env_flag(apply_diversity)

    if top_k := os.environ.get("SESSION_INSIGHTS_TRENDING_TOP_K"):
        raw.setdefault("ranking", {})["trending_top_k"] = int(top_k)

    if debug := os.environ.get("SESSION_INSIGHTS_DEBUG"):
        raw["debug"] = _env_flag(debug)

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    ranking_raw = dict(raw.get("ranking", {}))
    diversity_raw = ranking_raw.pop("diversity", raw.get("diversity", {}))

    return AppConfig(
        ranking=RankingConfig(
            **ranking_raw,
            diversity=DiversityConfig(**diversity_raw),
        ),
        feed=FeedConfig(**raw.get("feed", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
