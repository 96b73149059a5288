"""
Session Insights - CLI entry point.

A thin offline tool over the ranking library, useful for inspecting how a
snapshot of documents would be ordered. All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Read and validate the input snapshot.
  4. Run the engine.
  5. Report the result to stdout.

Install and run::

    pip install -e .
    session-insights --help
    session-insights validate-config
    session-insights rank snapshot.json --candidate-key event:nfp
    session-insights trending snapshot.json --top-k 6

Snapshot files hold a JSON array of insight documents, or an object with an
``"items"`` array.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="session-insights",
    help="Session Insights - rank trading-session insight feeds offline.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pydantic import ValidationError

    from session_insights.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from session_insights.utils.logging import configure_logging
    configure_logging(config.logging)


def _load_snapshot_or_exit(path: str):
    """Read a snapshot file and validate it into InsightItem models."""
    from pydantic import ValidationError

    from session_insights.ingestion.adapter import parse_insight_items

    snapshot_path = Path(path)
    if not snapshot_path.exists():
        typer.echo(f"[ERROR] Snapshot file not found: {snapshot_path}", err=True)
        raise typer.Exit(code=1)

    try:
        raw: Any = json.loads(snapshot_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"[ERROR] Invalid JSON in {snapshot_path}: {exc}", err=True)
        raise typer.Exit(code=1)

    if isinstance(raw, dict):
        raw = raw.get("items", [])
    if not isinstance(raw, list):
        typer.echo("[ERROR] Snapshot must be a JSON array or an object with 'items'.", err=True)
        raise typer.Exit(code=1)

    try:
        return parse_insight_items(raw)
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid insight document: {exc}", err=True)
        raise typer.Exit(code=1)


def _parse_now_or_exit(now: Optional[str]) -> Optional[datetime]:
    if now is None:
        return None
    try:
        return datetime.fromisoformat(now)
    except ValueError:
        typer.echo(f"[ERROR] --now must be an ISO-8601 datetime, got '{now}'.", err=True)
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    ranking = config.ranking

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    half_lives = ", ".join(f"{k}={v:g}h" for k, v in ranking.half_life_hours.items())
    typer.echo(f"  Half-lives:       {half_lives}")
    typer.echo(f"  Apply diversity:  {ranking.apply_diversity}")
    typer.echo(f"  Trending top-k:   {ranking.trending_top_k}")
    typer.echo(f"  Default window:   {config.feed.default_timeframe}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("rank")
def rank(
    snapshot_file: str = typer.Argument(..., help="JSON snapshot of insight documents."),
    candidate_keys: Optional[list[str]] = typer.Option(
        None,
        "--candidate-key",
        "-k",
        help="Candidate insight key (repeatable), e.g. event:nfp.",
    ),
    now: Optional[str] = typer.Option(
        None,
        "--now",
        help="Reference time (ISO-8601). Defaults to the current UTC time.",
    ),
    no_diversity: bool = typer.Option(
        False,
        "--no-diversity",
        help="Skip the diversity pass; pure score order.",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Emit the ranked feed as JSON.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Rank a snapshot of insight documents and print the display order."""
    from session_insights.ranking.ranker import rank_insights

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    items = _load_snapshot_or_exit(snapshot_file)
    ranked = rank_insights(
        items,
        candidate_keys=candidate_keys or [],
        now=_parse_now_or_exit(now),
        apply_diversity=False if no_diversity else None,
        config=config.ranking,
    )

    if as_json:
        payload = [
            {
                "sourceType": r.source_type,
                "sourceId":   r.source_id,
                "score":      round(r.score, 4),
                "insightKeys": list(r.insight_keys),
            }
            for r in ranked
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"Ranked {len(ranked)} item(s):")
    for pos, r in enumerate(ranked, start=1):
        title = r.item.title or ""
        typer.echo(f"  {pos:>3}. [{r.source_type:<8}] {r.score:7.3f}  {r.source_id}  {title}".rstrip())


@app.command("trending")
def trending(
    snapshot_file: str = typer.Argument(..., help="JSON snapshot of insight documents."),
    top_k: Optional[int] = typer.Option(
        None,
        "--top-k",
        help="Number of keys to return (default: config ranking.trending_top_k).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print the most frequent insight keys in a snapshot."""
    from session_insights.ranking.trending import aggregate_trending_keys

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    items = _load_snapshot_or_exit(snapshot_file)
    k = config.ranking.trending_top_k if top_k is None else top_k
    keys = aggregate_trending_keys(items, top_k=k)

    if not keys:
        typer.echo("No insight keys found.")
        return
    for key in keys:
        typer.echo(key)


if __name__ == "__main__":
    app()
