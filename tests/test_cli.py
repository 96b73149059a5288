"""
Tests for session_insights/cli.py.

What we test
------------
validate-config:
  - Valid config → exit 0 with "[OK] Config valid.".
  - Missing or invalid config → exit 1.

rank:
  - JSON output lists deduplicated items in display order.
  - Plain output has one line per item.
  - Missing and malformed snapshot files → exit 1.
  - Bad --now → exit 1.

trending:
  - --top-k limits the output; ties keep first-seen order.
  - Snapshot without keys prints a notice.
"""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from session_insights.cli import app

runner = CliRunner()

_NOW = "2026-02-10T12:00:00+00:00"


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "default.toml"
    path.write_text("[logging]\nlevel = 'WARNING'\n", encoding="utf-8")
    return path


@pytest.fixture
def snapshot_file(tmp_path, mixed_documents):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(mixed_documents), encoding="utf-8")
    return path


class TestValidateConfig:
    def test_valid(self, config_file):
        result = runner.invoke(app, ["validate-config", "--config", str(config_file)])
        assert result.exit_code == 0
        assert "[OK] Config valid." in result.stdout

    def test_full_dump(self, config_file):
        result = runner.invoke(app, ["validate-config", "--config", str(config_file), "--full"])
        assert result.exit_code == 0
        assert "half_life_hours" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[logging]\nlevel = 'LOUD'\n", encoding="utf-8")
        result = runner.invoke(app, ["validate-config", "--config", str(path)])
        assert result.exit_code == 1


class TestRank:
    def test_json_output(self, config_file, snapshot_file):
        result = runner.invoke(
            app,
            ["rank", str(snapshot_file), "--now", _NOW, "--json",
             "--config", str(config_file), "-k", "event:nfp"],
        )
        assert result.exit_code == 0
        payload = json.loads(result.stdout)
        ids = [entry["sourceId"] for entry in payload]
        assert ids == ["blogPosts/p1", "systemActivityLog/a1", "eventNotes/n1", "v1"]
        assert payload[-1]["score"] == 0.0
        assert payload[0]["sourceType"] == "article"

    def test_plain_output(self, config_file, snapshot_file):
        result = runner.invoke(
            app,
            ["rank", str(snapshot_file), "--now", _NOW, "--no-diversity",
             "--config", str(config_file)],
        )
        assert result.exit_code == 0
        assert "Ranked 4 item(s):" in result.stdout
        assert "Trading the NFP release" in result.stdout

    def test_snapshot_object_with_items(self, tmp_path, config_file, mixed_documents):
        path = tmp_path / "wrapped.json"
        path.write_text(json.dumps({"items": mixed_documents[:1]}), encoding="utf-8")
        result = runner.invoke(
            app, ["rank", str(path), "--now", _NOW, "--json", "--config", str(config_file)]
        )
        assert result.exit_code == 0
        assert len(json.loads(result.stdout)) == 1

    def test_missing_snapshot(self, tmp_path, config_file):
        result = runner.invoke(
            app, ["rank", str(tmp_path / "missing.json"), "--config", str(config_file)]
        )
        assert result.exit_code == 1

    def test_malformed_snapshot(self, tmp_path, config_file):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        result = runner.invoke(app, ["rank", str(path), "--config", str(config_file)])
        assert result.exit_code == 1

    def test_bad_now(self, config_file, snapshot_file):
        result = runner.invoke(
            app, ["rank", str(snapshot_file), "--now", "yesterday", "--config", str(config_file)]
        )
        assert result.exit_code == 1


class TestTrending:
    def test_top_k(self, config_file, snapshot_file):
        result = runner.invoke(
            app, ["trending", str(snapshot_file), "--top-k", "2", "--config", str(config_file)]
        )
        assert result.exit_code == 0
        assert result.stdout.split() == ["event:nfp", "currency:USD"]

    def test_no_keys(self, tmp_path, config_file):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps([{"sourceType": "note", "sourceId": "n1"}]), encoding="utf-8")
        result = runner.invoke(app, ["trending", str(path), "--config", str(config_file)])
        assert result.exit_code == 0
        assert "No insight keys found." in result.stdout
