from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

import clusterspec.cli as cli
from clusterspec.config import ExportSettings, LoggingSettings, Settings


def _settings(tmp_path: Path) -> Settings:
    return Settings(
        export=ExportSettings(output_dir=tmp_path / "out"),
        logging=LoggingSettings(level="CRITICAL"),
    )


def test_run_command_prints_clean_error_for_missing_table(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda _: _settings(tmp_path))

    result = CliRunner().invoke(cli.app, ["run", str(tmp_path / "missing.csv")])

    assert result.exit_code == 1
    assert "[1/5] Load interpretation table..." in result.output
    assert "[1/5] Load interpretation table failed" in result.output
    assert "Error: Table file not found" in result.output
    assert "Traceback" not in result.output


def test_run_command_reports_missing_cluster_column(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda _: _settings(tmp_path))
    table_path = tmp_path / "interpretation.csv"
    table_path.write_text("video_id,motion_mean\nv1,0.4\n", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["run", str(table_path)])

    assert result.exit_code == 1
    assert "[2/5] Aggregate clusters failed" in result.output
    assert "missing required column(s)" in result.output


def test_run_command_rejects_unknown_approach(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda _: _settings(tmp_path))
    table_path = tmp_path / "interpretation.csv"
    table_path.write_text("cluster,motion_mean\n1,0.4\n", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["run", str(table_path), "--approach", "1=audio-first"])

    assert result.exit_code == 2
    assert "Unsupported generation approach" in result.output
    assert not (tmp_path / "out").exists()


def test_run_command_rejects_malformed_token_option(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda _: _settings(tmp_path))
    table_path = tmp_path / "interpretation.csv"
    table_path.write_text("cluster,motion_mean\n1,0.4\n", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["run", str(table_path), "--token", "upbeat"])

    assert result.exit_code == 2
    assert "CLUSTER=VALUE" in result.output


def test_analyze_command_exits_when_table_cannot_load(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(cli, "_bootstrap", lambda _: _settings(tmp_path))

    result = CliRunner().invoke(cli.app, ["clusters", "analyze", str(tmp_path / "missing.csv")])

    assert result.exit_code == 1
    assert "Error: could not load interpretation table" in result.output


def test_review_command_reports_invalid_export(tmp_path: Path) -> None:
    specs_path = tmp_path / "generation_specs.json"
    specs_path.write_text("[1, 2]", encoding="utf-8")

    result = CliRunner().invoke(cli.app, ["specs", "review", str(specs_path)])

    assert result.exit_code == 1
    assert "Error: Generation spec export must be a JSON object." in result.output


def test_explicit_missing_config_fails(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli.app, ["config", "show", "--config", str(tmp_path / "nope.yaml")])

    assert result.exit_code != 0
    assert isinstance(result.exception, FileNotFoundError)
