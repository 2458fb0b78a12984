"""Unit tests for CLI command behavior."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import asset_optimizer.application as application_module
from asset_optimizer.application.results import (
    ErrorRecord,
    FileOutcome,
    RunAccumulator,
    RunSummary,
)
from asset_optimizer.cli import cli as cli_module
from asset_optimizer.errors import SetupError

runner = CliRunner()


def _events(output: str) -> list[dict[str, object]]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def _summary(*, failed: bool = False) -> RunSummary:
    accumulator = RunAccumulator()
    if failed:
        source = Path("/site/app.js")
        accumulator.add(
            FileOutcome(
                kind="js",
                source_path=source,
                error=ErrorRecord(kind="js", source_path=source, message="boom"),
            )
        )
    return accumulator.finalize(0.1)


def test_help_lists_options_and_doctor() -> None:
    """Ensure top-level help shows build flags and the doctor command."""
    result = runner.invoke(cli_module.app, ["--help"])

    assert result.exit_code == 0
    assert "--source" in result.output
    assert "--precompress" in result.output
    assert "doctor" in result.output


def test_bare_invocation_builds_current_directory(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Ensure no arguments optimizes ./ into ./dist and exits 0."""
    calls: list[dict[str, object]] = []

    def fake_run(**kwargs: object) -> RunSummary:
        calls.append(kwargs)
        return _summary()

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(application_module, "run_optimization", fake_run)

    result = runner.invoke(cli_module.app, [])

    assert result.exit_code == 0, result.output
    assert calls[0]["source_dir"] == Path(".")
    assert calls[0]["output_dir"] == Path("dist")
    assert calls[0]["config"].workers == 1
    finished = [e for e in _events(result.output) if e["message"] == "Build optimization finished"]
    assert finished[0]["success"] is True
    assert finished[0]["exitCode"] == 0


def test_flags_are_forwarded(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure CLI flags reach the configuration and paths."""
    calls: list[dict[str, object]] = []

    def fake_run(**kwargs: object) -> RunSummary:
        calls.append(kwargs)
        return _summary()

    monkeypatch.setattr(application_module, "run_optimization", fake_run)

    result = runner.invoke(
        cli_module.app,
        [
            "--source",
            str(tmp_path),
            "--output",
            str(tmp_path / "public"),
            "--workers",
            "3",
            "--js-engine",
            "rjsmin",
            "--precompress",
            "--manifest",
            "--responsive",
        ],
    )

    assert result.exit_code == 0, result.output
    config = calls[0]["config"]
    assert calls[0]["output_dir"] == tmp_path / "public"
    assert config.workers == 3
    assert config.js.engine == "rjsmin"
    assert config.precompress and config.manifest and config.images.responsive


def test_per_file_errors_exit_one(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure a run with error records exits with status 1."""
    monkeypatch.setattr(application_module, "run_optimization", lambda **_: _summary(failed=True))

    result = runner.invoke(cli_module.app, [])

    assert result.exit_code == 1
    finished = [e for e in _events(result.output) if e["message"] == "Build optimization finished"]
    assert finished[0]["success"] is False


def test_fatal_setup_error_is_logged_and_exits_one(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure setup failures log the fatal error line and exit 1."""

    def fake_run(**_: object) -> RunSummary:
        raise SetupError("Source directory does not exist: nowhere")

    monkeypatch.setattr(application_module, "run_optimization", fake_run)

    result = runner.invoke(cli_module.app, [])

    assert result.exit_code == 1
    fatal = [
        e for e in _events(result.output)
        if e["message"] == "Build optimization failed with fatal error"
    ]
    assert fatal[0]["level"] == "ERROR"
    assert fatal[0]["error"] == "Source directory does not exist: nowhere"


def test_invalid_engine_is_fatal() -> None:
    """Ensure configuration validation failures exit 1."""
    result = runner.invoke(cli_module.app, ["--js-engine", "uglify"])

    assert result.exit_code == 1
    assert "Invalid optimizer configuration" in result.output


def test_doctor_reports_toolchain() -> None:
    """Ensure doctor prints library versions and terser availability."""
    result = runner.invoke(cli_module.app, ["doctor"])

    assert result.exit_code == 0
    assert "Python:" in result.output
    assert "pillow:" in result.output
    assert "terser:" in result.output
