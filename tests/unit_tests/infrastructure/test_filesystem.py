"""Unit tests for filesystem and reporting helpers."""

from __future__ import annotations

import time
from pathlib import Path

import pytest

from asset_optimizer.infrastructure.filesystem import (
    elapsed_ms,
    ensure_directory,
    format_savings,
    relative_label,
    write_output,
)


class _Logger:
    def __init__(self) -> None:
        self.messages: list[tuple[str, dict[str, object]]] = []

    def info(self, message: str, **meta: object) -> None:
        self.messages.append((message, meta))

    def warn(self, message: str, **meta: object) -> None:
        self.messages.append((message, meta))

    def error(self, message: str, error: BaseException | None = None, **meta: object) -> None:
        self.messages.append((message, meta))


def test_ensure_directory_is_idempotent_and_logs_once(tmp_path: Path) -> None:
    """Ensure an existing directory is not an error and is not logged again."""
    logger = _Logger()
    target = tmp_path / "a/b"

    assert ensure_directory(target, logger) is True
    assert ensure_directory(target, logger) is False
    assert logger.messages == [("Created directory", {"path": str(target)})]


def test_ensure_directory_rejects_file_in_the_way(tmp_path: Path) -> None:
    """Ensure a regular file at the path is still an error."""
    blocker = tmp_path / "file"
    blocker.write_text("x")

    with pytest.raises(FileExistsError):
        ensure_directory(blocker)


def test_write_output_creates_parents(tmp_path: Path) -> None:
    """Ensure outputs land in freshly created directories."""
    target = tmp_path / "x/y/z.bin"

    assert write_output(target, b"abc") == 3
    assert target.read_bytes() == b"abc"


def test_reporting_helpers() -> None:
    """Ensure savings, labels and durations use the log formats."""
    assert format_savings(200, 50) == "75.00%"
    assert format_savings(0, 10) == "0.00%"
    assert format_savings(100, 120) == "-20.00%"
    assert relative_label(Path("/site/css/a.css"), Path("/site")) == "css/a.css"
    assert relative_label(Path("/elsewhere/a.css"), Path("/site")) == "/elsewhere/a.css"
    assert elapsed_ms(time.perf_counter()).endswith("ms")
