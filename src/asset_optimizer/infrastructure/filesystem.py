"""Filesystem and reporting helpers shared by transformers."""

from __future__ import annotations

import time
from pathlib import Path

from asset_optimizer.application.ports import BuildLogger


def ensure_directory(path: Path, logger: BuildLogger | None = None) -> bool:
    """Create ``path`` (and parents) if missing.

    Returns ``True`` when the directory was created by this call. An
    existing directory is not an error.
    """
    try:
        path.mkdir(parents=True, exist_ok=False)
    except FileExistsError:
        if not path.is_dir():
            raise
        return False
    if logger is not None:
        logger.info("Created directory", path=str(path))
    return True


def write_output(path: Path, data: bytes, logger: BuildLogger | None = None) -> int:
    """Write ``data`` to ``path`` creating its directory; return bytes written."""
    ensure_directory(path.parent, logger)
    path.write_bytes(data)
    return len(data)


def relative_label(path: Path, root: Path) -> str:
    """Return ``path`` relative to ``root`` in POSIX form when possible."""
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def format_savings(original_size: int, optimized_size: int) -> str:
    if original_size <= 0:
        return "0.00%"
    return f"{(1 - optimized_size / original_size) * 100:.2f}%"


def elapsed_ms(started: float) -> str:
    """Format time since ``started`` (a ``perf_counter`` value) in ms."""
    return f"{(time.perf_counter() - started) * 1000:.2f}ms"
