"""Application ports for clean architecture boundaries."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from asset_optimizer.application.results import AssetRecord
from asset_optimizer.types import AssetKind


class BuildLogger(Protocol):
    """Structured logging capability injected into transformers."""

    def info(self, message: str, **meta: object) -> None:
        """Log an informational event."""

    def warn(self, message: str, **meta: object) -> None:
        """Log a recoverable problem."""

    def error(
        self,
        message: str,
        error: BaseException | None = None,
        **meta: object,
    ) -> None:
        """Log a failure, optionally with the exception that caused it."""


class AssetDiscovery(Protocol):
    """Enumerate source files for an asset kind."""

    def discover(self, kind: AssetKind) -> Sequence[Path]:
        """Return absolute, sorted, de-duplicated paths."""


class AssetTransformer(Protocol):
    """Turn one source file into zero or more optimized outputs."""

    kind: AssetKind

    def transform(self, source_path: Path, output_path: Path) -> list[AssetRecord]:
        """Transform ``source_path``; ``output_path`` mirrors its relative path."""


@dataclass(frozen=True)
class MinifiedScript:
    """Minifier output: code plus an optional v3 source map."""

    code: str
    source_map: dict[str, object] | None = None


class JsMinifier(Protocol):
    """Minify JavaScript source text."""

    name: str

    def minify(self, code: str, source_path: Path, output_name: str) -> MinifiedScript:
        """Return minified code; ``output_name`` is the emitted file's basename."""


class PostBuildStep(Protocol):
    """Post-process produced assets once all kinds are done."""

    def run(self, assets: Sequence[AssetRecord], output_root: Path) -> None:
        """Apply the step; must not alter the asset records."""
