"""Verbatim copy transformer for HTML and pass-through files."""

from __future__ import annotations

import shutil
from pathlib import Path

from asset_optimizer.application.ports import BuildLogger
from asset_optimizer.application.results import AssetRecord
from asset_optimizer.errors import OptimizationError
from asset_optimizer.infrastructure.filesystem import ensure_directory, relative_label
from asset_optimizer.types import AssetKind


class CopyTransformer:
    """Copy files byte-for-byte, preserving their relative path."""

    def __init__(
        self,
        kind: AssetKind,
        logger: BuildLogger,
        source_root: Path,
        output_root: Path,
    ) -> None:
        self.kind = kind
        self.logger = logger
        self.source_root = source_root
        self.output_root = output_root

    def transform(self, source_path: Path, output_path: Path) -> list[AssetRecord]:
        try:
            ensure_directory(output_path.parent, self.logger)
            shutil.copyfile(source_path, output_path)
            size = output_path.stat().st_size
        except Exception as exc:
            raise OptimizationError(
                f"Failed to copy file: {relative_label(source_path, self.source_root)}",
                exc,
                {"source": str(source_path), "destination": str(output_path)},
            ) from exc

        self.logger.info(
            "Copied file",
            source=relative_label(source_path, self.source_root),
            destination=relative_label(output_path, self.output_root),
            size=size,
        )
        return [
            AssetRecord(
                path=output_path,
                kind=self.kind,
                size=size,
                format=source_path.suffix.lower().lstrip(".") or None,
                source_path=source_path,
            )
        ]
