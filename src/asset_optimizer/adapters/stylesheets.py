"""Stylesheet transformer implementing the ``AssetTransformer`` port."""

from __future__ import annotations

import time
from pathlib import Path

from asset_optimizer.application.options import CssOptions
from asset_optimizer.application.ports import BuildLogger
from asset_optimizer.application.results import AssetRecord
from asset_optimizer.css import optimize_css
from asset_optimizer.errors import OptimizationError
from asset_optimizer.infrastructure.filesystem import (
    elapsed_ms,
    format_savings,
    relative_label,
    write_output,
)
from asset_optimizer.types import AssetKind


class CssTransformer:
    """Prefix and minify one stylesheet."""

    kind: AssetKind = "css"

    def __init__(self, options: CssOptions, logger: BuildLogger, source_root: Path) -> None:
        self.options = options
        self.logger = logger
        self.source_root = source_root

    def transform(self, source_path: Path, output_path: Path) -> list[AssetRecord]:
        """Write the optimized stylesheet to ``output_path``.

        Raises
        ------
        OptimizationError
            If reading, processing or writing fails.
        """
        started = time.perf_counter()
        label = relative_label(source_path, self.source_root)
        try:
            css = source_path.read_text(encoding="utf-8")
            original_size = len(css.encode("utf-8"))
            optimized = optimize_css(css, self.options)
            size = write_output(output_path, optimized.encode("utf-8"), self.logger)
        except Exception as exc:
            raise OptimizationError(
                f"Failed to optimize CSS: {label}",
                exc,
                {"inputPath": str(source_path), "outputPath": str(output_path)},
            ) from exc

        self.logger.info(
            "Optimized CSS",
            input=label,
            output=output_path.name,
            originalSize=original_size,
            optimizedSize=size,
            savings=format_savings(original_size, size),
            duration=elapsed_ms(started),
        )
        return [
            AssetRecord(path=output_path, kind=self.kind, size=size, format="css",
                        source_path=source_path)
        ]
