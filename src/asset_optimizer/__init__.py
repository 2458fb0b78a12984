"""Top-level API for build-time static site asset optimization."""

from __future__ import annotations

from pathlib import Path

from asset_optimizer.application.results import RunSummary

__version__ = "0.1.0"


def optimize_assets(
    source_dir: str | Path = ".",
    output_dir: str | Path | None = None,
    *,
    workers: int = 1,
    js_engine: str = "auto",
    precompress: bool = False,
    manifest: bool = False,
    responsive: bool = False,
) -> RunSummary:
    """Optimize every asset under ``source_dir``.

    JSON-lines logging is installed on the build logger unless its records
    already reach a handler, such as one set up with ``logging.basicConfig``.

    Parameters
    ----------
    source_dir : str or Path, default="."
        Site source tree.
    output_dir : str or Path, optional
        Destination tree; defaults to ``<source_dir>/dist``.
    workers : int, default=1
        Files transformed in parallel within each asset kind.
    js_engine : str, default="auto"
        ``auto``, ``terser`` or ``rjsmin``.
    precompress : bool, default=False
        Write ``.gz`` siblings for text outputs.
    manifest : bool, default=False
        Write ``asset-manifest.json``.
    responsive : bool, default=False
        Write narrower WebP renditions of raster images.

    Returns
    -------
    RunSummary
        Per-kind counts, records and the process exit code.

    Raises
    ------
    SetupError
        If the configuration or the directories are invalid.
    """
    from asset_optimizer.application import build_optimizer_config, run_optimization
    from asset_optimizer.infrastructure.json_logging import ensure_logging

    ensure_logging()
    source = Path(source_dir)
    config = build_optimizer_config(
        js_engine=js_engine,
        precompress=precompress,
        manifest=manifest,
        responsive=responsive,
        workers=workers,
    )
    return run_optimization(
        source_dir=source,
        output_dir=Path(output_dir) if output_dir is not None else source / "dist",
        config=config,
    )


__all__ = ["RunSummary", "__version__", "optimize_assets"]
