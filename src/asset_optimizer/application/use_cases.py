"""Application use-cases orchestrating optimization runs."""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from pydantic import ValidationError

from asset_optimizer.adapters.copier import CopyTransformer
from asset_optimizer.adapters.discovery import GlobDiscovery
from asset_optimizer.adapters.images import ImageTransformer
from asset_optimizer.adapters.scripts import JsTransformer
from asset_optimizer.adapters.stylesheets import CssTransformer
from asset_optimizer.application.options import (
    DEFAULT_EXCLUDES,
    CssOptions,
    DiscoveryOptions,
    ImageOptions,
    ImageQuality,
    JsOptions,
    OptimizerConfig,
    PngQuantization,
)
from asset_optimizer.application.ports import (
    AssetDiscovery,
    AssetTransformer,
    BuildLogger,
    PostBuildStep,
)
from asset_optimizer.application.results import (
    ErrorRecord,
    FileOutcome,
    RunAccumulator,
    RunSummary,
    WarningRecord,
)
from asset_optimizer.errors import OptimizationError, SetupError, UnsupportedAssetError
from asset_optimizer.infrastructure.filesystem import ensure_directory, relative_label
from asset_optimizer.infrastructure.json_logging import LoggingBuildLogger
from asset_optimizer.infrastructure.postbuild import default_post_steps
from asset_optimizer.schemas import BuildConfig, BuildPaths
from asset_optimizer.types import ASSET_KINDS, AssetKind

_FOUND_MESSAGES: Mapping[AssetKind, str] = {
    "image": "Found images to optimize",
    "css": "Found CSS files to optimize",
    "js": "Found JavaScript files to optimize",
    "html": "Found HTML files to copy",
    "other": "Found other files to copy",
}
_FAILED_MESSAGES: Mapping[AssetKind, str] = {
    "image": "Image optimization failed",
    "css": "CSS optimization failed",
    "js": "JavaScript optimization failed",
    "html": "HTML copy failed",
    "other": "File copy failed",
}


def build_optimizer_config(
    *,
    webp_quality: int = 80,
    jpeg_quality: int = 85,
    png_quality: int = 90,
    png_quantize_quality: tuple[float, float] = (0.8, 0.9),
    png_quantize_speed: int = 1,
    max_width: int = 1920,
    responsive: bool = False,
    responsive_widths: Sequence[int] = (320, 640, 1024, 1920),
    browsers: Sequence[str] = ("> 1%", "last 2 versions", "not dead"),
    js_engine: str = "auto",
    drop_console: bool = False,
    keep_fnames: bool = False,
    js_passes: int = 2,
    source_maps: bool = True,
    exclude: Sequence[str] | None = None,
    cache_max_age: int = 31536000,
    gzip_level: int = 9,
    precompress: bool = False,
    manifest: bool = False,
    workers: int = 1,
) -> OptimizerConfig:
    """Use-case: validate user tunables into an immutable configuration.

    Raises
    ------
    SetupError
        If any value is out of range.
    """
    try:
        config = BuildConfig(
            webp_quality=webp_quality,
            jpeg_quality=jpeg_quality,
            png_quality=png_quality,
            png_quantize_quality=tuple(png_quantize_quality),
            png_quantize_speed=png_quantize_speed,
            max_width=max_width,
            responsive=responsive,
            responsive_widths=tuple(responsive_widths),
            browsers=tuple(browsers),
            js_engine=js_engine,
            drop_console=drop_console,
            keep_fnames=keep_fnames,
            js_passes=js_passes,
            source_maps=source_maps,
            exclude=tuple(exclude) if exclude is not None else None,
            cache_max_age=cache_max_age,
            gzip_level=gzip_level,
            precompress=precompress,
            manifest=manifest,
            workers=workers,
        )
    except ValidationError as exc:
        raise SetupError(f"Invalid optimizer configuration: {exc}") from exc

    return OptimizerConfig(
        images=ImageOptions(
            quality=ImageQuality(
                webp=config.webp_quality,
                jpeg=config.jpeg_quality,
                png=config.png_quality,
            ),
            png_quantization=PngQuantization(
                quality=config.png_quantize_quality,
                speed=config.png_quantize_speed,
            ),
            max_width=config.max_width,
            responsive_widths=config.responsive_widths,
            responsive=config.responsive,
        ),
        css=CssOptions(browsers=config.browsers),
        js=JsOptions(
            engine=config.js_engine,
            drop_console=config.drop_console,
            keep_fnames=config.keep_fnames,
            passes=config.js_passes,
            source_map=config.source_maps,
        ),
        discovery=DiscoveryOptions(
            exclude=config.exclude if config.exclude is not None else DEFAULT_EXCLUDES,
        ),
        cache_max_age=config.cache_max_age,
        gzip_level=config.gzip_level,
        precompress=config.precompress,
        manifest=config.manifest,
        workers=config.workers,
    )


def default_transformers(
    config: OptimizerConfig,
    logger: BuildLogger,
    source_root: Path,
    output_root: Path,
) -> dict[AssetKind, AssetTransformer]:
    """Build the standard transformer for every asset kind."""
    return {
        "image": ImageTransformer(config.images, logger, source_root),
        "css": CssTransformer(config.css, logger, source_root),
        "js": JsTransformer(config.js, logger, source_root),
        "html": CopyTransformer("html", logger, source_root, output_root),
        "other": CopyTransformer("other", logger, source_root, output_root),
    }


def process_file(
    transformer: AssetTransformer,
    source_path: Path,
    *,
    source_root: Path,
    output_root: Path,
    logger: BuildLogger,
) -> FileOutcome:
    """Run one file through ``transformer``; never raises.

    Unsupported formats become warnings; every other exception becomes an
    error record and an error log line.
    """
    kind = transformer.kind
    output_path = output_root / source_path.relative_to(source_root)
    try:
        assets = transformer.transform(source_path, output_path)
    except UnsupportedAssetError as exc:
        logger.warn(
            "Skipping unsupported file",
            path=relative_label(source_path, source_root),
            extension=exc.extension,
        )
        return FileOutcome(
            kind=kind,
            source_path=source_path,
            warning=WarningRecord(kind=kind, source_path=source_path, message=str(exc)),
        )
    except Exception as exc:
        logger.error(
            _FAILED_MESSAGES[kind],
            exc,
            path=relative_label(source_path, source_root),
        )
        cause = exc.cause if isinstance(exc, OptimizationError) else exc.__cause__
        return FileOutcome(
            kind=kind,
            source_path=source_path,
            error=ErrorRecord(
                kind=kind,
                source_path=source_path,
                message=str(exc),
                cause=str(cause) if cause is not None else None,
            ),
        )
    return FileOutcome(kind=kind, source_path=source_path, assets=tuple(assets))


def _process_kind(
    transformer: AssetTransformer,
    files: Sequence[Path],
    *,
    source_root: Path,
    output_root: Path,
    logger: BuildLogger,
    workers: int,
) -> list[FileOutcome]:
    def _run(path: Path) -> FileOutcome:
        return process_file(
            transformer,
            path,
            source_root=source_root,
            output_root=output_root,
            logger=logger,
        )

    if workers <= 1 or len(files) <= 1:
        return [_run(path) for path in files]
    with ThreadPoolExecutor(max_workers=min(workers, len(files))) as pool:
        return list(pool.map(_run, files))


def run_optimization(
    *,
    source_dir: Path,
    output_dir: Path,
    config: OptimizerConfig,
    logger: BuildLogger | None = None,
    discovery: AssetDiscovery | None = None,
    transformers: Mapping[AssetKind, AssetTransformer] | None = None,
    post_steps: Sequence[PostBuildStep] | None = None,
) -> RunSummary:
    """Use-case: optimize every asset under ``source_dir`` into ``output_dir``.

    Per-file failures are recorded in the returned summary; only setup
    failures raise.

    Raises
    ------
    SetupError
        If the source root is missing, the output root cannot be created, or
        a post-build step fails.
    """
    started = time.perf_counter()
    logger = logger or LoggingBuildLogger()
    try:
        paths = BuildPaths(source_dir=source_dir, output_dir=output_dir)
    except ValidationError as exc:
        raise SetupError(f"Invalid build paths: {exc}") from exc
    source_root = paths.source_dir
    output_root = paths.output_dir

    logger.info(
        "Starting asset optimization",
        sourceDir=str(source_root),
        outputDir=str(output_root),
    )
    try:
        ensure_directory(output_root, logger)
    except OSError as exc:
        raise SetupError(f"Cannot create output directory: {output_root}") from exc

    discovery = discovery or GlobDiscovery(source_root, config.discovery, output_dir=output_root)
    transformers = transformers or default_transformers(config, logger, source_root, output_root)

    accumulator = RunAccumulator()
    for kind in ASSET_KINDS:
        files = list(discovery.discover(kind))
        logger.info(_FOUND_MESSAGES[kind], count=len(files))
        accumulator.extend(
            _process_kind(
                transformers[kind],
                files,
                source_root=source_root,
                output_root=output_root,
                logger=logger,
                workers=config.workers,
            )
        )

    steps = post_steps if post_steps is not None else default_post_steps(config, logger)
    for step in steps:
        try:
            step.run(accumulator.assets, output_root)
        except OSError as exc:
            raise SetupError(f"Post-build step {type(step).__name__} failed: {exc}") from exc

    summary = accumulator.finalize(time.perf_counter() - started)
    logger.info("Asset optimization completed", **summary.to_log())
    if summary.errors:
        logger.warn(
            "Some assets failed to optimize",
            errorCount=len(summary.errors),
            errors=[error.to_log() for error in summary.errors],
        )
    return summary
