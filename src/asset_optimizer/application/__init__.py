"""Application-layer use-cases and option objects."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

from asset_optimizer.application.options import (
    CssOptions,
    DiscoveryOptions,
    ImageOptions,
    JsOptions,
    OptimizerConfig,
)
from asset_optimizer.application.ports import (
    AssetDiscovery,
    AssetTransformer,
    BuildLogger,
    PostBuildStep,
)
from asset_optimizer.application.results import AssetRecord, RunSummary
from asset_optimizer.types import AssetKind


def build_optimizer_config(
    *,
    js_engine: str = "auto",
    precompress: bool = False,
    manifest: bool = False,
    responsive: bool = False,
    workers: int = 1,
    **overrides: object,
) -> OptimizerConfig:
    """Build a validated configuration via lazy use-case import."""
    from asset_optimizer.application.use_cases import build_optimizer_config as _impl

    return _impl(
        js_engine=js_engine,
        precompress=precompress,
        manifest=manifest,
        responsive=responsive,
        workers=workers,
        **overrides,
    )


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
    """Optimize a source tree via lazy use-case import."""
    from asset_optimizer.application.use_cases import run_optimization as _impl

    return _impl(
        source_dir=source_dir,
        output_dir=output_dir,
        config=config,
        logger=logger,
        discovery=discovery,
        transformers=transformers,
        post_steps=post_steps,
    )


__all__ = [
    "AssetRecord",
    "CssOptions",
    "DiscoveryOptions",
    "ImageOptions",
    "JsOptions",
    "OptimizerConfig",
    "RunSummary",
    "build_optimizer_config",
    "run_optimization",
]
