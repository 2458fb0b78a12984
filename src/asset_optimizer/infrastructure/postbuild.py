"""Post-build steps run after every asset kind has been processed."""

from __future__ import annotations

import gzip
import hashlib
import json
from collections.abc import Sequence
from pathlib import Path

from asset_optimizer.application.options import OptimizerConfig
from asset_optimizer.application.ports import BuildLogger, PostBuildStep
from asset_optimizer.application.results import AssetRecord
from asset_optimizer.infrastructure.filesystem import format_savings, relative_label

MANIFEST_NAME = "asset-manifest.json"
COMPRESSIBLE_SUFFIXES = frozenset(
    {".css", ".js", ".map", ".html", ".htm", ".svg", ".txt", ".xml", ".webmanifest", ".json"}
)


def cache_control(kind: str, max_age: int) -> str:
    """Return the Cache-Control value to serve an asset of ``kind`` with."""
    if kind == "html":
        return "no-cache"
    return f"public, max-age={max_age}, immutable"


def content_hash(data: bytes, length: int = 8) -> str:
    return hashlib.sha256(data).hexdigest()[:length]


class GzipPrecompressor:
    """Write ``<file>.gz`` next to each compressible output.

    The gzip header carries no timestamp or file name, so repeated builds are
    byte-identical. Files that do not shrink are left uncompressed.
    """

    def __init__(self, level: int, logger: BuildLogger) -> None:
        self.level = level
        self.logger = logger

    def run(self, assets: Sequence[AssetRecord], output_root: Path) -> None:
        written = 0
        for asset in assets:
            if asset.path.suffix.lower() not in COMPRESSIBLE_SUFFIXES:
                continue
            data = asset.path.read_bytes()
            compressed = gzip.compress(data, compresslevel=self.level, mtime=0)
            if len(compressed) >= len(data):
                continue
            asset.path.with_name(f"{asset.path.name}.gz").write_bytes(compressed)
            written += 1
            self.logger.info(
                "Precompressed file",
                path=relative_label(asset.path, output_root),
                originalSize=len(data),
                compressedSize=len(compressed),
                savings=format_savings(len(data), len(compressed)),
            )
        self.logger.info("Precompression finished", files=written)


class ManifestWriter:
    """Write a JSON manifest mapping output paths to hash and caching data."""

    def __init__(self, cache_max_age: int, logger: BuildLogger, name: str = MANIFEST_NAME) -> None:
        self.cache_max_age = cache_max_age
        self.logger = logger
        self.name = name

    def build(self, assets: Sequence[AssetRecord], output_root: Path) -> dict[str, object]:
        entries: dict[str, object] = {}
        for asset in sorted(assets, key=lambda record: relative_label(record.path, output_root)):
            entries[relative_label(asset.path, output_root)] = {
                "kind": asset.kind,
                "size": asset.size,
                "hash": content_hash(asset.path.read_bytes()),
                "cacheControl": cache_control(asset.kind, self.cache_max_age),
            }
        return entries

    def run(self, assets: Sequence[AssetRecord], output_root: Path) -> None:
        manifest = self.build(assets, output_root)
        target = output_root / self.name
        target.write_text(json.dumps(manifest, indent=2, sort_keys=True) + "\n", encoding="utf-8")
        self.logger.info("Wrote asset manifest", path=self.name, entries=len(manifest))


def default_post_steps(config: OptimizerConfig, logger: BuildLogger) -> list[PostBuildStep]:
    """Return the post-build steps enabled by ``config``, in run order."""
    steps: list[PostBuildStep] = []
    if config.precompress:
        steps.append(GzipPrecompressor(config.gzip_level, logger))
    if config.manifest:
        steps.append(ManifestWriter(config.cache_max_age, logger))
    return steps
