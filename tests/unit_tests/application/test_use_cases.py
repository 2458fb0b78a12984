"""Unit tests for application use-case contracts."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from asset_optimizer.application.results import AssetRecord
from asset_optimizer.application.use_cases import (
    build_optimizer_config,
    process_file,
    run_optimization,
)
from asset_optimizer.errors import OptimizationError, SetupError, UnsupportedAssetError
from asset_optimizer.types import ASSET_KINDS, AssetKind


class _Logger:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, dict[str, object]]] = []

    def info(self, message: str, **meta: object) -> None:
        self.events.append(("info", message, meta))

    def warn(self, message: str, **meta: object) -> None:
        self.events.append(("warn", message, meta))

    def error(self, message: str, error: BaseException | None = None, **meta: object) -> None:
        self.events.append(("error", message, {"error": error, **meta}))

    def find(self, message: str) -> list[dict[str, object]]:
        return [meta for _, logged, meta in self.events if logged == message]


class _Discovery:
    def __init__(self, files: dict[AssetKind, list[Path]]) -> None:
        self.files = files
        self.kinds: list[AssetKind] = []

    def discover(self, kind: AssetKind) -> list[Path]:
        self.kinds.append(kind)
        return self.files.get(kind, [])


class _Transformer:
    def __init__(self, kind: AssetKind, failures: dict[str, Exception] | None = None) -> None:
        self.kind = kind
        self.failures = failures or {}
        self.calls: list[tuple[Path, Path]] = []

    def transform(self, source_path: Path, output_path: Path) -> list[AssetRecord]:
        self.calls.append((source_path, output_path))
        failure = self.failures.get(source_path.name)
        if failure is not None:
            raise failure
        return [AssetRecord(path=output_path, kind=self.kind, size=10, source_path=source_path)]


class _PostStep:
    def __init__(self) -> None:
        self.seen: list[tuple[Sequence[AssetRecord], Path]] = []

    def run(self, assets: Sequence[AssetRecord], output_root: Path) -> None:
        self.seen.append((assets, output_root))


def _transformers(**failures: dict[str, Exception]) -> dict[AssetKind, _Transformer]:
    return {kind: _Transformer(kind, failures.get(kind)) for kind in ASSET_KINDS}


@pytest.fixture()
def source(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    return root


def test_build_optimizer_config_maps_validated_values() -> None:
    """Verify tunables land in the typed option tree."""
    config = build_optimizer_config(
        webp_quality=70,
        responsive_widths=(640, 320, 640),
        js_engine="rjsmin",
        exclude=["vendor/**"],
        workers=3,
    )

    assert config.images.quality.webp == 70
    assert config.images.quality.jpeg == 85
    assert config.images.responsive_widths == (320, 640)
    assert config.js.engine == "rjsmin"
    assert config.js.passes == 2
    assert config.discovery.exclude == ("vendor/**",)
    assert config.discovery.script_exclude == ("scripts/**",)
    assert config.workers == 3


def test_build_optimizer_config_rejects_invalid_values() -> None:
    """Verify out-of-range tunables are a setup error."""
    with pytest.raises(SetupError, match="Invalid optimizer configuration"):
        build_optimizer_config(webp_quality=0)
    with pytest.raises(SetupError):
        build_optimizer_config(js_engine="uglify")


def test_process_file_maps_exceptions_to_outcomes(source: Path, tmp_path: Path) -> None:
    """Verify the per-file boundary turns every failure into a record."""
    logger = _Logger()
    output = tmp_path / "dist"
    transformer = _Transformer(
        "image",
        {
            "old.bmp": UnsupportedAssetError("Unsupported image format: old.bmp", ".bmp"),
            "bad.png": OptimizationError("Failed to optimize image: bad.png", ValueError("x")),
            "odd.png": KeyError("unexpected"),
        },
    )

    warned = process_file(
        transformer, source / "old.bmp", source_root=source, output_root=output, logger=logger
    )
    failed = process_file(
        transformer, source / "bad.png", source_root=source, output_root=output, logger=logger
    )
    crashed = process_file(
        transformer, source / "odd.png", source_root=source, output_root=output, logger=logger
    )
    fine = process_file(
        transformer, source / "sub/ok.png", source_root=source, output_root=output, logger=logger
    )

    assert warned.warning is not None and warned.error is None
    assert failed.error is not None and failed.error.cause == "x"
    assert failed.error.message == "Failed to optimize image: bad.png"
    assert crashed.error is not None and crashed.error.message == "'unexpected'"
    assert fine.assets[0].path == output / "sub/ok.png"
    assert logger.find("Skipping unsupported file") == [{"path": "old.bmp", "extension": ".bmp"}]
    assert len(logger.find("Image optimization failed")) == 2


def test_run_optimization_isolates_failures(source: Path, tmp_path: Path) -> None:
    """Verify one failing file does not stop the others and sets exit code 1."""
    files = {
        "image": [source / "a.png", source / "b.png", source / "c.png"],
        "css": [source / "site.css"],
    }
    transformers = _transformers(image={"b.png": OptimizationError("Failed: b.png")})
    logger = _Logger()

    summary = run_optimization(
        source_dir=source,
        output_dir=tmp_path / "dist",
        config=build_optimizer_config(),
        logger=logger,
        discovery=_Discovery(files),
        transformers=transformers,
        post_steps=[],
    )

    assert summary.kinds["image"].count == 2
    assert summary.kinds["css"].count == 1
    assert summary.exit_code == 1
    assert [error.source_path.name for error in summary.errors] == ["b.png"]
    assert len(transformers["image"].calls) == 3
    assert logger.find("Found images to optimize") == [{"count": 3}]
    assert logger.find("Found other files to copy") == [{"count": 0}]
    warning = logger.find("Some assets failed to optimize")[0]
    assert warning["errorCount"] == 1
    assert (tmp_path / "dist").is_dir()


def test_run_optimization_processes_kinds_in_order(source: Path, tmp_path: Path) -> None:
    """Verify kinds are discovered in the fixed pipeline order."""
    discovery = _Discovery({})

    run_optimization(
        source_dir=source,
        output_dir=tmp_path / "dist",
        config=build_optimizer_config(),
        logger=_Logger(),
        discovery=discovery,
        transformers=_transformers(),
        post_steps=[],
    )

    assert discovery.kinds == ["image", "css", "js", "html", "other"]


def test_run_optimization_parallel_matches_sequential(source: Path, tmp_path: Path) -> None:
    """Verify a worker pool yields the same deterministic summary."""
    files = {"js": [source / f"f{index}.js" for index in range(12)]}
    failures = {"js": {"f3.js": OptimizationError("Failed: f3.js")}}

    summaries = [
        run_optimization(
            source_dir=source,
            output_dir=tmp_path / f"dist{workers}",
            config=build_optimizer_config(workers=workers),
            logger=_Logger(),
            discovery=_Discovery(files),
            transformers=_transformers(**failures),
            post_steps=[],
        )
        for workers in (1, 4)
    ]

    sequential, parallel = summaries
    assert [a.source_path for a in sequential.assets] == [a.source_path for a in parallel.assets]
    assert sequential.kinds["js"] == parallel.kinds["js"]
    assert len(parallel.errors) == 1


def test_run_optimization_runs_post_steps_with_assets(source: Path, tmp_path: Path) -> None:
    """Verify post-build steps see every produced asset."""
    step = _PostStep()

    summary = run_optimization(
        source_dir=source,
        output_dir=tmp_path / "dist",
        config=build_optimizer_config(),
        logger=_Logger(),
        discovery=_Discovery({"html": [source / "index.html"]}),
        transformers=_transformers(),
        post_steps=[step],
    )

    assert len(step.seen) == 1
    assets, root = step.seen[0]
    assert list(assets) == list(summary.assets)
    assert root == (tmp_path / "dist").resolve()


def test_run_optimization_rejects_bad_paths(source: Path, tmp_path: Path) -> None:
    """Verify missing roots and overlapping output roots are setup errors."""
    config = build_optimizer_config()
    with pytest.raises(SetupError, match="Invalid build paths"):
        run_optimization(source_dir=tmp_path / "missing", output_dir=tmp_path / "o", config=config)
    with pytest.raises(SetupError):
        run_optimization(source_dir=source, output_dir=source, config=config)
    with pytest.raises(SetupError):
        run_optimization(source_dir=source, output_dir=tmp_path, config=config)


def test_run_optimization_without_scripts_never_needs_terser(
    source: Path, tmp_path: Path
) -> None:
    """Verify a requested terser engine only matters once a script is found."""
    (source / "index.html").write_text("<p>hi</p>", encoding="utf-8")

    summary = run_optimization(
        source_dir=source,
        output_dir=tmp_path / "dist",
        config=build_optimizer_config(js_engine="terser"),
        logger=_Logger(),
        post_steps=[],
    )

    assert summary.exit_code == 0
    assert summary.kinds["html"].count == 1
    assert (tmp_path / "dist/index.html").read_text(encoding="utf-8") == "<p>hi</p>"
