"""JavaScript minifiers and the script transformer."""

from __future__ import annotations

import json
import shutil
import subprocess
import tempfile
import threading
import time
from collections.abc import Callable
from pathlib import Path

import rjsmin

from asset_optimizer.application.options import JsOptions
from asset_optimizer.application.ports import BuildLogger, JsMinifier, MinifiedScript
from asset_optimizer.application.results import AssetRecord
from asset_optimizer.errors import OptimizationError, SetupError
from asset_optimizer.infrastructure.filesystem import (
    elapsed_ms,
    format_savings,
    relative_label,
    write_output,
)
from asset_optimizer.jstokens import align_source_map, blank_debugger_statements, tokenize
from asset_optimizer.types import AssetKind

TERSER_EXECUTABLE = "terser"
_TERSER_OUTPUT_DIR = "out"
_MAP_TRAILER = "//# sourceMappingURL="


def _flag(value: bool) -> str:
    return "true" if value else "false"


class TerserMinifier:
    """Run the ``terser`` command line tool in a scratch directory."""

    name = "terser"

    def __init__(self, options: JsOptions, executable: str = TERSER_EXECUTABLE) -> None:
        self.options = options
        self.executable = executable

    def command(self, input_name: str, output_name: str) -> list[str]:
        options = self.options
        compress = ",".join(
            [
                f"dead_code={_flag(options.dead_code)}",
                f"drop_console={_flag(options.drop_console)}",
                f"drop_debugger={_flag(options.drop_debugger)}",
                f"keep_classnames={_flag(options.keep_classnames)}",
                f"keep_fnames={_flag(options.keep_fnames)}",
                f"passes={options.passes}",
            ]
        )
        mangle = f"toplevel={_flag(options.mangle_toplevel)},safari10={_flag(options.safari10)}"
        comments = "all" if options.comments else "false"
        command = [
            self.executable,
            input_name,
            "--compress",
            compress,
            "--mangle",
            mangle,
            "--format",
            f"comments={comments},ecma={options.ecma}",
            "--output",
            f"{_TERSER_OUTPUT_DIR}/{output_name}",
        ]
        if options.source_map:
            command += ["--source-map", f"filename='{output_name}'"]
        return command

    def minify(self, code: str, source_path: Path, output_name: str) -> MinifiedScript:
        with tempfile.TemporaryDirectory(prefix="asset-optimizer-") as scratch:
            workdir = Path(scratch)
            output_dir = workdir / _TERSER_OUTPUT_DIR
            output_dir.mkdir()
            (workdir / source_path.name).write_text(code, encoding="utf-8")
            completed = subprocess.run(
                self.command(source_path.name, output_name),
                cwd=workdir,
                capture_output=True,
                text=True,
                check=False,
            )
            if completed.returncode != 0:
                raise RuntimeError(
                    f"terser exited with status {completed.returncode}: "
                    f"{completed.stderr.strip()}"
                )
            minified = (output_dir / output_name).read_text(encoding="utf-8")
            map_path = output_dir / f"{output_name}.map"
            source_map = None
            if self.options.source_map and map_path.exists():
                source_map = json.loads(map_path.read_text(encoding="utf-8"))
        return MinifiedScript(code=minified, source_map=source_map)


class RjsminMinifier:
    """Strip comments and whitespace with rjsmin.

    ``debugger`` statements are blanked out before minifying, and the source
    map is rebuilt by pairing output tokens with source tokens.
    """

    name = "rjsmin"

    def __init__(self, options: JsOptions) -> None:
        if options.drop_console:
            raise SetupError("drop_console requires the terser engine")
        self.options = options

    def minify(self, code: str, source_path: Path, output_name: str) -> MinifiedScript:
        tokens = tokenize(code)
        if self.options.drop_debugger:
            code, removed = blank_debugger_statements(code, tokens)
            if removed:
                tokens = tokenize(code)
        minified = rjsmin.jsmin(code, keep_bang_comments=self.options.comments)
        source_map = None
        if self.options.source_map:
            source_map = align_source_map(
                tokens, minified, source_name=source_path.name, output_name=output_name
            )
        return MinifiedScript(code=minified, source_map=source_map)


def _terser_only_transforms(options: JsOptions) -> list[str]:
    disabled = ["name mangling"]
    if options.mangle_toplevel:
        disabled.append("top-level mangling")
    if options.dead_code:
        disabled.append("dead-code elimination")
    if options.passes > 1:
        disabled.append(f"{options.passes}-pass compression")
    return disabled


def select_minifier(
    options: JsOptions,
    which: Callable[[str], str | None] = shutil.which,
    *,
    logger: BuildLogger | None = None,
) -> JsMinifier:
    """Pick the minifier for ``options.engine``.

    ``auto`` prefers terser when it is on ``PATH`` and falls back to rjsmin,
    warning through ``logger`` about the transforms rjsmin cannot do.

    Raises
    ------
    SetupError
        If terser is requested but missing, or a terser-only option is set
        for the rjsmin engine.
    """
    if options.engine in ("auto", "terser"):
        executable = which(TERSER_EXECUTABLE)
        if executable is not None:
            return TerserMinifier(options, executable)
        if options.engine == "terser":
            raise SetupError("JavaScript engine 'terser' requested but not found on PATH")
        minifier = RjsminMinifier(options)
        if logger is not None:
            logger.warn(
                "terser not found on PATH, minifying JavaScript with rjsmin",
                engine=minifier.name,
                disabled=_terser_only_transforms(options),
            )
        return minifier
    return RjsminMinifier(options)


class JsTransformer:
    """Minify one script and write it with its source map.

    Without an explicit ``minifier`` the engine is selected on the first
    transform, so trees without scripts never look for terser.
    """

    kind: AssetKind = "js"

    def __init__(
        self,
        options: JsOptions,
        logger: BuildLogger,
        source_root: Path,
        minifier: JsMinifier | None = None,
        which: Callable[[str], str | None] = shutil.which,
    ) -> None:
        self.options = options
        self.logger = logger
        self.source_root = source_root
        self.which = which
        self._minifier = minifier
        self._select_lock = threading.Lock()

    @property
    def minifier(self) -> JsMinifier:
        with self._select_lock:
            if self._minifier is None:
                self._minifier = select_minifier(self.options, self.which, logger=self.logger)
            return self._minifier

    def transform(self, source_path: Path, output_path: Path) -> list[AssetRecord]:
        """Write the minified script and, when enabled, ``<name>.map``.

        Raises
        ------
        SetupError
            If no minifier can be selected for the configured engine.
        OptimizationError
            If reading, minifying or writing fails, or the minifier returns
            no code.
        """
        minifier = self.minifier
        started = time.perf_counter()
        label = relative_label(source_path, self.source_root)
        map_path = output_path.with_name(f"{output_path.name}.map")
        try:
            code = source_path.read_text(encoding="utf-8")
            original_size = len(code.encode("utf-8"))
            result = minifier.minify(code, source_path, output_path.name)
            if not result.code.strip():
                raise ValueError("Minification produced no output")
            minified = result.code
            if result.source_map is not None:
                lines = minified.rstrip().split("\n")
                if lines and lines[-1].startswith(_MAP_TRAILER):
                    lines.pop()
                minified = "\n".join([*lines, f"{_MAP_TRAILER}{map_path.name}"])
            size = write_output(output_path, minified.encode("utf-8"), self.logger)
            map_size = None
            if result.source_map is not None:
                payload = json.dumps(result.source_map, separators=(",", ":"))
                map_size = write_output(map_path, payload.encode("utf-8"), self.logger)
        except Exception as exc:
            raise OptimizationError(
                f"Failed to optimize JavaScript: {label}",
                exc,
                {"inputPath": str(source_path), "outputPath": str(output_path)},
            ) from exc

        self.logger.info(
            "Optimized JavaScript",
            input=label,
            output=output_path.name,
            originalSize=original_size,
            optimizedSize=size,
            savings=format_savings(original_size, size),
            duration=elapsed_ms(started),
            engine=minifier.name,
        )
        records = [
            AssetRecord(path=output_path, kind=self.kind, size=size, format="js",
                        source_path=source_path)
        ]
        if map_size is not None:
            records.append(
                AssetRecord(path=map_path, kind=self.kind, size=map_size, format="map",
                            source_path=source_path)
            )
        return records
