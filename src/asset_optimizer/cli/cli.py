#!/usr/bin/env python3
"""
asset_optimizer.cli.cli

Typer-based CLI running the build-time asset optimization pipeline.

Run without a command to optimize the current directory into ``./dist``;
every flag only overrides that default behavior.

Examples
--------
Optimize the current site:

    optimize-assets

Optimize another tree with four workers and gzip siblings:

    optimize-assets --source site --output site/dist --workers 4 --precompress

Inspect the installed toolchain:

    optimize-assets doctor
"""

from __future__ import annotations

import logging
import shutil
import sys
import traceback
from pathlib import Path

import typer

from asset_optimizer.errors import AssetOptimizerError

app = typer.Typer(
    name="optimize-assets",
    help="Optimize images, stylesheets and scripts of a static site for deployment.",
    add_completion=False,
)

JS_ENGINE_HELP = "JavaScript minifier: auto (terser when on PATH), terser or rjsmin."
OUTPUT_HELP = "Output directory. Defaults to <source>/dist."


def _fatal_exit_code(exc: Exception, debug: bool) -> int:
    """Report a fatal error and return the process exit code.

    Parameters
    ----------
    exc : Exception
        Exception that aborted the run.
    debug : bool
        Whether to echo the traceback to stderr as well.

    Returns
    -------
    int
        Process exit code.
    """
    from asset_optimizer.infrastructure.json_logging import LoggingBuildLogger

    LoggingBuildLogger().error("Build optimization failed with fatal error", exc)
    if debug:
        typer.echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int) and code > 0:
        return code
    return 1


@app.callback(invoke_without_command=True)
def _main(
    ctx: typer.Context,
    source: Path = typer.Option(Path("."), "--source", "-s", help="Site source directory."),
    output: Path | None = typer.Option(None, "--output", "-o", help=OUTPUT_HELP),
    workers: int = typer.Option(1, "--workers", "-w", min=1, help="Files processed in parallel."),
    js_engine: str = typer.Option("auto", "--js-engine", help=JS_ENGINE_HELP),
    precompress: bool = typer.Option(
        False, "--precompress", help="Write .gz siblings for text outputs."
    ),
    manifest: bool = typer.Option(
        False, "--manifest", help="Write asset-manifest.json with hashes and cache headers."
    ),
    responsive: bool = typer.Option(
        False, "--responsive", help="Also write narrower WebP renditions."
    ),
    debug: bool = typer.Option(False, "--debug", help="Show full tracebacks on error."),
) -> None:
    """Optimize every asset under the source directory."""
    from asset_optimizer.infrastructure.json_logging import configure_logging

    ctx.obj = {"debug": debug}
    configure_logging(level=logging.DEBUG if debug else logging.INFO)
    if ctx.invoked_subcommand is not None:
        return

    from asset_optimizer.application import build_optimizer_config, run_optimization
    from asset_optimizer.infrastructure.json_logging import LoggingBuildLogger

    logger = LoggingBuildLogger()
    output_dir = output if output is not None else source / "dist"
    logger.info("Build optimization started", source=str(source), output=str(output_dir))
    try:
        config = build_optimizer_config(
            js_engine=js_engine,
            precompress=precompress,
            manifest=manifest,
            responsive=responsive,
            workers=workers,
        )
        summary = run_optimization(
            source_dir=source,
            output_dir=output_dir,
            config=config,
            logger=logger,
        )
    except (AssetOptimizerError, OSError, RuntimeError) as exc:
        raise typer.Exit(code=_fatal_exit_code(exc, debug))

    logger.info(
        "Build optimization finished",
        success=summary.exit_code == 0,
        exitCode=summary.exit_code,
    )
    raise typer.Exit(code=summary.exit_code)


@app.command("doctor")
def doctor_cmd() -> None:
    """Print installed toolchain versions."""
    import importlib.metadata as metadata

    modules = ["pillow", "lxml", "rcssmin", "rjsmin", "pydantic", "typer"]

    typer.echo(f"Python: {sys.version.split()[0]}")
    for module in modules:
        try:
            version = metadata.version(module)
            typer.echo(f"{module}: {version}")
        except metadata.PackageNotFoundError:
            typer.echo(f"{module}: <not installed>")

    terser = shutil.which("terser")
    typer.echo(f"terser: {terser or '<not found, rjsmin fallback>'}")

    try:
        from PIL import features

        typer.echo(f"webp support: {'yes' if features.check('webp') else 'no'}")
    except Exception:
        typer.echo("webp support: <unavailable>")


if __name__ == "__main__":
    app()
