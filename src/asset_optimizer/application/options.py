"""Typed option objects shared across optimization use-cases."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

type JsEngine = Literal["auto", "terser", "rjsmin"]

DEFAULT_EXCLUDES: tuple[str, ...] = (
    "node_modules/**",
    "dist/**",
    "build/**",
    ".git/**",
)


@dataclass(frozen=True)
class ImageQuality:
    """Encoder quality per output format (1-100)."""

    webp: int = 80
    jpeg: int = 85
    png: int = 90


@dataclass(frozen=True)
class PngQuantization:
    """Lossy PNG palette pass settings.

    ``quality`` is a ``(minimum, target)`` interval in ``[0, 1]``; ``speed``
    runs from 1 (slowest, best) to 11 (fastest).
    """

    quality: tuple[float, float] = (0.8, 0.9)
    speed: int = 1


@dataclass(frozen=True)
class ImageOptions:
    """Raster and vector image configuration."""

    quality: ImageQuality = ImageQuality()
    png_quantization: PngQuantization = PngQuantization()
    max_width: int = 1920
    responsive_widths: tuple[int, ...] = (320, 640, 1024, 1920)
    responsive: bool = False
    webp_method: int = 6


@dataclass(frozen=True)
class CssOptions:
    """Stylesheet configuration."""

    browsers: tuple[str, ...] = ("> 1%", "last 2 versions", "not dead")
    minify_font_values: bool = True
    minify_selectors: bool = True


@dataclass(frozen=True)
class JsOptions:
    """Script minification configuration.

    Every compressor flag is honored by the terser engine; the rjsmin engine
    covers comment/whitespace stripping, debugger removal and source maps.
    """

    engine: JsEngine = "auto"
    dead_code: bool = True
    drop_console: bool = False
    drop_debugger: bool = True
    keep_classnames: bool = False
    keep_fnames: bool = False
    passes: int = 2
    mangle_toplevel: bool = True
    safari10: bool = True
    ecma: int = 2020
    comments: bool = False
    source_map: bool = True


@dataclass(frozen=True)
class DiscoveryOptions:
    """Glob exclusions applied while walking the source tree."""

    exclude: tuple[str, ...] = DEFAULT_EXCLUDES
    script_exclude: tuple[str, ...] = ("scripts/**",)


@dataclass(frozen=True)
class OptimizerConfig:
    """Immutable configuration built once per process."""

    images: ImageOptions = ImageOptions()
    css: CssOptions = CssOptions()
    js: JsOptions = JsOptions()
    discovery: DiscoveryOptions = DiscoveryOptions()
    cache_max_age: int = 31536000
    gzip_level: int = 9
    precompress: bool = False
    manifest: bool = False
    workers: int = 1
