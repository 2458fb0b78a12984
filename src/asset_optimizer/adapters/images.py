"""Image transformer implementing the ``AssetTransformer`` port."""

from __future__ import annotations

import time
from pathlib import Path

from PIL import Image

from asset_optimizer.adapters.discovery import SUPPORTED_IMAGE_EXTENSIONS
from asset_optimizer.application.options import ImageOptions
from asset_optimizer.application.ports import BuildLogger
from asset_optimizer.application.results import AssetRecord
from asset_optimizer.errors import OptimizationError, UnsupportedAssetError
from asset_optimizer.imaging import (
    clamp_width,
    encode_jpeg,
    encode_png,
    encode_webp,
    quantize_png,
    recompress_jpeg,
    resize_to_width,
)
from asset_optimizer.infrastructure.filesystem import (
    elapsed_ms,
    ensure_directory,
    format_savings,
    relative_label,
    write_output,
)
from asset_optimizer.svg import optimize_svg
from asset_optimizer.types import AssetKind

_JPEG_EXTENSIONS = frozenset({".jpg", ".jpeg"})


class ImageTransformer:
    """Optimize raster images with Pillow and vector images with lxml."""

    kind: AssetKind = "image"

    def __init__(self, options: ImageOptions, logger: BuildLogger, source_root: Path) -> None:
        self.options = options
        self.logger = logger
        self.source_root = source_root

    def transform(self, source_path: Path, output_path: Path) -> list[AssetRecord]:
        """Write optimized renditions next to ``output_path``.

        Raises
        ------
        UnsupportedAssetError
            If the extension is not a supported image format.
        OptimizationError
            If decoding, encoding or writing fails.
        """
        started = time.perf_counter()
        extension = source_path.suffix.lower()
        label = relative_label(source_path, self.source_root)
        if extension not in SUPPORTED_IMAGE_EXTENSIONS:
            raise UnsupportedAssetError(f"Unsupported image format: {label}", extension)

        output_dir = output_path.parent
        try:
            ensure_directory(output_dir, self.logger)
            if extension == ".svg":
                return self._transform_svg(source_path, output_dir, label, started)
            return self._transform_raster(source_path, output_dir, label, started)
        except Exception as exc:
            raise OptimizationError(
                f"Failed to optimize image: {label}",
                exc,
                {"inputPath": str(source_path), "outputDir": str(output_dir)},
            ) from exc

    def _record(self, path: Path, size: int, fmt: str, source: Path) -> AssetRecord:
        return AssetRecord(path=path, kind=self.kind, size=size, format=fmt, source_path=source)

    def _transform_svg(
        self, source_path: Path, output_dir: Path, label: str, started: float
    ) -> list[AssetRecord]:
        original = source_path.read_bytes()
        optimized = optimize_svg(original)
        target = output_dir / f"{source_path.stem}.svg"
        size = write_output(target, optimized, self.logger)
        self.logger.info(
            "Optimized SVG",
            input=label,
            output=target.name,
            originalSize=len(original),
            optimizedSize=size,
            savings=format_savings(len(original), size),
            duration=elapsed_ms(started),
        )
        return [self._record(target, size, "svg", source_path)]

    def _transform_raster(
        self, source_path: Path, output_dir: Path, label: str, started: float
    ) -> list[AssetRecord]:
        extension = source_path.suffix.lower()
        stem = source_path.stem
        quality = self.options.quality
        original_size = source_path.stat().st_size
        outputs: list[tuple[Path, bytes, str]] = []

        with Image.open(source_path) as decoded:
            decoded.load()
            natural_width = decoded.width
            width = clamp_width(natural_width, self.options.max_width)
            resized = resize_to_width(decoded, width)

            outputs.append(
                (
                    output_dir / f"{stem}.webp",
                    encode_webp(resized, quality.webp, self.options.webp_method),
                    "webp",
                )
            )
            if extension in _JPEG_EXTENSIONS:
                first_pass = encode_jpeg(resized, quality.jpeg)
                outputs.append(
                    (
                        output_dir / f"{stem}.jpg",
                        recompress_jpeg(first_pass, quality.jpeg),
                        "jpeg",
                    )
                )
            elif extension == ".png":
                lossless = encode_png(resized)
                quantization = self.options.png_quantization
                lossy = quantize_png(resized, quantization.quality, quantization.speed)
                best = lossy if lossy is not None and len(lossy) < len(lossless) else lossless
                outputs.append((output_dir / f"{stem}.png", best, "png"))

            if self.options.responsive:
                for variant_width in self.options.responsive_widths:
                    if variant_width >= width:
                        continue
                    variant = resize_to_width(decoded, variant_width)
                    outputs.append(
                        (
                            output_dir / f"{stem}-{variant_width}w.webp",
                            encode_webp(variant, quality.webp, self.options.webp_method),
                            "webp",
                        )
                    )

        records = [
            self._record(path, write_output(path, data, self.logger), fmt, source_path)
            for path, data, fmt in outputs
        ]
        self.logger.info(
            "Optimized image",
            input=label,
            formats=", ".join(dict.fromkeys(record.format or "" for record in records)),
            originalWidth=natural_width,
            width=width,
            originalSize=original_size,
            totalSize=sum(record.size for record in records),
            duration=elapsed_ms(started),
        )
        return records
