"""Pillow-based raster encoding helpers."""

from __future__ import annotations

import io

from PIL import Image, ImageChops, ImageStat

QUANTIZE_PALETTES: tuple[int, ...] = (32, 64, 128, 256)


def clamp_width(natural_width: int, max_width: int) -> int:
    """Return the resize width: never above ``max_width``, never upscaled."""
    return max(1, min(natural_width, max_width))


def resize_to_width(image: Image.Image, width: int) -> Image.Image:
    """Downscale ``image`` to ``width`` keeping the aspect ratio.

    Images already at or below ``width`` are returned unchanged.
    """
    if width >= image.width:
        return image
    height = max(1, round(image.height * width / image.width))
    return image.resize((width, height), Image.Resampling.LANCZOS)


def has_alpha(image: Image.Image) -> bool:
    if image.mode in {"RGBA", "LA", "PA", "RGBa", "La"}:
        return True
    return image.mode == "P" and "transparency" in image.info


def _flatten(image: Image.Image, *, keep_alpha: bool) -> Image.Image:
    if has_alpha(image):
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        if keep_alpha:
            return rgba
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return image if image.mode == "RGB" else image.convert("RGB")


def encode_webp(image: Image.Image, quality: int, method: int = 6) -> bytes:
    buffer = io.BytesIO()
    _flatten(image, keep_alpha=True).save(buffer, "WEBP", quality=quality, method=method)
    return buffer.getvalue()


def encode_jpeg(image: Image.Image, quality: int) -> bytes:
    """Encode a progressive JPEG; alpha is flattened onto white."""
    buffer = io.BytesIO()
    _flatten(image, keep_alpha=False).save(
        buffer, "JPEG", quality=quality, progressive=True
    )
    return buffer.getvalue()


def recompress_jpeg(data: bytes, quality: int) -> bytes:
    """Second lossy pass with optimized Huffman tables; keeps the smaller."""
    buffer = io.BytesIO()
    with Image.open(io.BytesIO(data)) as decoded:
        decoded.save(buffer, "JPEG", quality=quality, progressive=True, optimize=True)
    candidate = buffer.getvalue()
    return candidate if len(candidate) < len(data) else data


def _png_ready(image: Image.Image) -> Image.Image:
    if image.mode in {"1", "L", "LA", "P", "RGB", "RGBA"}:
        return image
    return _flatten(image, keep_alpha=True)


def encode_png(image: Image.Image) -> bytes:
    """Encode with maximum lossless zlib compression."""
    buffer = io.BytesIO()
    _png_ready(image).save(buffer, "PNG", optimize=True, compress_level=9)
    return buffer.getvalue()


def similarity(original: Image.Image, candidate: Image.Image) -> float:
    """Return ``1 - mean per-band RMS error / 255`` for same-mode images."""
    diff = ImageChops.difference(original, candidate)
    rms = ImageStat.Stat(diff).rms
    return 1.0 - (sum(rms) / len(rms)) / 255.0


def quantize_png(
    image: Image.Image,
    quality: tuple[float, float],
    speed: int,
) -> bytes | None:
    """Lossy palette reduction within a quality interval.

    Tries increasingly large palettes and keeps the first one whose
    similarity reaches the upper bound; a 256-color palette that only meets
    the lower bound is accepted as a fallback. Returns ``None`` when even the
    lower bound cannot be met. ``speed`` 1 runs the most k-means refinement
    iterations, 11 runs none.
    """
    minimum, target = quality
    source = _flatten(image, keep_alpha=True)
    kmeans = max(0, 11 - speed)

    chosen: Image.Image | None = None
    for colors in QUANTIZE_PALETTES:
        quantized = source.quantize(
            colors=colors, method=Image.Quantize.FASTOCTREE, kmeans=kmeans
        )
        score = similarity(source, quantized.convert(source.mode))
        if score >= target:
            chosen = quantized
            break
        if colors == QUANTIZE_PALETTES[-1] and score >= minimum:
            chosen = quantized
    if chosen is None:
        return None

    buffer = io.BytesIO()
    chosen.save(buffer, "PNG", optimize=True)
    return buffer.getvalue()
