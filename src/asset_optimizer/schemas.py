"""Pydantic schemas for runtime validation of build inputs."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class BuildConfig(BaseModel):
    """Validated tunables for one optimization run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    webp_quality: int = Field(default=80, ge=1, le=100)
    jpeg_quality: int = Field(default=85, ge=1, le=100)
    png_quality: int = Field(default=90, ge=1, le=100)
    png_quantize_quality: tuple[float, float] = (0.8, 0.9)
    png_quantize_speed: int = Field(default=1, ge=1, le=11)
    max_width: int = Field(default=1920, gt=0)
    responsive: bool = False
    responsive_widths: tuple[int, ...] = (320, 640, 1024, 1920)
    browsers: tuple[str, ...] = ("> 1%", "last 2 versions", "not dead")
    js_engine: Literal["auto", "terser", "rjsmin"] = "auto"
    drop_console: bool = False
    keep_fnames: bool = False
    js_passes: int = Field(default=2, ge=1)
    source_maps: bool = True
    exclude: tuple[str, ...] | None = None
    cache_max_age: int = Field(default=31536000, ge=0)
    gzip_level: int = Field(default=9, ge=1, le=9)
    precompress: bool = False
    manifest: bool = False
    workers: int = Field(default=1, ge=1)

    @field_validator("png_quantize_quality")
    @classmethod
    def _validate_quality_range(cls, value: tuple[float, float]) -> tuple[float, float]:
        low, high = value
        if not 0.0 <= low <= high <= 1.0:
            raise ValueError("png_quantize_quality must satisfy 0 <= min <= max <= 1.")
        return value

    @field_validator("responsive_widths")
    @classmethod
    def _validate_widths(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if any(width <= 0 for width in value):
            raise ValueError("responsive_widths must be positive integers.")
        return tuple(sorted(set(value)))

    @field_validator("browsers")
    @classmethod
    def _validate_browsers(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(query.strip() for query in value if query.strip())
        if not cleaned:
            raise ValueError("browsers must contain at least one query.")
        return cleaned


class BuildPaths(BaseModel):
    """Validated source and output roots."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    source_dir: Path
    output_dir: Path

    @field_validator("source_dir")
    @classmethod
    def _validate_source(cls, value: Path) -> Path:
        resolved = value.expanduser().resolve()
        if not resolved.is_dir():
            raise ValueError(f"source directory does not exist: {value}")
        return resolved

    @field_validator("output_dir")
    @classmethod
    def _resolve_output(cls, value: Path) -> Path:
        return value.expanduser().resolve()

    @model_validator(mode="after")
    def _reject_output_as_source(self) -> BuildPaths:
        if self.output_dir == self.source_dir:
            raise ValueError("output directory must differ from the source directory.")
        if self.source_dir.is_relative_to(self.output_dir):
            raise ValueError("output directory must not contain the source directory.")
        return self
