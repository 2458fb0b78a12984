"""Shared type aliases for optimizer modules."""

from __future__ import annotations

from typing import Literal

type AssetKind = Literal["image", "css", "js", "html", "other"]

ASSET_KINDS: tuple[AssetKind, ...] = ("image", "css", "js", "html", "other")

