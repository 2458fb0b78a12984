"""Source tree discovery implementing the ``AssetDiscovery`` port."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from fnmatch import fnmatch
from pathlib import Path

from asset_optimizer.application.options import DiscoveryOptions
from asset_optimizer.errors import SetupError
from asset_optimizer.types import AssetKind

SUPPORTED_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".svg", ".webp"})
UNSUPPORTED_IMAGE_EXTENSIONS = frozenset({".bmp", ".gif", ".tif", ".tiff", ".avif", ".heic"})

KIND_EXTENSIONS: Mapping[AssetKind, frozenset[str]] = {
    "image": SUPPORTED_IMAGE_EXTENSIONS | UNSUPPORTED_IMAGE_EXTENSIONS,
    "css": frozenset({".css"}),
    "js": frozenset({".js"}),
    "html": frozenset({".html", ".htm"}),
    "other": frozenset({".ico", ".txt", ".xml", ".webmanifest", ".woff", ".woff2"}),
}


def matches_any(relative: str, patterns: Iterable[str]) -> bool:
    """Check a POSIX relative path against glob patterns.

    ``dir/**`` also matches ``dir`` itself so whole directories can be pruned.
    """
    for pattern in patterns:
        if fnmatch(relative, pattern):
            return True
        if pattern.endswith("/**") and relative == pattern[:-3]:
            return True
    return False


class GlobDiscovery:
    """Walk ``root`` and select files by extension, exclusions first."""

    def __init__(
        self,
        root: Path,
        options: DiscoveryOptions,
        *,
        output_dir: Path | None = None,
    ) -> None:
        self.root = root
        self.options = options
        self._excludes = list(options.exclude)
        if output_dir is not None and output_dir.is_relative_to(root):
            self._excludes.append(f"{output_dir.relative_to(root).as_posix()}/**")

    def patterns_for(self, kind: AssetKind) -> list[str]:
        if kind == "js":
            return [*self._excludes, *self.options.script_exclude]
        return list(self._excludes)

    def discover(self, kind: AssetKind) -> list[Path]:
        """Return sorted absolute paths of ``kind`` files under the root.

        Raises
        ------
        SetupError
            If the root (or a directory below it) cannot be read.
        """
        if not self.root.is_dir():
            raise SetupError(f"Source directory does not exist: {self.root}")

        extensions = KIND_EXTENSIONS[kind]
        excludes = self.patterns_for(kind)
        found: set[Path] = set()

        def _fail(exc: OSError) -> None:
            raise SetupError(f"Cannot read source directory: {exc.filename}") from exc

        for current, dirnames, filenames in os.walk(self.root, onerror=_fail):
            current_path = Path(current)
            rel_dir = current_path.relative_to(self.root).as_posix()
            prefix = "" if rel_dir == "." else f"{rel_dir}/"
            dirnames[:] = sorted(
                name for name in dirnames if not matches_any(f"{prefix}{name}", excludes)
            )
            for name in filenames:
                if Path(name).suffix.lower() not in extensions:
                    continue
                if matches_any(f"{prefix}{name}", excludes):
                    continue
                found.add((current_path / name).absolute())
        return sorted(found)
