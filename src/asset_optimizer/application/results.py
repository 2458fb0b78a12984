"""Application-layer result objects."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

from asset_optimizer.types import ASSET_KINDS, AssetKind

_SUMMARY_KEYS: Mapping[AssetKind, str] = {
    "image": "images",
    "css": "css",
    "js": "js",
    "html": "html",
    "other": "other",
}


@dataclass(frozen=True)
class AssetRecord:
    """One successfully produced output file."""

    path: Path
    kind: AssetKind
    size: int
    format: str | None = None
    source_path: Path | None = None


@dataclass(frozen=True)
class ErrorRecord:
    """One source file whose transform failed."""

    kind: AssetKind
    source_path: Path
    message: str
    cause: str | None = None

    def to_log(self) -> dict[str, str | None]:
        return {
            "type": self.kind,
            "path": str(self.source_path),
            "error": self.message,
            "cause": self.cause,
        }


@dataclass(frozen=True)
class WarningRecord:
    """One source file skipped without error."""

    kind: AssetKind
    source_path: Path
    message: str


@dataclass(frozen=True)
class KindSummary:
    """Aggregate counts for one asset kind."""

    files: int = 0
    count: int = 0
    outputs: int = 0
    total_size: int = 0


@dataclass(frozen=True)
class FileOutcome:
    """Result of running one source file through its transformer."""

    kind: AssetKind
    source_path: Path
    assets: tuple[AssetRecord, ...] = ()
    error: ErrorRecord | None = None
    warning: WarningRecord | None = None


@dataclass(frozen=True)
class RunSummary:
    """Finalized outcome of a whole optimization run."""

    kinds: Mapping[AssetKind, KindSummary]
    assets: tuple[AssetRecord, ...]
    errors: tuple[ErrorRecord, ...]
    warnings: tuple[WarningRecord, ...]
    discovered: int
    duration_seconds: float

    @property
    def exit_code(self) -> int:
        """Return ``1`` when any file failed, else ``0``."""
        return 1 if self.errors else 0

    def to_log(self) -> dict[str, object]:
        """Render the summary as structured log metadata."""
        payload: dict[str, object] = {"duration": f"{self.duration_seconds:.2f}s"}
        for kind in ASSET_KINDS:
            stats = self.kinds[kind]
            payload[_SUMMARY_KEYS[kind]] = {
                "count": stats.count,
                "outputs": stats.outputs,
                "totalSize": stats.total_size,
            }
        payload["discovered"] = self.discovered
        payload["warnings"] = len(self.warnings)
        payload["errors"] = len(self.errors)
        return payload


@dataclass
class RunAccumulator:
    """Mutable collector used while a run is in progress."""

    _files: dict[AssetKind, int] = field(default_factory=lambda: dict.fromkeys(ASSET_KINDS, 0))
    _succeeded: dict[AssetKind, int] = field(
        default_factory=lambda: dict.fromkeys(ASSET_KINDS, 0)
    )
    _assets: list[AssetRecord] = field(default_factory=list)
    _errors: list[ErrorRecord] = field(default_factory=list)
    _warnings: list[WarningRecord] = field(default_factory=list)

    def add(self, outcome: FileOutcome) -> None:
        """Record the outcome of one discovered file."""
        self._files[outcome.kind] += 1
        if outcome.error is not None:
            self._errors.append(outcome.error)
        elif outcome.warning is not None:
            self._warnings.append(outcome.warning)
        else:
            self._succeeded[outcome.kind] += 1
            self._assets.extend(outcome.assets)

    def extend(self, outcomes: Iterable[FileOutcome]) -> None:
        for outcome in outcomes:
            self.add(outcome)

    @property
    def assets(self) -> tuple[AssetRecord, ...]:
        return tuple(self._assets)

    def finalize(self, duration_seconds: float) -> RunSummary:
        """Freeze collected records into a :class:`RunSummary`."""
        kinds: dict[AssetKind, KindSummary] = {}
        for kind in ASSET_KINDS:
            records = [asset for asset in self._assets if asset.kind == kind]
            kinds[kind] = KindSummary(
                files=self._files[kind],
                count=self._succeeded[kind],
                outputs=len(records),
                total_size=sum(asset.size for asset in records),
            )
        return RunSummary(
            kinds=MappingProxyType(kinds),
            assets=tuple(self._assets),
            errors=tuple(self._errors),
            warnings=tuple(self._warnings),
            discovered=sum(self._files.values()),
            duration_seconds=duration_seconds,
        )
