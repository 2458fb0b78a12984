"""Exception hierarchy for the asset optimizer."""

from __future__ import annotations

from collections.abc import Mapping


class AssetOptimizerError(Exception):
    """Base error for all optimizer failures."""

    exit_code = 1


class SetupError(AssetOptimizerError):
    """Fatal failure before or outside per-file processing."""


class OptimizationError(AssetOptimizerError):
    """Failure to transform a single source file.

    Parameters
    ----------
    message : str
        Human readable message naming the offending file.
    cause : BaseException | None, default=None
        Original exception, also chained as ``__cause__`` when raised with
        ``raise ... from``.
    context : Mapping[str, object] | None, default=None
        Paths involved in the failed transform.
    """

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.context = dict(context or {})


class UnsupportedAssetError(AssetOptimizerError):
    """File was discovered but its format cannot be transformed."""

    def __init__(self, message: str, extension: str) -> None:
        super().__init__(message)
        self.extension = extension
