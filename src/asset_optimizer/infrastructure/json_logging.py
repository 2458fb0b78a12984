"""JSON-lines logging on top of the stdlib ``logging`` module."""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import UTC, datetime
from typing import TextIO

from asset_optimizer.errors import OptimizationError

LOGGER_NAME = "asset_optimizer.build"
_META_ATTR = "build_meta"
_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "ERROR",
}


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC)
        payload: dict[str, object] = {
            "timestamp": timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": _LEVEL_NAMES.get(record.levelno, record.levelname),
            "message": record.getMessage(),
        }
        payload.update(getattr(record, _META_ATTR, {}))
        return json.dumps(payload, default=str, ensure_ascii=False)


class _MaxLevelFilter(logging.Filter):
    def __init__(self, max_level: int) -> None:
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno <= self.max_level


def configure_logging(
    *,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Install JSON handlers on the build logger.

    INFO and WARN records go to ``stdout``; ERROR records go to ``stderr``.
    Streams default to the ones current at call time, so test runners that
    swap ``sys.stdout`` see the output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = JsonFormatter()
    out_handler = logging.StreamHandler(stdout or sys.stdout)
    out_handler.setFormatter(formatter)
    out_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    err_handler = logging.StreamHandler(stderr or sys.stderr)
    err_handler.setFormatter(formatter)
    err_handler.setLevel(logging.ERROR)

    logger.addHandler(out_handler)
    logger.addHandler(err_handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def ensure_logging(
    *,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> bool:
    """Install JSON handlers unless build records already reach a handler.

    Returns
    -------
    bool
        Whether handlers were installed.
    """
    if logging.getLogger(LOGGER_NAME).hasHandlers():
        return False
    configure_logging(stdout=stdout, stderr=stderr)
    return True


def _error_fields(error: BaseException) -> dict[str, object]:
    fields: dict[str, object] = {"error": str(error)}
    cause = error.cause if isinstance(error, OptimizationError) else error.__cause__
    if cause is not None:
        fields["cause"] = f"{type(cause).__name__}: {cause}"
    if error.__traceback__ is not None:
        fields["stack"] = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
    return fields


class LoggingBuildLogger:
    """``BuildLogger`` backed by a stdlib logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger(LOGGER_NAME)

    def info(self, message: str, **meta: object) -> None:
        self._logger.info(message, extra={_META_ATTR: meta})

    def warn(self, message: str, **meta: object) -> None:
        self._logger.warning(message, extra={_META_ATTR: meta})

    def error(
        self,
        message: str,
        error: BaseException | None = None,
        **meta: object,
    ) -> None:
        fields: dict[str, object] = {}
        if error is not None:
            fields.update(_error_fields(error))
        fields.update(meta)
        self._logger.error(message, extra={_META_ATTR: fields})
