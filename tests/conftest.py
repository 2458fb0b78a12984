"""Shared pytest configuration: suite markers and build logger isolation."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from asset_optimizer.infrastructure.json_logging import LOGGER_NAME

_SUITE_MARKERS = {
    "e2e_tests": pytest.mark.e2e,
    "integration_tests": pytest.mark.integration,
    "unit_tests": pytest.mark.unit,
}


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Mark each test with the suite its directory belongs to."""
    del config
    for item in items:
        parts = set(Path(str(item.fspath)).parts)
        for directory, marker in _SUITE_MARKERS.items():
            if directory in parts:
                item.add_marker(marker)
                break


@pytest.fixture(autouse=True)
def _isolated_build_logger() -> Iterator[None]:
    """Restore the build logger after tests that reconfigure its handlers."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
