# tests/conftest.py
"""Shared test setup for project."""

from collections.abc import Generator

import pytest

import buildplan.logs as mod_logs
from tests.utils import DEFAULT_TEST_LOG_LEVEL
from tests.utils.log_fixtures import (
    direct_logger,
    module_logger,
)


# re-exported so pytest can discover them
__all__ = [
    "direct_logger",
    "module_logger",
]


# ----------------------------------------------------------------------
# Fixtures
# ----------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_logger_level() -> Generator[None, None, None]:
    """Reset the app logger level before and after each test.

    The app logger is a module-level singleton, so a test that changes its
    level (the CLI does) would otherwise leak into the next one.
    """
    logger = mod_logs.get_app_logger()
    logger.setLevel(DEFAULT_TEST_LOG_LEVEL)
    yield
    logger.setLevel(DEFAULT_TEST_LOG_LEVEL)


# ----------------------------------------------------------------------
# Hooks
# ----------------------------------------------------------------------


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    """Skip tests marked `debug` unless they were asked for with -k debug."""
    keywords = config.getoption("-k") or ""
    if "debug" in keywords.lower():
        return

    for item in items:
        if "debug" in item.keywords:
            item.add_marker(
                pytest.mark.skip(reason="Skipped debug test (use -k debug to run)"),
            )
