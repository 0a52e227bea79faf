"""Shared fixtures for the DoorGuide test suite."""

from __future__ import annotations

import pytest

from doorguide.telemetry.navigation_logger import init_navigation_logger


@pytest.fixture(autouse=True)
def fresh_navigation_logger():
    """Console-only navigation loggers, recreated for every test."""
    logger = init_navigation_logger(None)
    yield logger
    logger.close()
