"""Pytest configuration and fixtures for feature tests."""

import pytest
import repro_trace.logging_config as logging_config_module
from repro_trace.config import get_settings


@pytest.fixture(autouse=True)
def reset_logging_config() -> None:
    """Let each test bind logging to its own captured streams."""
    logging_config_module._CONFIGURED = False


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
