"""Pytest configuration and fixtures."""

import pytest
import repro_trace.logging_config as logging_config_module
from repro_trace.config import get_settings
from repro_trace.logging_config import configure_logging


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests.

    This fixture runs once per session and configures structlog for testing.
    cache_logger_on_first_use=False ensures test isolation.
    """
    configure_logging(log_level="DEBUG")


@pytest.fixture(autouse=True)
def reset_logging_config() -> None:
    """Reset logging config state before each test for isolation."""
    logging_config_module._CONFIGURED = False


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; every test starts from a clean cache."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
