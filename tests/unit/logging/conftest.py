import pytest

from distref.logging.config.logging_config import (
    LoggingConfig,
    _global_disabled_loggers,
    _global_logging_directory,
)
from distref.logging.models import Entry, LogLevel


@pytest.fixture(autouse=True)
def configure_log_level():
    config = LoggingConfig()
    config.update(log_level="debug")
    _global_disabled_loggers.set([])
    _global_logging_directory.set(None)
    yield
    config.update(log_level="error")
    _global_disabled_loggers.set([])
    _global_logging_directory.set(None)


@pytest.fixture
def temp_log_directory(tmp_path) -> str:
    return str(tmp_path)


@pytest.fixture
def sample_entry_factory():
    def create_entry(
        message: str = "Test log message",
        level: LogLevel = LogLevel.INFO,
    ) -> Entry:
        return Entry(message=message, level=level)

    return create_entry
