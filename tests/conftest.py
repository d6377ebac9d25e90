"""
Shared pytest configuration.

Worker processes import test modules by name when running routines defined
in them, so ``tests`` is a package and every test directory carries an
``__init__.py``.
"""

import pytest

from distref.logging.config.logging_config import LoggingConfig
from distref.workers import Env, load_env

pytest_plugins = ["distref.testing.plugin"]


@pytest.fixture(autouse=True)
def configure_log_level():
    config = LoggingConfig()
    config.update(log_level="error")
    yield


@pytest.fixture
def distref_env() -> Env:
    return load_env(
        Env,
        override=Env(
            DISTREF_WORKER_COUNT=2,
            DISTREF_WORKER_INVOKE_TIMEOUT="30s",
        ),
    )


@pytest.fixture
def record_path(tmp_path) -> str:
    return str(tmp_path / "records.log")
