"""Test configuration and fixtures."""

from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor

import pytest

from flowkit.config import EngineSettings
from flowkit.work.context import WorkContext


@pytest.fixture
def context() -> WorkContext:
    """Provide a fresh execution context."""
    return WorkContext({"seed": 1})


@pytest.fixture
def executor() -> Iterator[ThreadPoolExecutor]:
    """Provide a caller-owned pool, shut down after the test."""
    pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="flowkit-test")
    yield pool
    pool.shutdown(wait=False, cancel_futures=True)


@pytest.fixture
def engine_settings() -> EngineSettings:
    """Provide test engine settings that ignore any local .env."""
    return EngineSettings(
        _env_file=None,
        log_level="DEBUG",
        debug=True,
        max_workers=4,
        thread_name_prefix="flowkit-test",
    )
