"""Unit tests for engine settings."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from flowkit.config import EngineSettings
from flowkit.logging import JsonFormatter

_ENV_VARS = (
    "FLOWKIT_LOG_LEVEL",
    "FLOWKIT_DEBUG",
    "FLOWKIT_MAX_WORKERS",
    "FLOWKIT_THREAD_NAME_PREFIX",
)


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_settings_defaults(clean_env: Path) -> None:
    settings = EngineSettings()

    assert settings.log_level == "INFO"
    assert settings.debug is False
    assert settings.max_workers == 8
    assert settings.thread_name_prefix == "flowkit"


def test_settings_loads_from_dotenv(clean_env: Path) -> None:
    (clean_env / ".env").write_text(
        "\n".join(
            [
                "FLOWKIT_LOG_LEVEL=DEBUG",
                "FLOWKIT_MAX_WORKERS=2",
                "UNRELATED=ignored",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = EngineSettings()

    assert settings.log_level == "DEBUG"
    assert settings.max_workers == 2


def test_environment_overrides_dotenv(clean_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (clean_env / ".env").write_text("FLOWKIT_MAX_WORKERS=2\n", encoding="utf-8")
    monkeypatch.setenv("FLOWKIT_MAX_WORKERS", "16")

    assert EngineSettings().max_workers == 16


def test_max_workers_must_be_positive(clean_env: Path) -> None:
    with pytest.raises(ValidationError):
        EngineSettings(max_workers=0)


def test_setup_logging_honours_debug(clean_env: Path) -> None:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        EngineSettings(log_level="WARNING", debug=True).setup_logging()

        assert root.level == logging.WARNING
        assert logging.getLogger("flowkit").level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)
        logging.getLogger("flowkit").setLevel(logging.NOTSET)


def test_setup_logging_replaces_only_its_own_handler(clean_env: Path) -> None:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    own = logging.NullHandler()
    root.addHandler(own)
    try:
        settings = EngineSettings(log_level="INFO")
        settings.setup_logging()
        settings.setup_logging()

        json_handlers = [h for h in root.handlers if isinstance(h.formatter, JsonFormatter)]
        assert len(json_handlers) == 1
        assert own in root.handlers
    finally:
        for handler in list(root.handlers):
            root.removeHandler(handler)
        for handler in handlers:
            root.addHandler(handler)
        root.setLevel(level)
