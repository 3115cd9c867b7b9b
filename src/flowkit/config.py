"""Engine configuration.

Configuration is loaded from:
- environment variables prefixed with ``FLOWKIT_``
- and a local `.env` file (if present)
"""

from __future__ import annotations

import logging
import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from flowkit.logging import JsonFormatter


class EngineSettings(BaseSettings):
    """Settings for :class:`flowkit.engine.WorkFlowEngine`.

    Environment variables:
    - FLOWKIT_LOG_LEVEL
    - FLOWKIT_DEBUG
    - FLOWKIT_MAX_WORKERS
    - FLOWKIT_THREAD_NAME_PREFIX

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `EngineSettings(_env_file=path_to_env)`.
    """

    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )
    debug: bool = Field(
        default=False,
        description="Force DEBUG on the flowkit loggers",
    )

    max_workers: int = Field(
        default=8,
        ge=1,
        description=(
            "Size of the engine's shared worker pool. Nested flows hold a worker "
            "per running level, so size it for the deepest nesting you run."
        ),
    )
    thread_name_prefix: str = Field(
        default="flowkit",
        description="Prefix for worker thread names",
    )

    model_config = SettingsConfigDict(
        env_prefix="FLOWKIT_",
        env_file=".env",
        extra="ignore",
    )

    def setup_logging(self) -> None:
        """Send JSON log records to stdout at the configured level.

        Calling it again replaces the handler it installed earlier; handlers
        installed by the application are left alone.
        """

        root = logging.getLogger()
        for handler in list(root.handlers):
            if isinstance(handler.formatter, JsonFormatter):
                root.removeHandler(handler)

        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
        root.setLevel(self.log_level.upper())
        if self.debug:
            logging.getLogger("flowkit").setLevel(logging.DEBUG)
