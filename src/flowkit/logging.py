"""JSON log records for flow execution.

Flows and handles log through module-level loggers and pass their
structured fields with ``extra=``. :class:`JsonFormatter` promotes the
fields that identify an execution (flow, work unit, status) to the top of
each record so log lines can be filtered without digging into ``extra``.
Library code never installs handlers; see
:meth:`flowkit.config.EngineSettings.setup_logging`.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Everything a bare LogRecord carries, plus what Formatter.format adds.
_RECORD_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

EXECUTION_FIELDS: tuple[str, ...] = ("flow", "flow_type", "work", "status")


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Execution fields listed in :data:`EXECUTION_FIELDS` are emitted at the
    top level, any other ``extra`` field under ``"extra"``.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        extra: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key.startswith("_"):
                continue
            if key in EXECUTION_FIELDS:
                payload[key] = value
            else:
                extra[key] = value
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)
