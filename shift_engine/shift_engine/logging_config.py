"""Logging setup for sqlshift processes.

Library modules only create module-level loggers; handlers are installed
once by the process entry point (the CLI) through :func:`configure_logging`.

Two output styles are supported:

* plain text (default)::

    2025-05-15 12:34:56,789  DEBUG     shift_engine.sql_toolkit.impl.sqlglot_impl  ...

* single-line JSON when ``SQLSHIFT_STRUCTURED_LOGGING=true``::

    {"timestamp": "...", "level": "DEBUG", "logger": "...", "message": "..."}
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from shift_engine.config import Settings

TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Engine context attached via ``extra={"engine": ...}``.
        engine = getattr(record, "engine", None)
        if engine is not None:
            payload["engine"] = engine

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(settings: Settings, *, verbose: bool = False) -> logging.Handler:
    """Install a single stderr handler on the root logger.

    Replaces any handlers installed earlier, so calling it twice is safe.
    *verbose* forces DEBUG regardless of ``settings.log_level``.
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    root_logger.addHandler(handler)

    level = logging.DEBUG if verbose or settings.debug else getattr(logging, settings.log_level)
    root_logger.setLevel(level)
    return handler
