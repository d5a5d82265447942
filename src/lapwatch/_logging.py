"""Structured JSON log formatter and logging configuration.

The stopwatch owns the terminal it runs in: anything written to that
terminal outside the render loop would tear the in-place status line.
:func:`configure_logging` therefore only installs a ``stderr`` handler
when ``stderr`` is *not* an interactive terminal (redirected to a file
or pipe), and always honours the optional rotating file sink.

:class:`JsonFormatter` emits one JSON object per log record on a single
line (JSON Lines / NDJSON format), tagged with ``service`` and
``version`` so several runs can share one log file.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any, TextIO

from lapwatch._settings import LoggingSettings

_ONE_MB = 1024 * 1024

_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Emit log records as single-line JSON objects (NDJSON).

    Each record produces a JSON object with these fields:

    - ``timestamp`` — ISO 8601 with timezone (always UTC)
    - ``level`` — Python log level name
    - ``logger`` — dotted logger name
    - ``message`` — the formatted log message
    - ``service`` — application name for log correlation
    - ``version`` — application version (omitted when empty)
    - ``exception`` — formatted traceback (only present when
      an exception is logged)
    - ``stack_info`` — stack trace (only present when
      ``stack_info=True``)

    Args:
        service: Application name included in every log line.
        version: Application version string.  Omitted from
            output when empty.
    """

    def __init__(
        self,
        *,
        service: str = "",
        version: str = "",
    ) -> None:
        super().__init__()
        self._service = service
        self._version = version

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a single-line JSON string."""
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self._service,
        }

        if self._version:
            entry["version"] = self._version

        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(entry, default=str)


def _is_interactive(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty is not None and isatty())


def configure_logging(
    settings: LoggingSettings,
    *,
    service: str,
    version: str = "",
    stream: TextIO | None = None,
) -> None:
    """Configure the root logger from settings.

    Clears any existing handlers on the root logger, then installs
    fresh handlers according to *settings*:

    - a :class:`logging.StreamHandler` on *stream* (``stderr`` by
      default), unless that stream is an interactive terminal;
    - a :class:`~logging.handlers.RotatingFileHandler` when
      ``settings.file`` is set (``settings.max_file_size_mb`` per
      file, ``settings.backup_count`` generations).

    When neither applies a :class:`logging.NullHandler` is installed so
    records are dropped quietly instead of reaching the last-resort
    handler.

    Args:
        settings: Logging configuration (level, format, file).
        service: Application name passed to :class:`JsonFormatter`.
        version: Application version passed to
            :class:`JsonFormatter`.  Defaults to ``""``.
        stream: Console stream; defaults to ``sys.stderr``.
    """
    root = logging.getLogger()

    # Clear existing handlers
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    if settings.format == "json":
        formatter: logging.Formatter = JsonFormatter(service=service, version=version)
    else:
        formatter = logging.Formatter(_TEXT_FORMAT)

    console = stream if stream is not None else sys.stderr
    if not _is_interactive(console):
        stream_handler = logging.StreamHandler(console)
        stream_handler.setFormatter(formatter)
        root.addHandler(stream_handler)

    if settings.file is not None:
        file_handler = RotatingFileHandler(
            settings.file,
            maxBytes=settings.max_file_size_mb * _ONE_MB,
            backupCount=settings.backup_count,
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if not root.handlers:
        root.addHandler(logging.NullHandler())

    root.setLevel(settings.level)
