"""Bridge stdlib :mod:`logging` records into a :class:`SyslogHandler`.

Install :class:`LoggingBridgeHandler` on any logger to forward its records to
the collector; errors raised by the forwarding path are reported through
:meth:`logging.Handler.handleError`, which is how the stdlib expects handlers
to fail.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from lib_log_syslog.adapters.syslog_handler import SyslogHandler
from lib_log_syslog.domain.events import LogEvent
from lib_log_syslog.domain.levels import LogLevel

_OWN_LOGGER = "lib_log_syslog"
_EXC_FORMATTER = logging.Formatter()


def _is_own_logger(name: str) -> bool:
    return name == _OWN_LOGGER or name.startswith(_OWN_LOGGER + ".")


_RESERVED_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


class LoggingBridgeHandler(logging.Handler):
    """Forward :class:`logging.LogRecord` objects through a syslog handler."""

    def __init__(self, syslog_handler: SyslogHandler, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self._syslog_handler = syslog_handler
        self._local = threading.local()

    @property
    def syslog_handler(self) -> SyslogHandler:
        return self._syslog_handler

    def emit(self, record: logging.LogRecord) -> None:
        # Records from this package would re-enter the proxy lock.
        if _is_own_logger(record.name) or getattr(self._local, "active", False):
            return
        event = self.to_event(record)
        if not self._syslog_handler.enabled(event.level):
            return
        self._local.active = True
        try:
            self._syslog_handler.handle(event)
        except Exception:
            self.handleError(record)
        finally:
            self._local.active = False

    def to_event(self, record: logging.LogRecord) -> LogEvent:
        """Convert ``record`` into a :class:`LogEvent`."""
        extra: dict[str, Any] = {key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS and not key.startswith("_")}
        exc_text = None
        if record.exc_info:
            exc_text = (self.formatter or _EXC_FORMATTER).formatException(record.exc_info)
        return LogEvent(
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            level=LogLevel.from_python_level(record.levelno),
            message=record.getMessage(),
            logger_name=record.name,
            extra=extra,
            exc_info=exc_text,
        )


__all__ = ["LoggingBridgeHandler"]
