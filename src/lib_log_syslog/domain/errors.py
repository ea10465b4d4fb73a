"""Error categories raised by the syslog proxy and handler.

Every failure in the forwarding path surfaces to the immediate caller as one
of these types. Underlying causes are chained with ``raise ... from exc``.
"""

from __future__ import annotations


class SyslogError(RuntimeError):
    """Base class for all forwarding failures."""


class SyslogURLParseError(SyslogError, ValueError):
    """Destination URL is malformed or uses an unsupported scheme."""


class SyslogConnectionError(SyslogError):
    """Dial failed or an operation required a live connection."""


class _DrainError(SyslogError):
    """Failure in the middle of a drain.

    ``lines_written`` counts the lines of the failed drain that had already
    reached the socket; they are not rolled back.
    """

    def __init__(self, message: str, *, lines_written: int = 0) -> None:
        super().__init__(message)
        self.lines_written = lines_written


class SyslogWriteError(_DrainError):
    """Writing a line to the collector failed or the write deadline passed."""


class SyslogProcessError(_DrainError):
    """Buffered output could not be split into lines."""


class SyslogHandleError(SyslogError):
    """The downstream renderer failed to render a record."""


__all__ = [
    "SyslogConnectionError",
    "SyslogError",
    "SyslogHandleError",
    "SyslogProcessError",
    "SyslogURLParseError",
    "SyslogWriteError",
]
