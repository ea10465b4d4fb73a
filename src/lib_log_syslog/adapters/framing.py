"""Syslog header framing and line-transform composition.

Contents
--------
* Priority constants laid out as in ``syslog(3)``.
* :func:`rfc3164_transform` - prefix each line with a BSD syslog header.
* :func:`chain_transforms` - apply several line transforms in order.
"""

from __future__ import annotations

import os
import socket
from collections.abc import Callable
from datetime import datetime, timezone

from lib_log_syslog.application.ports.renderer import LineTransform

# Facility lives in the high bits, severity in the low three.
LOG_DEBUG = 7
LOG_INFO = 6
LOG_USER = 1 << 3
LOG_LOCAL7 = 23 << 3
SEVERITY_MASK = 0x07
FACILITY_MASK = 0xF8
DEFAULT_PRIORITY = LOG_INFO | LOG_USER
MAX_PRIORITY = LOG_LOCAL7 | LOG_DEBUG


def rfc3164_transform(
    *,
    tag: str,
    priority: int = DEFAULT_PRIORITY,
    use_local_tz: bool = False,
    hostname: str | None = None,
    pid: int | None = None,
    clock: Callable[[], datetime] | None = None,
) -> LineTransform:
    """Return a transform prefixing lines with ``<PRI>Mmm dd hh:mm:ss host tag[pid]: ``.

    Examples
    --------
    >>> fixed = lambda: datetime(2025, 9, 3, 7, 5, 9, tzinfo=timezone.utc)
    >>> transform = rfc3164_transform(tag="app", hostname="web1", pid=42, clock=fixed)
    >>> transform(b"level=INFO msg=ready")
    b'<14>Sep  3 07:05:09 web1 app[42]: level=INFO msg=ready'
    """
    host = hostname or socket.gethostname()
    process_id = os.getpid() if pid is None else pid
    now = clock or (lambda: datetime.now(timezone.utc))

    def _transform(line: bytes) -> bytes:
        stamp = now()
        stamp = stamp.astimezone() if use_local_tz else stamp.astimezone(timezone.utc)
        header = f"<{priority}>{stamp:%b} {stamp.day:2d} {stamp:%H:%M:%S} {host} {tag}[{process_id}]: "
        return header.encode("utf-8") + line

    return _transform


def chain_transforms(*transforms: LineTransform) -> LineTransform:
    """Compose ``transforms`` left to right; the first failure propagates."""

    def _chained(line: bytes) -> bytes:
        for transform in transforms:
            line = transform(line)
        return line

    return _chained


__all__ = [
    "DEFAULT_PRIORITY",
    "FACILITY_MASK",
    "LOG_DEBUG",
    "LOG_INFO",
    "LOG_LOCAL7",
    "LOG_USER",
    "MAX_PRIORITY",
    "SEVERITY_MASK",
    "chain_transforms",
    "rfc3164_transform",
]
