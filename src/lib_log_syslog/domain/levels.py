"""Log level abstraction shared by renderers and the syslog handler.

Purpose
-------
Offer a domain-specific representation of log severities that augments the
stdlib levels with syslog severity codes and helper conversions.

Contents
--------
* :class:`LogLevel` enum with conversion helpers.
* :data:`PROBE_ORDER` - levels ordered from most verbose to most severe.
* :func:`probe_min_level` - pure helper locating the lowest enabled level.

System Role
-----------
Used by the forwarding handler to compute its level gate once at
construction and by the renderers to label rendered lines.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum


class LogLevel(Enum):
    """Enumerated logging levels used throughout the system."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @property
    def severity(self) -> str:
        """Return the lowercase severity name for structured payloads."""

        return self.name.lower()

    @property
    def syslog_severity(self) -> int:
        """Return the RFC 5424 numeric severity for this level."""

        return _SYSLOG_SEVERITY[self]

    def to_python_level(self) -> int:
        """Return the :mod:`logging` constant matching this level."""

        return getattr(logging, self.name)

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.value >= other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.value < other.value

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        normalized = name.strip().upper()
        if normalized == "WARN":
            normalized = "WARNING"
        try:
            return cls[normalized]
        except KeyError as exc:
            raise ValueError(f"Unknown log level: {name!r}") from exc

    @classmethod
    def from_numeric(cls, level: int) -> "LogLevel":
        """Return the :class:`LogLevel` corresponding to ``level``."""
        try:
            return cls(level)
        except ValueError as exc:
            raise ValueError(f"Unsupported log level numeric: {level}") from exc

    @classmethod
    def from_python_level(cls, level: int) -> "LogLevel":
        """Translate any stdlib logging level integer into :class:`LogLevel`.

        Custom numeric levels snap down to the nearest known member so that
        ``logging.INFO + 5`` still renders as ``INFO``.

        Examples
        --------
        >>> LogLevel.from_python_level(logging.WARNING)
        <LogLevel.WARNING: 30>
        >>> LogLevel.from_python_level(25)
        <LogLevel.INFO: 20>
        """
        selected = cls.DEBUG
        for member in PROBE_ORDER:
            if member.value <= level:
                selected = member
        return selected


_SYSLOG_SEVERITY = {
    LogLevel.DEBUG: 7,
    LogLevel.INFO: 6,
    LogLevel.WARNING: 4,
    LogLevel.ERROR: 3,
    LogLevel.CRITICAL: 2,
}

PROBE_ORDER: tuple[LogLevel, ...] = (
    LogLevel.DEBUG,
    LogLevel.INFO,
    LogLevel.WARNING,
    LogLevel.ERROR,
    LogLevel.CRITICAL,
)
#: Levels scanned by :func:`probe_min_level`, most verbose first.


def probe_min_level(is_enabled: Callable[[LogLevel], bool], *, default: LogLevel = LogLevel.DEBUG) -> LogLevel:
    """Return the first level in :data:`PROBE_ORDER` accepted by ``is_enabled``.

    Falls back to ``default`` when no level is accepted.

    Examples
    --------
    >>> probe_min_level(lambda level: level >= LogLevel.WARNING)
    <LogLevel.WARNING: 30>
    >>> probe_min_level(lambda level: False)
    <LogLevel.DEBUG: 10>
    """
    for level in PROBE_ORDER:
        if is_enabled(level):
            return level
    return default


__all__ = ["LogLevel", "PROBE_ORDER", "probe_min_level"]
