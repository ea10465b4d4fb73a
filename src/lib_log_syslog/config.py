"""Configuration helpers: ``.env`` loading and environment-derived settings.

Purpose
-------
Let host applications and the CLI describe the syslog destination through
environment variables, optionally sourced from the nearest ``.env`` file.

Contents
--------
* :data:`DOTENV_ENV_VAR` - toggle consulted by the CLI.
* :func:`should_use_dotenv` / :func:`enable_dotenv` - python-dotenv wiring.
* :class:`SyslogSettings` - typed view over the ``SYSLOG_*`` variables.

Environment
-----------
``SYSLOG_URL``
    Destination such as ``udp://127.0.0.1:514``.
``SYSLOG_TIMEOUT``
    Dial/write timeout in seconds.
``SYSLOG_PRIORITY``
    Integer priority or ``facility.severity`` (e.g. ``local0.info``).
``SYSLOG_TAG``
    Program tag for RFC 3164 headers.
``SYSLOG_USE_LOCAL_TZ``
    Truthy to stamp headers in local time.
``SYSLOG_LINE_BUF_SIZE``
    Maximum line length accepted by the drain.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from lib_log_syslog.adapters.syslog_proxy import SyslogProxyOptions

DOTENV_ENV_VAR = "LIB_LOG_SYSLOG_USE_DOTENV"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off", ""})

_FACILITIES = {
    "kern": 0,
    "user": 1,
    "mail": 2,
    "daemon": 3,
    "auth": 4,
    "syslog": 5,
    "lpr": 6,
    "news": 7,
    "uucp": 8,
    "cron": 9,
    "authpriv": 10,
    "ftp": 11,
    "local0": 16,
    "local1": 17,
    "local2": 18,
    "local3": 19,
    "local4": 20,
    "local5": 21,
    "local6": 22,
    "local7": 23,
}

_SEVERITIES = {
    "emerg": 0,
    "alert": 1,
    "crit": 2,
    "err": 3,
    "warning": 4,
    "notice": 5,
    "info": 6,
    "debug": 7,
}

_loaded_dotenv: Path | None = None


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def should_use_dotenv(*, explicit: bool | None = None, env_value: str | None = None) -> bool:
    """Decide whether ``.env`` loading is requested.

    An explicit CLI flag wins over the :data:`DOTENV_ENV_VAR` toggle.

    >>> should_use_dotenv(explicit=None, env_value="1")
    True
    >>> should_use_dotenv(explicit=False, env_value="1")
    False
    """
    if explicit is not None:
        return explicit
    if env_value is None:
        return False
    return env_value.strip().lower() in _TRUTHY


def enable_dotenv() -> Path | None:
    """Load the nearest ``.env`` found by walking up from the working directory.

    Variables already present in the environment are left untouched. Returns
    the resolved path of the loaded file or ``None`` when none was found.
    """
    global _loaded_dotenv

    found = find_dotenv(usecwd=True)
    if not found:
        return None
    resolved = Path(found).resolve()
    if resolved != _loaded_dotenv:
        load_dotenv(resolved, override=False)
        _loaded_dotenv = resolved
    return resolved


def _reset_dotenv_state_for_testing() -> None:
    global _loaded_dotenv
    _loaded_dotenv = None


def parse_priority(raw: str) -> int:
    """Parse an integer priority or a ``facility.severity`` pair.

    >>> parse_priority("local0.info")
    134
    >>> parse_priority("14")
    14
    """
    text = raw.strip().lower()
    if text.isdigit():
        return int(text)
    facility, sep, severity = text.partition(".")
    if not sep or facility not in _FACILITIES or severity not in _SEVERITIES:
        raise ValueError(f"SYSLOG_PRIORITY must be an integer or FACILITY.SEVERITY, got {raw!r}")
    return (_FACILITIES[facility] << 3) | _SEVERITIES[severity]


@dataclass(slots=True, frozen=True)
class SyslogSettings:
    """Resolved syslog destination and proxy options."""

    url: str = ""
    timeout: float = 0.0
    priority: int | None = None
    tag: str = ""
    use_local_tz: bool = False
    line_process_buf_size: int = 0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SyslogSettings":
        """Build settings from ``environ`` (default: :data:`os.environ`)."""

        env = os.environ if environ is None else environ

        timeout = 0.0
        raw_timeout = env.get("SYSLOG_TIMEOUT", "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ValueError(f"SYSLOG_TIMEOUT must be a number of seconds, got {raw_timeout!r}") from exc
            if timeout < 0:
                raise ValueError("SYSLOG_TIMEOUT must not be negative")

        raw_priority = env.get("SYSLOG_PRIORITY", "").strip()
        priority = parse_priority(raw_priority) if raw_priority else None

        line_size = 0
        raw_line_size = env.get("SYSLOG_LINE_BUF_SIZE", "").strip()
        if raw_line_size:
            try:
                line_size = int(raw_line_size)
            except ValueError as exc:
                raise ValueError(f"SYSLOG_LINE_BUF_SIZE must be an integer, got {raw_line_size!r}") from exc
            if line_size <= 0:
                raise ValueError("SYSLOG_LINE_BUF_SIZE must be positive")

        return cls(
            url=env.get("SYSLOG_URL", "").strip(),
            timeout=timeout,
            priority=priority,
            tag=env.get("SYSLOG_TAG", "").strip(),
            use_local_tz=_parse_bool("SYSLOG_USE_LOCAL_TZ", env.get("SYSLOG_USE_LOCAL_TZ", "")),
            line_process_buf_size=line_size,
        )

    def proxy_options(self) -> SyslogProxyOptions:
        return SyslogProxyOptions(
            use_local_tz=self.use_local_tz,
            priority=self.priority,
            tag=self.tag,
            line_process_buf_size=self.line_process_buf_size,
        )


__all__ = [
    "DOTENV_ENV_VAR",
    "SyslogSettings",
    "enable_dotenv",
    "parse_priority",
    "should_use_dotenv",
]
