"""Static package metadata surfaced by the CLI ``info`` command."""

from __future__ import annotations

from collections.abc import Callable
from importlib import metadata

name = "lib_log_syslog"
title = "Forward structured log records to a remote syslog collector"
shell_command = "lib_log_syslog"


def _resolve_version() -> str:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return "0.0.0"


version = _resolve_version()


def print_info(writer: Callable[[str], None] | None = None) -> None:
    """Emit the metadata banner line by line through ``writer`` (default: ``print``)."""

    fields = [
        ("name", name),
        ("title", title),
        ("version", version),
        ("shell_command", shell_command),
    ]
    pad = max(len(label) for label, _ in fields)
    lines = [f"Info for {name}:\n", "\n"]
    lines.extend(f"    {label.ljust(pad)} = {value}\n" for label, value in fields)

    emit = writer or (lambda text: print(text, end=""))
    for line in lines:
        emit(line)


__all__ = ["name", "print_info", "shell_command", "title", "version"]
