"""Click command group for smoke-testing a syslog destination.

Purpose
-------
Give operators a way to verify connectivity and framing from the shell:
``lib_log_syslog send --url udp://127.0.0.1:514 "hello"`` builds the same
proxy + handler pair an application would and forwards one event per
message argument.

Contents
--------
* :func:`cli` - root group with traceback and dotenv toggles.
* :func:`cli_info` - print the metadata banner.
* :func:`cli_send` - forward messages to a collector.
* :func:`main` - entry point running the group through ``lib_cli_exit_tools``.
"""

from __future__ import annotations

import os
from collections.abc import Sequence

import click
import lib_cli_exit_tools
from rich.console import Console

from . import __init__conf__
from . import config as syslog_config
from .adapters.framing import chain_transforms
from .adapters.renderers import JsonLineRenderer, TextLineRenderer
from .adapters.syslog_handler import SyslogHandlerOptions, create_syslog_handler
from .adapters.syslog_proxy import SyslogProxy
from .adapters.timestamps import trim_timestamp_transform
from .domain.errors import SyslogError
from .domain.events import LogEvent
from .domain.levels import LogLevel

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_LEVEL_CHOICES = [level.severity for level in LogLevel]


def summary_info() -> str:
    """Return the metadata banner printed by ``info``."""

    lines: list[str] = []
    __init__conf__.print_info(writer=lines.append)
    return "".join(lines)


def _parse_attributes(values: Sequence[str]) -> dict[str, str]:
    attrs: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}", param_hint="--attr")
        attrs[key] = value
    return attrs


@click.group(
    help=__init__conf__.title,
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=True,
)
@click.version_option(
    version=__init__conf__.version,
    prog_name=__init__conf__.shell_command,
    message=f"{__init__conf__.shell_command} version {__init__conf__.version}",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.option(
    "--use-dotenv/--no-use-dotenv",
    default=None,
    help=f"Load environment variables from the nearest .env (default: ${syslog_config.DOTENV_ENV_VAR}).",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool, use_dotenv: bool | None) -> None:
    """Root command storing global flags."""

    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback

    if syslog_config.should_use_dotenv(explicit=use_dotenv, env_value=os.getenv(syslog_config.DOTENV_ENV_VAR)):
        syslog_config.enable_dotenv()

    if ctx.invoked_subcommand is None:
        click.echo(summary_info(), nl=False)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print resolved metadata so users can inspect installation details."""

    click.echo(summary_info(), nl=False)


@cli.command("send", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("messages", nargs=-1, required=True)
@click.option("--url", default=None, help="Destination (tcp://HOST:PORT, udp://HOST:PORT, unix:///PATH); defaults to $SYSLOG_URL.")
@click.option("--timeout", type=float, default=None, help="Dial/write timeout in seconds; defaults to $SYSLOG_TIMEOUT.")
@click.option("--level", type=click.Choice(_LEVEL_CHOICES, case_sensitive=False), default="info", show_default=True)
@click.option("--format", "render_format", type=click.Choice(["json", "text"]), default="text", show_default=True)
@click.option("--header/--no-header", default=False, help="Prefix each line with an RFC 3164 header.")
@click.option("--group", default="", help="Nest attributes under this group name.")
@click.option("--attr", "attrs", multiple=True, help="Attribute as KEY=VALUE (repeatable).")
def cli_send(
    messages: tuple[str, ...],
    url: str | None,
    timeout: float | None,
    level: str,
    render_format: str,
    header: bool,
    group: str,
    attrs: tuple[str, ...],
) -> None:
    """Forward MESSAGES to a syslog collector, one event each."""

    try:
        settings = syslog_config.SyslogSettings.from_env()
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc
    destination = url or settings.url
    if not destination:
        raise click.UsageError("no destination given; pass --url or set SYSLOG_URL")

    proxy = SyslogProxy(settings.proxy_options())
    renderer = (JsonLineRenderer if render_format == "json" else TextLineRenderer)(level=LogLevel.DEBUG)
    transform = chain_transforms(trim_timestamp_transform, proxy.header_transform()) if header else trim_timestamp_transform
    handler = create_syslog_handler(proxy, renderer, SyslogHandlerOptions(line_transform=transform))
    handler = handler.with_group(group).with_attributes(_parse_attributes(attrs))

    console = Console(highlight=False)
    event_level = LogLevel.from_name(level)
    try:
        proxy.connect(destination, timeout if timeout is not None else settings.timeout)
        try:
            written = sum(handler.handle(LogEvent.now(event_level, message)) for message in messages)
        finally:
            proxy.disconnect()
    except SyslogError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(f"[green]forwarded[/green] {written} line(s) to {proxy.url}")


def main(argv: Sequence[str] | None = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI via ``lib_cli_exit_tools`` and return the exit code.

    Traceback preferences changed by ``--traceback`` are restored afterwards
    so embedding callers keep their own settings.
    """

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        return lib_cli_exit_tools.run_cli(
            cli,
            argv=list(argv) if argv is not None else None,
            prog_name=__init__conf__.shell_command,
        )
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


__all__ = ["cli", "main", "summary_info"]
