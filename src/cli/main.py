"""CLI entry point (Typer).

Verbs:
- `init`: build the layered configuration, then run the one-shot database
  initialization command.
- `host`: build the same configuration and serve the web application until
  the process is stopped.

Unknown options are not rejected: they are handed to the command-line
configuration layer (`--Urls=http://0.0.0.0:8080`,
`--ConnectionStrings.Archive=sqlite:///x.db`).
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from adapters.web import startup
from cli import user_secrets
from cli.ui_components import build_configuration_table, build_initialize_panel, heading, print_banner
from core.config import AppSettings
from core.domain.options import CommonOptions, HostOptions, InitializeOptions
from core.hosting.bootstrap import load_settings
from core.hosting.configuration import ConfigurationError
from core.hosting.environment import wait_for_debugger
from core.interfaces.command import Command
from core.log import configure_logging
from core.services.initialize import InitializeCommand, InitializeError, InitializeResult

app = typer.Typer(no_args_is_help=False, add_completion=False)
app.add_typer(user_secrets.app, name="secrets")

_console = Console()
_err_console = Console(stderr=True)

# Let configuration overrides through to ctx.args.
_PASSTHROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}

ConfigPathOption = Annotated[
    Optional[str],
    typer.Option("--config-path", help="Directory containing appsettings.json."),
]
EnvironmentOption = Annotated[
    Optional[str],
    typer.Option("--environment", help="Environment name (default: $ASPNETCORE_ENVIRONMENT or Development)."),
]
DebugOption = Annotated[
    bool,
    typer.Option("--debug", help="Wait for a debugger to attach before starting."),
]


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(heading())
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        Optional[bool],
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show the version and exit."),
    ] = None,
) -> None:
    """Archive site backend: database initialization and web host."""

    # Rich help is always written to stdout; a usage error goes to stderr with exit code 2.
    if ctx.invoked_subcommand is None:
        ctx.fail("Missing command.")


def _fail(exc: Exception) -> typer.Exit:
    _err_console.print(f"[red]Error:[/red] {escape(str(exc))}")
    return typer.Exit(code=1)


def _load_settings(args: Sequence[str], options: CommonOptions):
    layout, settings = load_settings(args, options)
    options.environment = layout.environment
    configure_logging(settings, debug=options.debug)
    return layout, settings


def run_command(command: Command, options: CommonOptions):
    """Await a command's completion on the calling thread."""

    # TODO: cancel the command cleanly on SIGTERM (Ctrl+C is handled by asyncio.run).
    return asyncio.run(command.invoke(options))


def initialize_database(args: Sequence[str], options: InitializeOptions) -> InitializeResult:
    """Run the initialize command synchronously."""

    if options.debug:
        wait_for_debugger()

    layout, settings = _load_settings(args, options)
    return run_command(InitializeCommand(settings, base_path=layout.base_path), options)


def run_web_host(args: Sequence[str], options: HostOptions) -> None:
    """Start the web host; blocks for the process lifetime."""

    if options.debug:
        wait_for_debugger()

    layout, settings = _load_settings(args, options)
    print_banner(_err_console, environment=options.environment or "")
    startup.run_web_host(settings, environment=options.environment or "", base_path=layout.base_path)


@app.command("init", context_settings=_PASSTHROUGH)
def init_command(
    ctx: typer.Context,
    config_path: ConfigPathOption = None,
    environment: EnvironmentOption = None,
    debug: DebugOption = False,
    drop: Annotated[
        bool,
        typer.Option(
            "--drop",
            help="A flag that indicates the database should be dropped and recreated if it already exists.",
        ),
    ] = False,
) -> None:
    """Initialize the archive database."""

    options = InitializeOptions(
        config_path=config_path,
        environment=environment,
        debug=debug,
        drop_database=drop,
    )
    try:
        result = initialize_database(ctx.args, options)
    except (ConfigurationError, InitializeError, ValidationError) as exc:
        raise _fail(exc) from exc

    _console.print(build_initialize_panel(result))


@app.command("host", context_settings=_PASSTHROUGH)
def host_command(
    ctx: typer.Context,
    config_path: ConfigPathOption = None,
    environment: EnvironmentOption = None,
    debug: DebugOption = False,
) -> None:
    """Run the web host."""

    options = HostOptions(config_path=config_path, environment=environment, debug=debug)
    try:
        run_web_host(ctx.args, options)
    except (ConfigurationError, ValidationError) as exc:
        raise _fail(exc) from exc


@app.command("config", context_settings=_PASSTHROUGH)
def config_command(
    ctx: typer.Context,
    config_path: ConfigPathOption = None,
    environment: EnvironmentOption = None,
    show_secrets: Annotated[bool, typer.Option("--show-secrets", help="Print user secrets in clear text.")] = False,
    section: Annotated[Optional[str], typer.Option("--section", help="Only show keys below this section.")] = None,
) -> None:
    """Show the effective layered configuration."""

    options = CommonOptions(config_path=config_path, environment=environment)
    try:
        layout, settings = load_settings(ctx.args, options)
        sources = AppSettings.source_values(layout)
    except (ConfigurationError, ValidationError) as exc:
        raise _fail(exc) from exc

    _console.print(
        build_configuration_table(settings, sources, layout=layout, section=section, show_secrets=show_secrets)
    )


def run() -> None:
    app()


if __name__ == "__main__":
    run()
