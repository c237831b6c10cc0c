"""`secrets` verb: manage the developer secrets store."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from cli.ui_components import build_secrets_table
from core.hosting.user_secrets import (
    USER_SECRETS_ID,
    clear_user_secrets,
    get_user_secrets_file,
    read_user_secrets,
    remove_user_secret,
    set_user_secret,
)

app = typer.Typer(
    no_args_is_help=True,
    help="Manage developer secrets (layered over configuration in Development only).",
)

_console = Console()

IdOption = Annotated[str, typer.Option("--id", help="User secrets id.")]
FileOption = Annotated[
    Optional[Path],
    typer.Option("--file", help="Secrets file to use instead of the per-user store.", dir_okay=False),
]


def _secrets_path(secrets_id: str, file: Path | None) -> Path:
    return file or get_user_secrets_file(secrets_id)


@app.command("set")
def set_secret(
    key: Annotated[str, typer.Argument(help="Configuration key, e.g. ConnectionStrings:Archive.")],
    value: Annotated[str, typer.Argument(help="Secret value.")],
    secrets_id: IdOption = USER_SECRETS_ID,
    file: FileOption = None,
) -> None:
    """Store a secret."""

    path = set_user_secret(key, value, _secrets_path(secrets_id, file))
    _console.print(f"[green]Saved[/green] {key} [dim]to {path}[/dim]")


@app.command("remove")
def remove_secret(
    key: Annotated[str, typer.Argument(help="Configuration key to remove.")],
    secrets_id: IdOption = USER_SECRETS_ID,
    file: FileOption = None,
) -> None:
    """Remove a secret."""

    if not remove_user_secret(key, _secrets_path(secrets_id, file)):
        _console.print(f"[yellow]No secret named[/yellow] {key}")
        raise typer.Exit(code=1)
    _console.print(f"[green]Removed[/green] {key}")


@app.command("list")
def list_secrets(
    secrets_id: IdOption = USER_SECRETS_ID,
    file: FileOption = None,
    show_values: Annotated[bool, typer.Option("--show-values", help="Print values in clear text.")] = False,
) -> None:
    """List stored secrets (values masked unless --show-values)."""

    values = read_user_secrets(_secrets_path(secrets_id, file))
    if not values:
        _console.print("No secrets configured.")
        return
    _console.print(build_secrets_table(values, show_values=show_values))


@app.command("clear")
def clear_secrets(
    secrets_id: IdOption = USER_SECRETS_ID,
    file: FileOption = None,
) -> None:
    """Delete every stored secret."""

    path = clear_user_secrets(_secrets_path(secrets_id, file))
    _console.print(f"[green]Cleared[/green] {path}")
