"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from presentation details.
- Tables/panels are reused by several verbs.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.config import APP_NAME, AppSettings, get_version
from core.hosting.configuration import KEY_DELIMITER, USER_SECRETS_SOURCE, ConfigurationLayout
from core.services.initialize import InitializeResult

MASK = "********"


def heading() -> str:
    return f"{APP_NAME} {get_version()}"


def print_banner(console: Console, *, environment: str) -> None:
    """Print the startup banner (skipped in non-interactive runs)."""

    title = Text(heading(), style="bold cyan")
    subtitle = Text(f"Environment: {environment}", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _leaves(data: Any, prefix: str = "") -> Iterator[tuple[str, Any]]:
    if isinstance(data, dict) and data:
        for key, value in data.items():
            yield from _leaves(value, f"{prefix}{KEY_DELIMITER}{key}" if prefix else str(key))
    else:
        yield prefix, data


def _same_key(left: str, right: str) -> bool:
    return left.replace("_", "").lower() == right.replace("_", "").lower()


def _supplies(data: dict[str, Any], key: str) -> bool:
    node: Any = data
    for part in key.split(KEY_DELIMITER):
        if not isinstance(node, dict):
            return False
        match = next((name for name in node if _same_key(str(name), part)), None)
        if match is None:
            return False
        node = node[match]
    return True


def _display(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def build_configuration_table(
    settings: AppSettings,
    sources: list[tuple[str, dict[str, Any]]],
    *,
    layout: ConfigurationLayout,
    section: str | None = None,
    show_secrets: bool = False,
) -> Table:
    """Effective settings, one row per key, with the layer that supplied it.

    `sources` is `AppSettings.source_values(layout)`, highest priority first.
    Keys no layer supplies show their default.
    """

    table = Table(title=f"Configuration ({layout.environment}) - {layout.base_path}")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    table.add_column("Source", style="dim")

    wanted = section.rstrip(KEY_DELIMITER).lower() if section else ""
    for key, value in _leaves(settings.model_dump(by_alias=True)):
        if wanted and key.lower() != wanted and not key.lower().startswith(wanted + KEY_DELIMITER):
            continue
        source = next((name for name, data in sources if _supplies(data, key)), "default")
        shown = _display(value)
        if source == USER_SECRETS_SOURCE and not show_secrets:
            shown = MASK
        table.add_row(key, shown, source)
    return table


def build_secrets_table(values: dict[str, Any], *, show_values: bool = False) -> Table:
    table = Table(title="User secrets")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", style="white")
    for key in sorted(values, key=str.lower):
        table.add_row(key, _display(values[key]) if show_values else MASK)
    return table


def build_initialize_panel(result: InitializeResult) -> Panel:
    """Panel summarising an `init` run."""

    body = Text()
    body.append("Database: ", style="bold")
    body.append(result.database + "\n")
    if result.dropped:
        body.append("Dropped existing database\n", style="yellow")
    body.append("Created\n" if result.created else "Already existed\n")
    body.append(f"\nApplied scripts: {len(result.applied)}\n", style="bold")
    for name in result.applied:
        body.append(f"- {name}\n", style="green")
    if result.skipped:
        body.append(f"Skipped (already applied): {len(result.skipped)}\n", style="dim")

    return Panel(body, title=Text("init", style="bold green"), border_style="green")
