"""Logging setup (stdlib logging + Rich).

Why here:
- Levels come from `Logging:LogLevel` in the layered configuration, so the
  setup needs `AppSettings` and can't live in the CLI alone.
- Log records go to stderr; stdout stays free for command output.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

from core.config import AppSettings, python_log_level

_HANDLER_NAME = "archive-site-rich"


def configure_logging(settings: AppSettings | None = None, *, debug: bool = False) -> None:
    """Install a single Rich handler on the root logger and apply category levels."""

    settings = settings or AppSettings()
    root = logging.getLogger()

    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root.addHandler(handler)

    root.setLevel(logging.DEBUG if debug else settings.logging.default_level())
    for category, name in settings.logging.log_level.items():
        if category.lower() == "default":
            continue
        logging.getLogger(category).setLevel(python_log_level(name))
