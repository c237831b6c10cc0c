"""Hosting environment resolution.

Answers three startup questions before any configuration is read:
- which environment this process runs as,
- where the `appsettings*.json` files live,
- whether to hold until a debugger attaches.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Callable, Mapping
from pathlib import Path

from core.domain.options import CommonOptions

logger = logging.getLogger(__name__)

DEVELOPMENT = "Development"
STAGING = "Staging"
PRODUCTION = "Production"

ENVIRONMENT_VARIABLE = "ASPNETCORE_ENVIRONMENT"

# src/core/hosting -> src/core -> src -> <project_root>
CONFIG_PARENT_LEVELS = 3

DEBUGGER_POLL_SECONDS = 0.1


def is_windows(platform: str | None = None) -> bool:
    return (platform or sys.platform).startswith("win")


def application_base_directory() -> Path:
    """Directory of the running application.

    In a frozen build (PyInstaller) this is the executable's directory;
    otherwise it is the directory of this package.
    """

    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parent


def get_absolute(path: str | None) -> Path | None:
    """Absolute, normalised path (symlinks are not resolved); None when blank."""

    if path is None or not path.strip():
        return None
    return Path(os.path.abspath(path))


def get_parent(path: str | Path, ancestor: int, *, platform: str | None = None) -> Path:
    """Walk `ancestor` directories up from `path`.

    On Windows the path is returned unchanged. This mirrors the historical
    behaviour for Windows developers and is known to be inconsistent with the
    other platforms; it is kept as-is until the deployment layout is settled.
    """

    if is_windows(platform):
        logger.debug("Windows platform: using %s as configuration base path without walk-up", path)
        return Path(path)

    current = os.path.abspath(path)
    for _ in range(ancestor):
        current = os.path.dirname(current)
    return Path(current)


def resolve_config_base_path(
    options: CommonOptions | None,
    *,
    base_directory: Path | None = None,
    platform: str | None = None,
) -> Path:
    explicit = get_absolute(options.config_path if options else None)
    if explicit is not None:
        return explicit
    return get_parent(base_directory or application_base_directory(), CONFIG_PARENT_LEVELS, platform=platform)


def resolve_environment(options: CommonOptions | None, environ: Mapping[str, str] | None = None) -> str:
    """Explicit option, then `ASPNETCORE_ENVIRONMENT`, then Development."""

    environ = os.environ if environ is None else environ
    explicit = (options.environment if options else None) or ""
    if explicit.strip():
        return explicit.strip()
    from_env = (environ.get(ENVIRONMENT_VARIABLE) or "").strip()
    return from_env or DEVELOPMENT


def debugger_attached() -> bool:
    return sys.gettrace() is not None


def wait_for_debugger(
    *,
    is_attached: Callable[[], bool] = debugger_attached,
    sleep: Callable[[float], None] = time.sleep,
    interval: float = DEBUGGER_POLL_SECONDS,
) -> None:
    """Block until a debugger is attached (busy poll)."""

    if is_attached():
        return
    logger.warning("Waiting for a debugger to attach (pid %s)...", os.getpid())
    while not is_attached():
        sleep(interval)
    logger.info("Debugger attached")
