"""Configuration assembly for every verb.

Order (later overrides earlier):
1) appsettings.json (required)
2) appsettings.<environment>.json (required)
3) environment variables
4) command-line arguments
5) user secrets (Development only)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from core.config import AppSettings
from core.domain.options import CommonOptions
from core.hosting.configuration import ConfigurationFileNotFoundError, ConfigurationLayout
from core.hosting.environment import DEVELOPMENT, resolve_config_base_path, resolve_environment
from core.hosting.user_secrets import USER_SECRETS_ID, get_user_secrets_file

logger = logging.getLogger(__name__)

BASE_SETTINGS_FILE = "appsettings.json"


def environment_settings_file(environment: str) -> str:
    return f"appsettings.{environment}.json"


def build_configuration(
    args: Sequence[str],
    options: CommonOptions | None,
    *,
    base_directory: Path | None = None,
    platform: str | None = None,
    secrets_path: Path | None = None,
) -> ConfigurationLayout:
    """Resolve base path and environment, and check the required files exist."""

    base_path = resolve_config_base_path(options, base_directory=base_directory, platform=platform)
    environment = resolve_environment(options)
    logger.debug("Configuration base path: %s (environment: %s)", base_path, environment)

    layout = ConfigurationLayout(
        base_path=base_path,
        environment=environment,
        base_file=base_path / BASE_SETTINGS_FILE,
        environment_file=base_path / environment_settings_file(environment),
        args=list(args),
    )
    for required in (layout.base_file, layout.environment_file):
        if not required.is_file():
            raise ConfigurationFileNotFoundError(required)

    if environment == DEVELOPMENT:
        layout.secrets_file = secrets_path or get_user_secrets_file(USER_SECRETS_ID)
    return layout


def load_settings(
    args: Sequence[str],
    options: CommonOptions | None,
    **kwargs,
) -> tuple[ConfigurationLayout, AppSettings]:
    """`build_configuration`, then bind `AppSettings` from every layer."""

    layout = build_configuration(args, options, **kwargs)
    return layout, AppSettings.load(layout)
