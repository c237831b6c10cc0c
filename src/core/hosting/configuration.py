"""Layered configuration sources (pydantic-settings).

Why pydantic-settings sources:
- Each layer is a `PydanticBaseSettingsSource`. `AppSettings` stacks them in
  `settings_customise_sources` and pydantic-settings deep-merges the result
  before a single validation pass.
- Environment variables, command-line flags and JSON files use the library's
  own parsers (`EnvSettingsSource`, `CliSettingsSource`,
  `JsonConfigSettingsSource`).

Order (later overrides earlier):
1) appsettings.json (required)
2) appsettings.<environment>.json (required)
3) environment variables (`ConnectionStrings__Archive=...`)
4) command-line arguments (`--ConnectionStrings.Archive=...`)
5) user secrets (Development only)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic_settings import (
    BaseSettings,
    CliSettingsSource,
    EnvSettingsSource,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
)

KEY_DELIMITER = ":"
ENV_NESTED_DELIMITER = "__"
CLI_PROG_NAME = "archive-site"

USER_SECRETS_SOURCE = "user-secrets"
COMMAND_LINE_SOURCE = "command-line"
ENVIRONMENT_SOURCE = "environment"


class ConfigurationError(Exception):
    """Base error for configuration problems detected at startup."""


class ConfigurationFileNotFoundError(ConfigurationError):
    """A required JSON configuration file does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"The configuration file '{path}' was not found and is not optional.")
        self.path = path


class ConfigurationFormatError(ConfigurationError):
    """A JSON configuration file could not be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Could not parse the JSON configuration file '{path}': {reason}")
        self.path = path


@dataclass
class ConfigurationLayout:
    """Where every layer of one run's configuration comes from."""

    base_path: Path
    environment: str
    base_file: Path
    environment_file: Path
    args: list[str] = field(default_factory=list)
    # None outside Development.
    secrets_file: Path | None = None


class JsonFileSource(JsonConfigSettingsSource):
    """JSON layer; a missing file contributes nothing.

    Null values are dropped so they never hide a lower layer, and flat
    `Section:Key` names (the user secrets layout) become nested sections.
    """

    def __init__(self, settings_cls: type[BaseSettings], path: Path) -> None:
        self.path = path
        super().__init__(settings_cls, json_file=path, json_file_encoding="utf-8-sig")

    def _read_file(self, file_path: Path) -> dict[str, Any]:
        try:
            data = super()._read_file(file_path)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ConfigurationFormatError(file_path, str(exc)) from exc
        if not isinstance(data, dict):
            raise ConfigurationFormatError(file_path, "the top-level value must be a JSON object")
        return expand_sections(data)


def expand_sections(data: dict[str, Any]) -> dict[str, Any]:
    """Drop null values and turn `A:B` names into `{"A": {"B": ...}}`."""

    out: dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            value = expand_sections(value)

        *parents, leaf = str(key).split(KEY_DELIMITER)
        target = out
        for part in parents:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]
        if isinstance(value, dict) and isinstance(target.get(leaf), dict):
            target[leaf].update(value)
        else:
            target[leaf] = value
    return out


def layered_sources(
    settings_cls: type[BaseSettings],
    layout: ConfigurationLayout,
) -> list[tuple[str, PydanticBaseSettingsSource]]:
    """Named sources for `layout`, highest priority first."""

    sources: list[tuple[str, PydanticBaseSettingsSource]] = []
    if layout.secrets_file is not None:
        sources.append((USER_SECRETS_SOURCE, JsonFileSource(settings_cls, layout.secrets_file)))
    sources.append(
        (
            COMMAND_LINE_SOURCE,
            CliSettingsSource(
                settings_cls,
                cli_prog_name=CLI_PROG_NAME,
                cli_parse_args=list(layout.args),
                cli_ignore_unknown_args=True,
                cli_exit_on_error=False,
                case_sensitive=True,
            ),
        )
    )
    sources.append(
        (
            ENVIRONMENT_SOURCE,
            EnvSettingsSource(settings_cls, case_sensitive=False, env_nested_delimiter=ENV_NESTED_DELIMITER),
        )
    )
    sources.append((layout.environment_file.name, JsonFileSource(settings_cls, layout.environment_file)))
    sources.append((layout.base_file.name, JsonFileSource(settings_cls, layout.base_file)))
    return sources
