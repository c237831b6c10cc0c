"""Application settings.

Why pydantic-settings:
- Typing + validation at the edge; the layered sources (JSON files,
  environment variables, command line, user secrets) are plugged in through
  `settings_customise_sources`.
- A single settings contract for the CLI, the initialize command and the web
  host.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from importlib.metadata import PackageNotFoundError, version
from typing import Any
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_pascal
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict, SettingsError

from core.hosting.configuration import (
    ENV_NESTED_DELIMITER,
    ConfigurationError,
    ConfigurationLayout,
    layered_sources,
)

APP_NAME = "archive-site-backend"

# Logging:LogLevel names -> stdlib levels. "None" disables the category.
LOG_LEVELS: dict[str, int] = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "information": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "none": logging.CRITICAL + 10,
}

_DEFAULT_PORTS = {"http": 80, "https": 443}


def get_version() -> str:
    try:
        return version(APP_NAME)
    except PackageNotFoundError:
        return "0.0.0"


def python_log_level(name: str) -> int:
    try:
        return LOG_LEVELS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown log level '{name}' (expected one of: {', '.join(LOG_LEVELS)})") from None


class _Section(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, extra="ignore")


class ConnectionStrings(_Section):
    archive: str = Field(
        default="sqlite:///archive.db",
        min_length=1,
        description="Archive database connection string (sqlite:///<path>).",
    )


class DatabaseSettings(_Section):
    scripts_path: str = Field(
        default="sql",
        min_length=1,
        description="Directory of *.sql schema scripts, relative to the configuration base path.",
    )


class LoggingSettings(_Section):
    log_level: dict[str, str] = Field(
        default_factory=lambda: {"Default": "Information"},
        description="Minimum level per logger category; 'Default' applies to the root logger.",
    )

    @field_validator("log_level")
    @classmethod
    def _check_levels(cls, value: dict[str, str]) -> dict[str, str]:
        # Higher layers are merged in last; keep their entry when only the case differs.
        levels: dict[str, str] = {}
        for category, name in value.items():
            python_log_level(name)
            for existing in [key for key in levels if key.lower() == category.lower()]:
                del levels[existing]
            levels[category] = name
        return levels

    def default_level(self) -> int:
        for category, name in self.log_level.items():
            if category.lower() == "default":
                return python_log_level(name)
        return logging.INFO


class AppSettings(BaseSettings):
    """Central application settings.

    `load(layout)` binds the full layered stack. Constructing `AppSettings`
    directly only applies keyword arguments over the defaults.
    """

    model_config = SettingsConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter=ENV_NESTED_DELIMITER,
    )

    connection_strings: ConnectionStrings = Field(default_factory=ConnectionStrings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    urls: str = Field(
        default="http://localhost:5000",
        min_length=1,
        description="Semicolon-separated listen URLs; the first one is bound.",
    )
    allowed_origins: list[str] = Field(
        default_factory=list,
        description="CORS origins allowed to call the API.",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        layout = _layout.get()
        if layout is None:
            return (init_settings,)
        return (init_settings, *(source for _name, source in layered_sources(settings_cls, layout)))

    @classmethod
    def load(cls, layout: ConfigurationLayout) -> "AppSettings":
        """Bind the settings from every layer described by `layout`."""

        token = _layout.set(layout)
        try:
            return cls()
        except SettingsError as exc:
            raise ConfigurationError(str(exc)) from exc
        finally:
            _layout.reset(token)

    @classmethod
    def source_values(cls, layout: ConfigurationLayout) -> list[tuple[str, dict[str, Any]]]:
        """What each layer supplies, highest priority first."""

        try:
            return [(name, source()) for name, source in layered_sources(cls, layout)]
        except SettingsError as exc:
            raise ConfigurationError(str(exc)) from exc

    def bind_address(self) -> tuple[str, int]:
        """Host and port of the first URL in `Urls`."""

        first = self.urls.split(";")[0].strip()
        parts = urlsplit(first if "://" in first else f"http://{first}")
        host = parts.hostname or "localhost"
        if host in ("*", "+"):
            host = "0.0.0.0"
        port = parts.port or _DEFAULT_PORTS.get(parts.scheme, 80)
        return host, port


# Layout of the `load` call in progress.
_layout: ContextVar[ConfigurationLayout | None] = ContextVar("configuration_layout", default=None)
