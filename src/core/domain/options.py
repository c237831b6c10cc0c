"""Verb option records.

Why pydantic here:
- The CLI layer only parses flags; these models are the typed contract that
  the configuration builder and the commands receive.
- They are built once per process and never persisted.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CommonOptions(BaseModel):
    """Options shared by every verb."""

    config_path: str | None = Field(
        default=None,
        description="Directory holding appsettings.json (defaults to the application root).",
    )
    environment: str | None = Field(
        default=None,
        description="Environment name (Development, Staging, Production, ...).",
    )
    debug: bool = Field(
        default=False,
        description="Wait for a debugger to attach before doing anything else.",
    )


class InitializeOptions(CommonOptions):
    """Options of the `init` verb."""

    drop_database: bool = Field(
        default=False,
        description="Drop and recreate the database if it already exists.",
    )


class HostOptions(CommonOptions):
    """Options of the `host` verb."""
