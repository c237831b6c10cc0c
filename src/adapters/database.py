"""SQLite access for the archive database.

Why in adapters:
- The file location and the driver are infrastructure details; the Core only
  sees a connection string from `AppSettings`.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from core.hosting.configuration import ConfigurationError

SQLITE_PREFIX = "sqlite:///"
MEMORY = ":memory:"


class UnsupportedConnectionStringError(ConfigurationError):
    def __init__(self, connection_string: str) -> None:
        super().__init__(
            f"Unsupported connection string '{connection_string}' (expected '{SQLITE_PREFIX}<path>')."
        )


class ArchiveDatabase:
    """A SQLite database file (or an in-memory database when `path` is None)."""

    def __init__(self, path: Path | None) -> None:
        self.path = path

    @classmethod
    def from_connection_string(cls, connection_string: str, *, base_path: Path | None = None) -> "ArchiveDatabase":
        value = connection_string.strip()
        if not value.lower().startswith(SQLITE_PREFIX):
            raise UnsupportedConnectionStringError(connection_string)

        location = value[len(SQLITE_PREFIX):]
        if not location:
            raise UnsupportedConnectionStringError(connection_string)
        if location == MEMORY:
            return cls(None)

        path = Path(location)
        if not path.is_absolute() and base_path is not None:
            path = base_path / path
        return cls(path)

    @property
    def display_name(self) -> str:
        return MEMORY if self.path is None else str(self.path)

    def exists(self) -> bool:
        return self.path is not None and self.path.is_file()

    def drop(self) -> bool:
        """Delete the database file. Returns True when something was deleted."""

        path = self.path
        if path is None or not path.is_file():
            return False
        path.unlink()
        for suffix in ("-wal", "-shm", "-journal"):
            path.with_name(path.name + suffix).unlink(missing_ok=True)
        return True

    def connect(self) -> sqlite3.Connection:
        if self.path is None:
            return sqlite3.connect(MEMORY)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.path)
