"""Archive database initialization.

This is the command behind the `init` verb. It is deliberately schema-agnostic:
the tables come from the `*.sql` scripts in `Database:ScriptsPath`, applied
once each, in file-name order, and tracked in `schema_history`. A script and
its history row commit together or not at all.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import closing
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from adapters.database import ArchiveDatabase
from core.config import AppSettings
from core.domain.options import InitializeOptions

logger = logging.getLogger(__name__)

HISTORY_TABLE = "schema_history"

_CREATE_HISTORY = f"""
CREATE TABLE IF NOT EXISTS {HISTORY_TABLE} (
    script TEXT PRIMARY KEY,
    applied_at TEXT NOT NULL
)
"""


class InitializeError(Exception):
    """The database could not be created or a schema script failed."""


@dataclass
class InitializeResult:
    """Summary of an `init` run."""

    database: str
    dropped: bool = False
    created: bool = False
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)


class InitializeCommand:
    """Create (optionally drop first) the archive database and apply scripts."""

    def __init__(self, settings: AppSettings, *, base_path: Path | None = None) -> None:
        self.settings = settings
        self.base_path = base_path

    @property
    def scripts_dir(self) -> Path:
        path = Path(self.settings.database.scripts_path)
        if not path.is_absolute() and self.base_path is not None:
            path = self.base_path / path
        return path

    def list_scripts(self) -> list[Path]:
        directory = self.scripts_dir
        if not directory.is_dir():
            logger.warning("Schema scripts directory %s does not exist; nothing to apply", directory)
            return []
        return sorted((p for p in directory.glob("*.sql") if p.is_file()), key=lambda p: p.name)

    async def invoke(self, options: InitializeOptions) -> InitializeResult:
        # sqlite3 is blocking; keep the event loop free.
        return await asyncio.to_thread(self._run, options)

    def _run(self, options: InitializeOptions) -> InitializeResult:
        database = ArchiveDatabase.from_connection_string(
            self.settings.connection_strings.archive,
            base_path=self.base_path,
        )
        result = InitializeResult(database=database.display_name)

        if options.drop_database:
            result.dropped = database.drop()
            if result.dropped:
                logger.info("Dropped database %s", database.display_name)

        result.created = not database.exists()
        if result.created:
            logger.info("Creating database %s (environment: %s)", database.display_name, options.environment)

        try:
            with closing(database.connect()) as conn:
                with conn:
                    conn.execute(_CREATE_HISTORY)
                already = {row[0] for row in conn.execute(f"SELECT script FROM {HISTORY_TABLE}")}

                for script in self.list_scripts():
                    if script.name in already:
                        logger.debug("Skipping %s (already applied)", script.name)
                        result.skipped.append(script.name)
                        continue

                    logger.info("Applying %s", script.name)
                    self._apply(conn, script)
                    result.applied.append(script.name)
        except sqlite3.Error as exc:
            raise InitializeError(f"Database {database.display_name}: {exc}") from exc

        return result

    def _apply(self, conn: sqlite3.Connection, script: Path) -> None:
        """Run one script and record it in a single transaction."""

        text = script.read_text(encoding="utf-8")
        try:
            # executescript commits a pending transaction first but does not end ours.
            conn.executescript(f"BEGIN;\n{text}\n")
            conn.execute(
                f"INSERT INTO {HISTORY_TABLE} (script, applied_at) VALUES (?, ?)",
                (script.name, datetime.now(timezone.utc).isoformat(timespec="seconds")),
            )
            conn.commit()
        except sqlite3.Error as exc:
            if conn.in_transaction:
                conn.rollback()
            raise InitializeError(f"Schema script {script.name} failed: {exc}") from exc
