import asyncio
import sqlite3
from contextlib import closing

import pytest

from adapters.database import ArchiveDatabase, UnsupportedConnectionStringError
from core.config import AppSettings, ConnectionStrings, DatabaseSettings
from core.domain.options import InitializeOptions
from core.hosting.configuration import ConfigurationError
from core.interfaces.command import Command
from core.services.initialize import HISTORY_TABLE, InitializeCommand, InitializeError


def _command(settings_dir, connection="sqlite:///data/archive.db"):
    settings = AppSettings(
        connection_strings=ConnectionStrings(archive=connection),
        database=DatabaseSettings(scripts_path="sql"),
    )
    return InitializeCommand(settings, base_path=settings_dir)


def _tables(path):
    with closing(sqlite3.connect(path)) as conn:
        return {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}


def test_is_a_command(settings_dir):
    assert isinstance(_command(settings_dir), Command)


def test_creates_database_and_applies_scripts(settings_dir):
    result = asyncio.run(_command(settings_dir).invoke(InitializeOptions()))

    db = settings_dir / "data" / "archive.db"
    assert result.database == str(db)
    assert result.created is True
    assert result.dropped is False
    assert result.applied == ["0001_items.sql", "0002_tags.sql"]
    assert {"items", "tags", "schema_history"} <= _tables(db)


def test_second_run_skips_applied_scripts(settings_dir):
    command = _command(settings_dir)
    asyncio.run(command.invoke(InitializeOptions()))

    result = asyncio.run(command.invoke(InitializeOptions()))

    assert result.created is False
    assert result.applied == []
    assert result.skipped == ["0001_items.sql", "0002_tags.sql"]


def test_new_script_is_applied_on_next_run(settings_dir):
    command = _command(settings_dir)
    asyncio.run(command.invoke(InitializeOptions()))
    (settings_dir / "sql" / "0003_notes.sql").write_text("CREATE TABLE notes (id INTEGER);", encoding="utf-8")

    result = asyncio.run(command.invoke(InitializeOptions()))

    assert result.applied == ["0003_notes.sql"]


def test_drop_recreates_database(settings_dir):
    command = _command(settings_dir)
    asyncio.run(command.invoke(InitializeOptions()))
    db = settings_dir / "data" / "archive.db"
    with closing(sqlite3.connect(db)) as conn, conn:
        conn.execute("INSERT INTO items (title) VALUES ('kept?')")

    result = asyncio.run(command.invoke(InitializeOptions(drop_database=True)))

    assert result.dropped is True
    assert result.created is True
    assert result.applied == ["0001_items.sql", "0002_tags.sql"]
    with closing(sqlite3.connect(db)) as conn:
        assert conn.execute("SELECT COUNT(*) FROM items").fetchone()[0] == 0


def test_drop_without_existing_database(settings_dir):
    result = asyncio.run(_command(settings_dir).invoke(InitializeOptions(drop_database=True)))
    assert result.dropped is False
    assert result.created is True


def test_missing_scripts_directory(settings_dir):
    settings = AppSettings(
        connection_strings=ConnectionStrings(archive="sqlite:///data/archive.db"),
        database=DatabaseSettings(scripts_path="missing"),
    )
    result = asyncio.run(InitializeCommand(settings, base_path=settings_dir).invoke(InitializeOptions()))
    assert result.applied == []
    assert "schema_history" in _tables(settings_dir / "data" / "archive.db")


def test_in_memory_database(settings_dir):
    result = asyncio.run(_command(settings_dir, "sqlite:///:memory:").invoke(InitializeOptions()))
    assert result.database == ":memory:"
    assert result.applied == ["0001_items.sql", "0002_tags.sql"]


@pytest.mark.parametrize("connection", ["postgres://db/archive", "sqlite:///", "archive.db"])
def test_unsupported_connection_string(connection):
    with pytest.raises(UnsupportedConnectionStringError):
        ArchiveDatabase.from_connection_string(connection)


def test_unsupported_connection_string_is_a_configuration_error(settings_dir):
    with pytest.raises(ConfigurationError):
        asyncio.run(_command(settings_dir, "mysql://x").invoke(InitializeOptions()))


def _history(path):
    with closing(sqlite3.connect(path)) as conn:
        return [row[0] for row in conn.execute(f"SELECT script FROM {HISTORY_TABLE} ORDER BY script")]


def test_failing_script_is_rolled_back_and_not_recorded(settings_dir):
    (settings_dir / "sql" / "0003_bad.sql").write_text(
        "CREATE TABLE ok1 (id INTEGER);\nTHIS IS NOT SQL;\n", encoding="utf-8"
    )
    command = _command(settings_dir)
    db = settings_dir / "data" / "archive.db"

    with pytest.raises(InitializeError, match="0003_bad.sql") as first:
        asyncio.run(command.invoke(InitializeOptions()))

    assert "ok1" not in _tables(db)
    assert {"items", "tags"} <= _tables(db)
    assert _history(db) == ["0001_items.sql", "0002_tags.sql"]

    with pytest.raises(InitializeError) as second:
        asyncio.run(command.invoke(InitializeOptions()))
    assert str(second.value) == str(first.value)
    assert "already exists" not in str(second.value)


def test_fixed_script_applies_after_failure(settings_dir):
    bad = settings_dir / "sql" / "0003_bad.sql"
    bad.write_text("CREATE TABLE ok1 (id INTEGER);\nTHIS IS NOT SQL;\n", encoding="utf-8")
    command = _command(settings_dir)
    with pytest.raises(InitializeError):
        asyncio.run(command.invoke(InitializeOptions()))

    bad.write_text("CREATE TABLE ok1 (id INTEGER);\n", encoding="utf-8")
    result = asyncio.run(command.invoke(InitializeOptions()))

    assert result.applied == ["0003_bad.sql"]
    assert "ok1" in _tables(settings_dir / "data" / "archive.db")


def test_drop_in_memory_database_is_a_no_op():
    assert ArchiveDatabase(None).drop() is False


def test_drop_missing_file(tmp_path):
    assert ArchiveDatabase(tmp_path / "absent.db").drop() is False
