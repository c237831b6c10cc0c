from __future__ import annotations

import json
import os
from pathlib import Path

import pytest


def write_json(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


_SETTINGS_VARIABLES = ("connectionstrings", "database", "logging", "urls", "allowedorigins")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    # Keep the real user secrets store and environment name out of the tests.
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("APPDATA", str(home))
    monkeypatch.delenv("ASPNETCORE_ENVIRONMENT", raising=False)
    for name in list(os.environ):
        if name.lower().split("__")[0] in _SETTINGS_VARIABLES:
            monkeypatch.delenv(name)
    return home


@pytest.fixture
def settings_dir(tmp_path):
    root = tmp_path / "app"
    write_json(
        root / "appsettings.json",
        {
            "Logging": {"LogLevel": {"Default": "Warning"}},
            "ConnectionStrings": {"Archive": "sqlite:///data/archive.db"},
            "Database": {"ScriptsPath": "sql"},
            "Urls": "http://localhost:5000",
            "AllowedOrigins": [],
        },
    )
    write_json(
        root / "appsettings.Development.json",
        {"Urls": "http://localhost:5001", "AllowedOrigins": ["http://localhost:3000"]},
    )
    write_json(
        root / "appsettings.Production.json",
        {"Urls": "http://*:8080", "Logging": {"LogLevel": {"Default": "Error"}}},
    )

    sql = root / "sql"
    sql.mkdir()
    (sql / "0001_items.sql").write_text("CREATE TABLE items (id INTEGER PRIMARY KEY, title TEXT);\n", encoding="utf-8")
    (sql / "0002_tags.sql").write_text("CREATE TABLE tags (id INTEGER PRIMARY KEY, name TEXT);\n", encoding="utf-8")
    return root
