"""Developer secrets store.

Why outside the repo:
- Connection strings and keys used while developing stay in a per-user JSON
  file instead of `appsettings.Development.json`.
- Same on-disk layout as `dotnet user-secrets` (flat `Section:Key` names), so
  an existing store keeps working. It is layered in by
  `core.hosting.configuration.JsonFileSource`.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

from core.hosting.configuration import ConfigurationFormatError

USER_SECRETS_ID = "d72db2b5-597e-4bc0-a92d-a033bdf5ac7e"
SECRETS_FILE_NAME = "secrets.json"


def get_user_secrets_dir(secrets_id: str = USER_SECRETS_ID) -> Path:
    """Per-user secrets directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "Microsoft" / "UserSecrets" / secrets_id
    return Path.home() / ".microsoft" / "usersecrets" / secrets_id


def get_user_secrets_file(secrets_id: str = USER_SECRETS_ID) -> Path:
    return get_user_secrets_dir(secrets_id) / SECRETS_FILE_NAME


def read_user_secrets(path: Path | None = None) -> dict[str, Any]:
    """Content of the secrets file (empty when it does not exist)."""

    path = path or get_user_secrets_file()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8-sig") or "{}")
    except json.JSONDecodeError as exc:
        raise ConfigurationFormatError(path, str(exc)) from exc
    if not isinstance(data, dict):
        raise ConfigurationFormatError(path, "the top-level value must be a JSON object")
    return data


def _write(path: Path, values: dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {key: values[key] for key in sorted(values, key=str.lower)}
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return path


def _matching_key(values: dict[str, Any], key: str) -> str | None:
    for existing in values:
        if existing.lower() == key.lower():
            return existing
    return None


def set_user_secret(key: str, value: str, path: Path | None = None) -> Path:
    """Write/update one secret; keys are stored flat (`Section:Key`)."""

    path = path or get_user_secrets_file()
    values = read_user_secrets(path)
    existing = _matching_key(values, key)
    if existing is not None:
        del values[existing]
    values[key] = value
    return _write(path, values)


def remove_user_secret(key: str, path: Path | None = None) -> bool:
    path = path or get_user_secrets_file()
    values = read_user_secrets(path)
    existing = _matching_key(values, key)
    if existing is None:
        return False
    del values[existing]
    _write(path, values)
    return True


def clear_user_secrets(path: Path | None = None) -> Path:
    return _write(path or get_user_secrets_file(), {})
