import logging

import pytest

from core.domain.options import CommonOptions
from core.hosting.bootstrap import build_configuration, load_settings
from core.hosting.configuration import ConfigurationFileNotFoundError
from core.hosting.user_secrets import get_user_secrets_file, set_user_secret


def test_layers_base_and_environment_files(settings_dir):
    options = CommonOptions(config_path=str(settings_dir), environment="Production")
    layout, settings = load_settings([], options)

    assert layout.environment == "Production"
    assert layout.base_path == settings_dir
    assert layout.secrets_file is None
    assert settings.urls == "http://*:8080"
    assert settings.connection_strings.archive == "sqlite:///data/archive.db"
    assert settings.logging.default_level() == logging.ERROR


def test_environment_comes_from_variable(settings_dir, monkeypatch):
    monkeypatch.setenv("ASPNETCORE_ENVIRONMENT", "Production")
    layout, settings = load_settings([], CommonOptions(config_path=str(settings_dir)))

    assert layout.environment == "Production"
    assert layout.environment_file == settings_dir / "appsettings.Production.json"
    assert settings.urls == "http://*:8080"


def test_precedence_json_env_command_line(settings_dir, monkeypatch):
    monkeypatch.setenv("Urls", "http://env:1")
    monkeypatch.setenv("ConnectionStrings__Archive", "sqlite:///env.db")
    options = CommonOptions(config_path=str(settings_dir), environment="Production")

    _layout, settings = load_settings(["--Urls=http://cli:2"], options)

    assert settings.connection_strings.archive == "sqlite:///env.db"
    assert settings.urls == "http://cli:2"


@pytest.mark.parametrize("missing", ["appsettings.json", "appsettings.Production.json"])
def test_missing_required_file_is_fatal(settings_dir, missing):
    (settings_dir / missing).unlink()
    options = CommonOptions(config_path=str(settings_dir), environment="Production")

    with pytest.raises(ConfigurationFileNotFoundError) as excinfo:
        build_configuration([], options)
    assert excinfo.value.path == settings_dir / missing


def test_unknown_environment_file_is_fatal(settings_dir):
    options = CommonOptions(config_path=str(settings_dir), environment="Staging")
    with pytest.raises(ConfigurationFileNotFoundError) as excinfo:
        build_configuration([], options)
    assert excinfo.value.path.name == "appsettings.Staging.json"


def test_user_secrets_layered_last_in_development(settings_dir):
    set_user_secret("Urls", "http://secret:1", get_user_secrets_file())
    options = CommonOptions(config_path=str(settings_dir))

    layout, settings = load_settings(["--Urls=http://cli:2"], options)

    assert layout.environment == "Development"
    assert layout.secrets_file == get_user_secrets_file()
    assert settings.urls == "http://secret:1"
    assert settings.allowed_origins == ["http://localhost:3000"]


def test_user_secrets_ignored_outside_development(settings_dir):
    set_user_secret("Urls", "http://secret:1", get_user_secrets_file())
    options = CommonOptions(config_path=str(settings_dir), environment="Production")

    _layout, settings = load_settings([], options)

    assert settings.urls == "http://*:8080"


def test_explicit_secrets_path(settings_dir, tmp_path):
    secrets = tmp_path / "custom" / "secrets.json"
    set_user_secret("ConnectionStrings:Archive", "sqlite:///:memory:", secrets)
    options = CommonOptions(config_path=str(settings_dir))

    _layout, settings = load_settings([], options, secrets_path=secrets)

    assert settings.connection_strings.archive == "sqlite:///:memory:"
