from pathlib import Path

import pytest
from pydantic import ValidationError

from rememberer.application.config import AppConfig, resolve_config


def _write_toml(home: Path, body: str) -> Path:
    config_dir = home / ".config" / "rememberer"
    config_dir.mkdir(parents=True)
    path = config_dir / "config.toml"
    path.write_text(body)
    return path


def test_defaults(mock_home):
    config = resolve_config()

    assert config.backend == "json"
    assert config.host == "127.0.0.1"
    assert config.port == 8778
    assert config.data_file.name == "data.json"


def test_toml_file_is_read(mock_home):
    _write_toml(mock_home, 'backend = "memory"\nport = 9000\n')

    config = resolve_config()

    assert config.backend == "memory"
    assert config.port == 9000


def test_env_overrides_toml(mock_home, monkeypatch):
    _write_toml(mock_home, "port = 9000\n")
    monkeypatch.setenv("REMEMBERER_PORT", "9100")

    assert resolve_config().port == 9100


def test_cli_overrides_env(mock_home, monkeypatch):
    monkeypatch.setenv("REMEMBERER_BACKEND", "memory")

    config = resolve_config({"backend": "json", "port": None})

    assert config.backend == "json"
    assert config.port == 8778


def test_data_file_expands_user(mock_home):
    config = resolve_config({"data_file": "~/study.json"})

    assert config.data_file == mock_home / "study.json"


def test_unknown_backend_rejected(mock_home):
    with pytest.raises(ValidationError):
        AppConfig(backend="sqlite")
