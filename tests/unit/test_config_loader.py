from __future__ import annotations

from pathlib import Path

import pytest

from questionnaire_import.config.loader import (
    DEFAULT_API_URL,
    ConfigError,
    ImportConfig,
    apply_env_overrides,
    load_config,
)

FULL_CONFIG = """sink: database
api:
  base_url: https://app.example.com
  timeout_seconds: 12.5
  token: abc
database:
  host: db.local
  port: 5433
  user: importer
  password: secret
  database: questionnaires
defaults:
  merge_all_tabs: false
  use_same_column_for_all: false
  owner_id: u-1
  owner_name: Ana
"""


def _write(temp_workdir: Path, text: str) -> Path:
    p = temp_workdir / "config" / "import.yml"
    p.write_text(text, encoding="utf-8")
    return p


def test_load_full_config(temp_workdir: Path):
    cfg = load_config(_write(temp_workdir, FULL_CONFIG))
    assert cfg.sink == "database"
    assert cfg.api.base_url == "https://app.example.com"
    assert cfg.api.timeout_seconds == 12.5
    assert cfg.api.token == "abc"
    assert cfg.database.port == 5433
    assert cfg.database.database == "questionnaires"
    assert cfg.defaults.merge_all_tabs is False
    assert cfg.defaults.use_same_column_for_all is False
    assert cfg.defaults.owner_name == "Ana"


def test_missing_optional_config_returns_defaults(temp_workdir: Path):
    cfg = load_config(temp_workdir / "config" / "absent.yml", required=False)
    assert cfg == ImportConfig()
    assert cfg.sink == "api"
    assert cfg.api.base_url == DEFAULT_API_URL
    assert cfg.defaults.merge_all_tabs is True


def test_missing_required_config(temp_workdir: Path):
    with pytest.raises(ConfigError, match="config file not found"):
        load_config(temp_workdir / "config" / "absent.yml")


def test_empty_file_is_defaults(temp_workdir: Path):
    assert load_config(_write(temp_workdir, "")) == ImportConfig()


def test_invalid_yaml(temp_workdir: Path):
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(_write(temp_workdir, "sink: [unclosed\n"))


@pytest.mark.parametrize(
    "text",
    [
        "sink: ftp\n",
        "unknown_key: 1\n",
        "api:\n  timeout_seconds: 0\n",
        "api:\n  retries: 3\n",
        "defaults:\n  merge_all_tabs: maybe\n",
        "- just\n- a list\n",
    ],
)
def test_schema_violations(temp_workdir: Path, text: str):
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(_write(temp_workdir, text))


def test_env_overrides(temp_workdir: Path, monkeypatch):
    monkeypatch.setenv("PROJECTS_API_URL", "http://override:3000")
    monkeypatch.setenv("PROJECTS_API_TOKEN", "env-token")
    monkeypatch.setenv("IMPORT_SINK", "dry-run")
    cfg = load_config(_write(temp_workdir, FULL_CONFIG))
    assert cfg.api.base_url == "http://override:3000"
    assert cfg.api.token == "env-token"
    assert cfg.sink == "dry-run"
    # 上書き対象外はファイルの値のまま
    assert cfg.api.timeout_seconds == 12.5


def test_env_invalid_sink(monkeypatch):
    monkeypatch.setenv("IMPORT_SINK", "s3")
    with pytest.raises(ConfigError, match="invalid IMPORT_SINK"):
        apply_env_overrides(ImportConfig())
