from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader for the questionnaire import CLI.

Responsibilities:
- Load YAML config (``config/import.yml`` by default)
- Validate against the bundled JSON schema (``config_schema.json``)
- Apply defaults (sink=api, timeout 30s, merge + shared column on)
- Overlay environment variables (PROJECTS_API_URL, PROJECTS_API_TOKEN, IMPORT_SINK)

A missing config file is not an error: ``load_config(..., required=False)``
returns the defaults. Database environment variables are resolved later, at
connect time (see ``db.connection``).
"""

__all__ = [
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "ApiConfig",
    "DatabaseConfig",
    "DefaultsConfig",
    "ImportConfig",
    "load_config",
    "apply_env_overrides",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_TIMEOUT_SECONDS = 30.0


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ApiConfig:
    base_url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    token: str | None = None


@dataclass(frozen=True)
class DatabaseConfig:
    """Fallback connection settings; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class DefaultsConfig:
    merge_all_tabs: bool = True
    use_same_column_for_all: bool = True
    owner_id: str | None = None
    owner_name: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    sink: str = "api"  # api / database / dry-run
    api: ApiConfig = field(default_factory=ApiConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or data fails validation
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def apply_env_overrides(cfg: ImportConfig) -> ImportConfig:
    """Environment wins over the file for the API endpoint, token and sink."""
    api = cfg.api
    if os.getenv("PROJECTS_API_URL"):
        api = replace(api, base_url=os.environ["PROJECTS_API_URL"])
    if os.getenv("PROJECTS_API_TOKEN"):
        api = replace(api, token=os.environ["PROJECTS_API_TOKEN"])
    sink = os.getenv("IMPORT_SINK") or cfg.sink
    if sink not in ("api", "database", "dry-run"):
        raise ConfigError(f"invalid IMPORT_SINK: {sink}")
    return replace(cfg, api=api, sink=sink)


def load_config(path: Path = DEFAULT_CONFIG_PATH, required: bool = True) -> ImportConfig:
    if not path.exists():
        if required:
            raise ConfigError(f"config file not found: {path}")
        return apply_env_overrides(ImportConfig())
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    api_raw = data.get("api") or {}
    db_raw = data.get("database") or {}
    defaults_raw = data.get("defaults") or {}
    cfg = ImportConfig(
        sink=data.get("sink", "api"),
        api=ApiConfig(
            base_url=api_raw.get("base_url", DEFAULT_API_URL),
            timeout_seconds=float(api_raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            token=api_raw.get("token"),
        ),
        database=DatabaseConfig(
            host=db_raw.get("host"),
            port=db_raw.get("port"),
            user=db_raw.get("user"),
            password=db_raw.get("password"),
            database=db_raw.get("database"),
            dsn=db_raw.get("dsn"),
        ),
        defaults=DefaultsConfig(
            merge_all_tabs=defaults_raw.get("merge_all_tabs", True),
            use_same_column_for_all=defaults_raw.get("use_same_column_for_all", True),
            owner_id=defaults_raw.get("owner_id"),
            owner_name=defaults_raw.get("owner_name"),
        ),
    )
    return apply_env_overrides(cfg)
