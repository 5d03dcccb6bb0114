"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from docslug.core.options import DEFAULT_MAX_LENGTH


CONFIG_FILE = "config.yaml"


class Settings(BaseModel):
    app_name:   str = "docslug"
    db_url:     str = "sqlite:///docslug.db"
    echo_sql:   bool = Field(default=False, description="Log every SQL statement the engine emits")
    log_level:  str = Field(default="info", pattern="^(critical|error|warning|info|debug)$", description="Root log level")
    max_length: int = Field(default=DEFAULT_MAX_LENGTH, ge=1, description="Slug length cap used by the slugify preview")


def _read_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid {path.name}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid {path.name}: expected a mapping of settings")
    unknown = set(data) - set(Settings.model_fields)
    if unknown:
        raise ValueError(f"Invalid {path.name}: unknown setting(s) {', '.join(sorted(unknown))}")
    return data


def load_config(overrides: dict[str, Any] = None, path: str | Path = None) -> Settings:
    """Layer settings: config file, then DOCSLUG_<FIELD> env vars, then non-None CLI overrides.

    The config file defaults to ./config.yaml, or DOCSLUG_CONFIG when set.
    """
    path = Path(path or os.getenv("DOCSLUG_CONFIG") or CONFIG_FILE)
    data = _read_file(path)

    env = {name: os.environ[key] for name in Settings.model_fields if (key := f"DOCSLUG_{name.upper()}") in os.environ}
    data.update({k: v for k, v in env.items() if v != ""})

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
