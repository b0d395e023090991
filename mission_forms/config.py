"""Configuration utilities for the Mission Forms service.

This module loads application configuration with the following rules:
- Primary source: `mission_forms_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("mission_forms_config.json")
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class FormsConfig(BaseModel):
    name_max_length: int = Field(default=32, gt=0)


class ReplicationConfig(BaseModel):
    # upper bound on "Name 2", "Name 3", ... candidates tried per name
    max_suffix_attempts: int = Field(default=1000, gt=1)


class LocalesConfig(BaseModel):
    default: str = Field(default="en")

    @field_validator("default")
    @classmethod
    def locale_must_be_short_code(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if not v or len(v) > 8:
            raise ValueError("locales.default must be a short locale code")
        return v


class AppConfig(BaseModel):
    database: DatabaseConfig
    forms: FormsConfig = FormsConfig()
    replication: ReplicationConfig = ReplicationConfig()
    locales: LocalesConfig = LocalesConfig()


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) mission_forms_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )
    name_max_text = _env("FORM_NAME_MAX_LENGTH") or _read_config_file("forms.name_max_length") or _base("forms.name_max_length", "32")
    attempts_text = (
        _env("REPLICATION_MAX_SUFFIX_ATTEMPTS")
        or _read_config_file("replication.max_suffix_attempts")
        or _base("replication.max_suffix_attempts", "1000")
    )
    locale = _env("DEFAULT_LOCALE") or _read_config_file("locales.default") or _base("locales.default", "en")

    try:
        return AppConfig(
            database=DatabaseConfig(dsn=dsn),
            forms=FormsConfig(name_max_length=int(str(name_max_text).strip())),
            replication=ReplicationConfig(max_suffix_attempts=int(str(attempts_text).strip())),
            locales=LocalesConfig(default=str(locale)),
        )
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


_CONFIG: AppConfig | None = None


def get_config() -> AppConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config()
    return _CONFIG


def reset_config() -> None:
    """Drop the cached configuration so the next ``get_config`` reloads it."""
    global _CONFIG
    _CONFIG = None


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "FormsConfig",
    "ReplicationConfig",
    "LocalesConfig",
    "load_config",
    "get_config",
    "reset_config",
]
