"""Configuration precedence and the SQL migrations runner."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import create_engine, inspect

from mission_forms import config as config_mod
from mission_forms.db.migrations_runner import apply_migrations
from mission_forms.logging_setup import LOG_LEVEL_ENV, logging_config


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.setattr(config_mod, "CONFIG_DIR", tmp_path / "config")
    monkeypatch.setattr(config_mod, "ROOT_CONFIG", tmp_path / "mission_forms_config.json")
    for key in (
        "TEST_DATABASE_URL",
        "DATABASE_URL",
        "FORM_NAME_MAX_LENGTH",
        "REPLICATION_MAX_SUFFIX_ATTEMPTS",
        "DEFAULT_LOCALE",
    ):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


def test_defaults_without_any_source(isolated_config) -> None:
    cfg = config_mod.load_config()
    assert cfg.database.dsn == "sqlite+pysqlite:///:memory:"
    assert cfg.forms.name_max_length == 32
    assert cfg.replication.max_suffix_attempts == 1000
    assert cfg.locales.default == "en"


def test_precedence_env_over_files_over_json(isolated_config, monkeypatch) -> None:
    (isolated_config / "mission_forms_config.json").write_text(
        json.dumps({"database": {"dsn": "sqlite:///json.db"}, "forms": {"name_max_length": 40}, "locales": {"default": "FR"}}),
        encoding="utf-8",
    )
    cfg = config_mod.load_config()
    assert cfg.database.dsn == "sqlite:///json.db"
    assert cfg.forms.name_max_length == 40
    assert cfg.locales.default == "fr"

    (isolated_config / "config").mkdir()
    (isolated_config / "config" / "database.url").write_text("sqlite:///file.db\n", encoding="utf-8")
    assert config_mod.load_config().database.dsn == "sqlite:///file.db"

    monkeypatch.setenv("DATABASE_URL", "sqlite:///env.db")
    monkeypatch.setenv("FORM_NAME_MAX_LENGTH", "12")
    cfg = config_mod.load_config()
    assert cfg.database.dsn == "sqlite:///env.db"
    assert cfg.forms.name_max_length == 12


def test_invalid_values_are_rejected(isolated_config, monkeypatch) -> None:
    monkeypatch.setenv("FORM_NAME_MAX_LENGTH", "0")
    with pytest.raises(PydanticValidationError):
        config_mod.load_config()
    monkeypatch.setenv("FORM_NAME_MAX_LENGTH", "ten")
    with pytest.raises(ValueError):
        config_mod.load_config()


def test_get_config_is_cached_until_reset(monkeypatch) -> None:
    first = config_mod.get_config()
    assert config_mod.get_config() is first
    monkeypatch.setenv("DEFAULT_LOCALE", "es")
    assert config_mod.get_config().locales.default == first.locales.default
    config_mod.reset_config()
    assert config_mod.get_config().locales.default == "es"


def test_migrations_create_schema_once(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'fresh.db'}", future=True)
    applied = apply_migrations(engine)
    assert applied == ["001_init.sql", "002_indexes.sql"]
    tables = set(inspect(engine).get_table_names())
    assert {"forms", "questionings", "option_sets", "optionings", "options", "answers", "schema_migrations"} <= tables
    assert apply_migrations(engine) == []


def test_missing_migrations_dir_is_a_no_op(tmp_path) -> None:
    engine = create_engine(f"sqlite:///{tmp_path / 'empty.db'}", future=True)
    assert apply_migrations(engine, migrations_dir=tmp_path / "nowhere") == []


def test_logging_level_comes_from_environment(monkeypatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, "debug")
    cfg = logging_config()
    assert cfg["loggers"]["mission_forms"]["level"] == "DEBUG"
    assert cfg["loggers"]["sqlalchemy.engine"]["level"] == "INFO"

    monkeypatch.setenv(LOG_LEVEL_ENV, "chatty")
    cfg = logging_config()
    assert cfg["loggers"]["mission_forms"]["level"] == "INFO"
    assert cfg["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert cfg["root"]["handlers"] == ["console"]
