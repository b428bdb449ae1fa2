"""Configuration files of the bot, the scrapper and the database.

Values come from a YAML file; environment variables override them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import yaml

from linktracker.domain import RepositoryType


class ConfigError(Exception):
    """The configuration cannot be read or is incomplete."""


@dataclass(frozen=True)
class _Setting:
    attr: str
    key: str
    env: str
    required: bool = True
    default: str | None = None


@dataclass
class StorageConfig:
    type: RepositoryType
    host: str
    port: str
    database_name: str
    user: str
    password: str


@dataclass
class MigrationConfig:
    migrations_path: str
    migrations_table_name: str = "migrations"


@dataclass
class DatabaseConfig:
    storage: StorageConfig
    migration: MigrationConfig

    def postgres_dsn(self) -> str:
        """Connection string for the PostgreSQL database."""
        s = self.storage
        return (
            f"postgresql://{s.user}:{s.password}@{s.host}:{s.port}/{s.database_name}"
            "?sslmode=disable"
        )


@dataclass
class BotConfig:
    token: str
    host: str
    port: str
    scrapper_url: str


@dataclass
class ScrapperConfig:
    host: str
    port: str
    bot_url: str


_STORAGE = (
    _Setting("type", "type", "STORAGE_TYPE", default="sql"),
    _Setting("host", "host", "POSTGRES_HOST"),
    _Setting("port", "port", "POSTGRES_PORT"),
    _Setting("database_name", "database_name", "POSTGRES_DATABASE_NAME"),
    _Setting("user", "user", "POSTGRES_USER"),
    _Setting("password", "password", "POSTGRES_PASSWORD"),
)

_MIGRATION = (
    _Setting("migrations_path", "migrations_path", "MIGRATIONS_PATH"),
    _Setting(
        "migrations_table_name",
        "migrations_table_name",
        "MIGRATIONS_TABLE_NAME",
        required=False,
        default="migrations",
    ),
)

_BOT = (
    _Setting("token", "token", "BOT_TOKEN"),
    _Setting("host", "host", "BOT_HOST"),
    _Setting("port", "port", "BOT_PORT"),
    _Setting("scrapper_url", "scrapper_url", "BOT_SCRAPPER_URL"),
)

_SCRAPPER = (
    _Setting("host", "host", "SCRAPPER_HOST"),
    _Setting("port", "port", "SCRAPPER_PORT"),
    _Setting("bot_url", "bot_url", "SCRAPPER_BOT_URL"),
)


def _read_yaml(path: str | os.PathLike) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must hold a mapping")
    return data


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigError(f"section {name!r} must be a mapping")
    return value


def _resolve(section: Mapping[str, Any], settings: Sequence[_Setting], where: str) -> dict[str, str]:
    values: dict[str, str] = {}
    for setting in settings:
        value = os.environ.get(setting.env)
        if value is None:
            raw = section.get(setting.key)
            value = "" if raw is None else str(raw)
            if not value and setting.default is not None:
                value = setting.default
        if not value and setting.required:
            label = f"{where}.{setting.key}" if where else setting.key
            raise ConfigError(f"field {label!r} is required (environment variable {setting.env})")
        values[setting.attr] = value
    return values


def load_database_config(path: str | os.PathLike) -> DatabaseConfig:
    """Read the storage and migration settings."""
    data = _read_yaml(path)
    storage = _resolve(_section(data, "storage"), _STORAGE, "storage")
    migration = _resolve(_section(data, "migrations"), _MIGRATION, "migrations")
    try:
        storage_type = RepositoryType(storage.pop("type"))
    except ValueError:
        storage_type = RepositoryType.SQL
    return DatabaseConfig(
        storage=StorageConfig(type=storage_type, **storage),
        migration=MigrationConfig(**migration),
    )


def load_bot_config(path: str | os.PathLike) -> BotConfig:
    """Read the bot settings."""
    return BotConfig(**_resolve(_read_yaml(path), _BOT, ""))


def load_scrapper_config(path: str | os.PathLike) -> ScrapperConfig:
    """Read the scrapper settings."""
    return ScrapperConfig(**_resolve(_read_yaml(path), _SCRAPPER, ""))