"""Connection string handling and configuration."""

from unittest.mock import AsyncMock, MagicMock

import aiosqlite
import pytest

from radar.config import AppSettings, DatabaseSettings, get_settings
from radar.db import SqliteDriver
from radar.db.connection import database_path, open_connection


def test_database_path_parsing(tmp_path):
    assert database_path("sqlite://") == ":memory:"
    assert database_path("sqlite:///:memory:") == ":memory:"
    assert database_path("sqlite:///relative.db") == "relative.db"
    assert database_path(f"sqlite:///{tmp_path}/a.db") == f"{tmp_path}/a.db"
    assert database_path("plain.db") == "plain.db"


def test_non_sqlite_url_is_rejected():
    with pytest.raises(ValueError):
        database_path("postgresql://localhost/db")


def test_test_mode_settings():
    settings = get_settings()

    assert settings.debug is True
    assert settings.db.connection_string == "sqlite:///:memory:"
    assert settings.log_level_value == 10


def test_settings_read_environment(monkeypatch):
    monkeypatch.delenv("TEST_MODE", raising=False)
    monkeypatch.setenv("RADAR_LOG_LEVEL", "warning")
    monkeypatch.setenv("RADAR_DB_DIALECT", "postgresql")
    monkeypatch.setenv("RADAR_DB_CONNECT_TIMEOUT", "2.5")

    settings = get_settings()

    assert isinstance(settings, AppSettings)
    assert settings.log_level_value == 30
    assert settings.db == DatabaseSettings(dialect="postgresql", connect_timeout=2.5)


def test_driver_dialect_follows_settings(monkeypatch):
    assert SqliteDriver().dialect == "sqlite"
    assert SqliteDriver("postgresql").dialect == "postgresql"

    monkeypatch.delenv("TEST_MODE", raising=False)
    monkeypatch.setenv("RADAR_DB_DIALECT", "mysql")
    get_settings.cache_clear()

    assert SqliteDriver().dialect == "mysql"


@pytest.mark.asyncio
async def test_connection_is_closed_when_setup_fails(monkeypatch):
    conn = MagicMock()
    conn.execute = AsyncMock(side_effect=aiosqlite.OperationalError("database is locked"))
    conn.close = AsyncMock()
    monkeypatch.setattr("radar.db.connection.aiosqlite.connect", AsyncMock(return_value=conn))

    with pytest.raises(aiosqlite.OperationalError, match="locked"):
        await open_connection("sqlite://")

    conn.close.assert_awaited_once()
