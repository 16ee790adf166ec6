from __future__ import annotations

from typing import Iterator

import pytest

from settings import get_settings

_ENV_NAMES = (
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_PASSWORD",
    "DB_NAME",
    "DATABASE_URL",
    "DB_POOL_SIZE",
    "HOST",
    "PORT",
    "READINGS_MAX_LIMIT",
    "CORS_ORIGINS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch) -> Iterator[None]:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_match_documented_values() -> None:
    settings = get_settings()

    assert settings.db_host == "localhost"
    assert settings.db_port == 3306
    assert settings.db_user == "root"
    assert settings.db_password == ""
    assert settings.db_name == "arduino_data"
    assert settings.pool_size == 10
    assert settings.port == 3000
    assert settings.max_recent_limit is None
    assert settings.cors_origins == ("*",)

    url = settings.sqlalchemy_url()
    assert url.drivername == "mysql+aiomysql"
    assert url.host == "localhost"
    assert url.port == 3306
    assert url.username == "root"
    assert url.password is None
    assert url.database == "arduino_data"


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_PORT", "3307")
    monkeypatch.setenv("DB_USER", "sensor")
    monkeypatch.setenv("DB_PASSWORD", "s3cret")
    monkeypatch.setenv("DB_NAME", "readings")
    monkeypatch.setenv("DB_POOL_SIZE", "4")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("READINGS_MAX_LIMIT", "500")
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.pool_size == 4
    assert settings.port == 8080
    assert settings.max_recent_limit == 500
    assert settings.cors_origins == ("http://a.test", "http://b.test")
    assert settings.log_level == "DEBUG"
    url = settings.sqlalchemy_url()
    assert (url.host, url.port, url.username, url.password, url.database) == (
        "db.internal",
        3307,
        "sensor",
        "s3cret",
        "readings",
    )


def test_invalid_numbers_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("DB_PORT", "not-a-port")
    monkeypatch.setenv("PORT", "-1")
    monkeypatch.setenv("READINGS_MAX_LIMIT", "0")

    settings = get_settings()

    assert settings.db_port == 3306
    assert settings.port == 3000
    assert settings.max_recent_limit is None


def test_database_url_override(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'sensor.db'}")

    url = get_settings().sqlalchemy_url()

    assert url.get_backend_name() == "sqlite"
    assert url.database == str(tmp_path / "sensor.db")
