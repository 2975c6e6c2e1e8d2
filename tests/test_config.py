"""Tests for settings"""

import logging

from dlxdb.config import Settings, configure_logging, settings


def test_defaults(monkeypatch):
    for name in ("MONGODB_URL", "DATABASE_NAME", "BULK_LIMIT", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)

    config = Settings(_env_file=None)

    assert config.MONGODB_URL == "mongodb://localhost:27017"
    assert config.DATABASE_NAME == "digitallinguistics"
    assert config.BULK_LIMIT == 100
    assert not config.is_production


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("BULK_LIMIT", "25")
    monkeypatch.setenv("DATABASE_NAME", "dlx-test")

    config = Settings(_env_file=None)

    assert config.BULK_LIMIT == 25
    assert config.DATABASE_NAME == "dlx-test"


def test_production(monkeypatch):
    monkeypatch.delenv("DATABASE_NAME", raising=False)
    monkeypatch.setenv("ENVIRONMENT", "production")

    assert Settings(_env_file=None).is_production


def test_configure_logging_uses_the_configured_level(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))
    monkeypatch.setattr(settings, "LOG_LEVEL", "warning")

    configure_logging()
    configure_logging("debug")

    assert [call["level"] for call in calls] == ["WARNING", "DEBUG"]
