import pytest
from pydantic import ValidationError

from bankauth.core.config import Settings, settings


def test_settings_loads():
    assert settings.MAX_FAILED_ATTEMPTS == 5
    assert settings.LOCKOUT_MINUTES == 15
    assert settings.JWT_ALGORITHM == "HS256"
    assert settings.DATABASE_URL.startswith("postgresql+asyncpg://")


def test_policy_from_environment(monkeypatch):
    monkeypatch.setenv("MAX_FAILED_ATTEMPTS", "3")
    monkeypatch.setenv("LOCKOUT_MINUTES", "30")

    test_settings = Settings()

    assert test_settings.MAX_FAILED_ATTEMPTS == 3
    assert test_settings.LOCKOUT_MINUTES == 30


def test_non_positive_lockout_rejected(monkeypatch):
    monkeypatch.setenv("LOCKOUT_MINUTES", "0")

    with pytest.raises(ValidationError):
        Settings()


def test_log_level_normalized(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert Settings().LOG_LEVEL == "DEBUG"


def test_unknown_log_level_rejected(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")

    with pytest.raises(ValidationError):
        Settings()


def test_insecure_secret_rejected_outside_debug(monkeypatch):
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("JWT_SECRET_KEY", "changeme")

    with pytest.raises(ValidationError):
        Settings()


def test_short_secret_rejected(monkeypatch):
    monkeypatch.setenv("JWT_SECRET_KEY", "too-short-but-not-default")

    with pytest.raises(ValidationError):
        Settings()


def test_strong_secret_accepted(monkeypatch):
    monkeypatch.setenv("DEBUG", "false")
    monkeypatch.setenv("JWT_SECRET_KEY", "k" * 40)

    assert Settings().JWT_SECRET_KEY == "k" * 40
