"""Unit tests for core/config.py -- SECRET_KEY policy and derived settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_production_requires_secret_key():
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, environment="production", secret_key="")


def test_short_secret_key_rejected():
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None, environment="development", secret_key="short")


def test_development_generates_secret_key():
    settings = Settings(_env_file=None, environment="development", secret_key="")
    assert len(settings.secret_key) >= 32


def test_development_keys_differ_between_instances():
    first = Settings(_env_file=None, environment="development", secret_key="")
    second = Settings(_env_file=None, environment="development", secret_key="")
    assert first.secret_key != second.secret_key


def test_environment_must_be_known():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, environment="staging", secret_key="k" * 32)


def test_secure_cookies_follow_environment(settings_factory):
    assert settings_factory(environment="production").secure_cookies is True
    assert settings_factory(environment="development").secure_cookies is False


def test_log_level_defaults(settings_factory):
    assert settings_factory(environment="development").effective_log_level == "DEBUG"
    assert settings_factory(environment="production").effective_log_level == "INFO"
    assert settings_factory(log_level="warning").effective_log_level == "WARNING"


def test_reads_environment_variables(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("SECRET_KEY", "e" * 40)
    monkeypatch.setenv("COOKIE_NAME", "session")
    monkeypatch.setenv("TOKEN_EXPIRE_SECONDS", "60")
    settings = Settings(_env_file=None)
    assert settings.is_production
    assert settings.cookie_name == "session"
    assert settings.token_expire_seconds == 60
