"""Tests for environment-driven settings (core/config.py)."""

from pathlib import Path

import pytest

from secure_vault.core import config
from secure_vault.core.config import ConfigurationError, Settings, get_settings

ENV_VARS = (
    "DATABASE_URL", "JWT_SECRET", "APP_ENV", "TOKEN_TTL_SECONDS", "BCRYPT_ROUNDS",
    "DB_POOL_MIN_SIZE", "DB_POOL_MAX_SIZE", "AUDIT_LOG_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # No stray .env from the developer's checkout
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "load_dotenv", lambda *a, **kw: False)


class TestSettingsFromEnv:

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/vault")
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        settings = Settings.from_env()
        assert settings.database_url == "postgresql://localhost/vault"
        assert settings.jwt_secret == "s3cret"
        assert settings.environment == "production"
        assert settings.token_ttl_seconds == 3600
        assert settings.bcrypt_rounds == 12
        assert settings.audit_log_dir == Path("./audit_logs")
        assert settings.secure_cookies is True

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/vault")
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("APP_ENV", "development")
        monkeypatch.setenv("TOKEN_TTL_SECONDS", "60")
        monkeypatch.setenv("DB_POOL_MAX_SIZE", "3")
        settings = Settings.from_env()
        assert settings.is_development
        assert settings.secure_cookies is False
        assert settings.token_ttl_seconds == 60
        assert settings.db_pool_max_size == 3

    @pytest.mark.parametrize("missing", ["DATABASE_URL", "JWT_SECRET"])
    def test_required(self, monkeypatch, missing):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/vault")
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.delenv(missing)
        with pytest.raises(ConfigurationError, match=missing):
            Settings.from_env()

    def test_blank_secret_is_missing(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/vault")
        monkeypatch.setenv("JWT_SECRET", "   ")
        with pytest.raises(ConfigurationError):
            Settings.from_env()

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/vault")
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        monkeypatch.setenv("BCRYPT_ROUNDS", "many")
        with pytest.raises(ConfigurationError, match="BCRYPT_ROUNDS"):
            Settings.from_env()

    def test_get_settings_is_cached(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/vault")
        monkeypatch.setenv("JWT_SECRET", "s3cret")
        assert get_settings() is get_settings()


class TestCreateAppConfiguration:

    def test_create_app_without_secret_fails(self, monkeypatch):
        from secure_vault.api.main import create_app

        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/vault")
        with pytest.raises(ConfigurationError):
            create_app()
