# Core - Configuration
#
# Settings are read once from the process environment. An optional .env file
# in the working directory is loaded first (python-dotenv) so local
# development does not need exported variables.
#
# DATABASE_URL and JWT_SECRET are mandatory: the server refuses to start
# without them.

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class ConfigurationError(RuntimeError):
    """Raised when a required setting is missing or malformed."""


def env(name: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """Read an environment variable, optionally failing when it is unset or blank."""
    value = os.environ.get(name, default)
    if required and (value is None or str(value).strip() == ""):
        raise ConfigurationError(f"Missing required environment variable: {name}")
    return value


def env_int(name: str, default: int) -> int:
    raw = env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """
    Runtime settings for the vault server.

    Attributes:
        database_url: asyncpg DSN for the credential store
        jwt_secret: Server-held secret used to sign identity tokens
        environment: "development" disables the Secure cookie flag
        token_ttl_seconds: Identity token / cookie lifetime
        bcrypt_rounds: Cost factor for account password hashes
        db_pool_min_size: Minimum pooled connections
        db_pool_max_size: Maximum pooled connections
        audit_log_dir: Directory for the JSON audit trail
    """

    database_url: str
    jwt_secret: str
    environment: str = "production"
    token_ttl_seconds: int = 3600
    bcrypt_rounds: int = 12
    db_pool_min_size: int = 1
    db_pool_max_size: int = 10
    audit_log_dir: Path = Path("./audit_logs")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in {"development", "dev", "local"}

    @property
    def secure_cookies(self) -> bool:
        return not self.is_development

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the environment.

        Raises:
            ConfigurationError: If DATABASE_URL or JWT_SECRET is absent
        """
        load_dotenv()
        return cls(
            database_url=env("DATABASE_URL", required=True),
            jwt_secret=env("JWT_SECRET", required=True),
            environment=env("APP_ENV", "production"),
            token_ttl_seconds=env_int("TOKEN_TTL_SECONDS", 3600),
            bcrypt_rounds=env_int("BCRYPT_ROUNDS", 12),
            db_pool_min_size=env_int("DB_POOL_MIN_SIZE", 1),
            db_pool_max_size=env_int("DB_POOL_MAX_SIZE", 10),
            audit_log_dir=Path(env("AUDIT_LOG_DIR", "./audit_logs")),
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get process settings (loaded on first call)."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
