"""
Utilities to centralize configuration handling across the back-office services.
"""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class AppConfig:
    """Simple container for application level settings."""

    app_name: str
    # PostgreSQL database
    database_url: str | None
    db_host: str
    db_port: int
    db_user: str
    db_password: str
    db_name: str
    db_sslmode: str
    # App settings
    secret_key: str
    log_level: str
    debug_mode: bool
    flask_debug: bool
    # Auth settings
    auth_cookie_name: str
    jwt_expires_days: int
    # Rate limiting
    ratelimit_enabled: bool
    ratelimit_storage_url: str
    # HTTP
    cors_allowed_origins: list[str]
    num_proxies: int

    @property
    def sqlalchemy_uri(self) -> str:
        """
        SQLAlchemy URI for the store.

        DATABASE_URL wins when present; otherwise a PostgreSQL URI using psycopg2
        as the driver is built from the POSTGRES_* settings.
        """
        if self.database_url:
            return self.database_url
        ssl_arg = f"?sslmode={self.db_sslmode}" if self.db_sslmode else ""
        return (
            f"postgresql+psycopg2://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}{ssl_arg}"
        )


def _read_env(name: str, default: str | None = None) -> str:
    """
    Internal helper to fetch environment variables with support for defaults.
    """
    value = os.getenv(name)
    if value is None:
        if default is None:
            raise RuntimeError(f"Missing required environment variable '{name}'")
        value = default
    return value


def read_bool(name: str, default: str = "false") -> bool:
    value = _read_env(name, default)
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _split_csv(value: str) -> list[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def get_secret_key() -> str:
    return os.getenv("SECRET_KEY") or os.getenv("JWT_SECRET") or ""


def validate_required_env_vars(skip_in_debug: bool = False) -> None:
    """
    Validate that all required environment variables are set.

    Fails fast during startup rather than encountering errors on the first
    request that needs to sign or verify a session token.

    Args:
        skip_in_debug: If True, skip validation when DEBUG_MODE=true

    Raises:
        RuntimeError: If any required variable is missing or has an invalid value
    """
    if skip_in_debug and read_bool("DEBUG_MODE", "false"):
        return

    errors = []

    secret_key = get_secret_key()
    if not secret_key or secret_key in ["change-me-please", "super-secret-change-me"]:
        errors.append(
            "SECRET_KEY (or JWT_SECRET) must be configured with a secure random value. "
            'Generate with: python3 -c "import secrets; print(secrets.token_urlsafe(32))"'
        )

    if not os.getenv("DATABASE_URL"):
        for name in ("POSTGRES_HOST", "POSTGRES_USER", "POSTGRES_PASSWORD", "POSTGRES_DB"):
            if not os.getenv(name):
                errors.append(f"{name} must be configured (or set DATABASE_URL)")

    jwt_days = os.getenv("JWT_EXPIRES_DAYS", "")
    if jwt_days:
        try:
            days = int(jwt_days)
            if days < 1:
                errors.append(f"JWT_EXPIRES_DAYS must be positive, got: {days}")
        except ValueError:
            errors.append(f"JWT_EXPIRES_DAYS must be a valid integer, got: {jwt_days}")

    if errors:
        error_msg = "\nConfiguration errors - missing or invalid environment variables:\n"
        for error in errors:
            error_msg += f"  - {error}\n"
        raise RuntimeError(error_msg)


def load_config(app_name: str) -> AppConfig:
    """
    Produce an AppConfig instance populated from environment variables.

    Each service passes its desired `app_name` to keep logs easy to
    differentiate while still reusing the same config loader.
    """
    return AppConfig(
        app_name=app_name,
        database_url=os.getenv("DATABASE_URL") or None,
        db_host=_read_env("POSTGRES_HOST", "localhost"),
        db_port=int(_read_env("POSTGRES_PORT", "5432")),
        db_user=_read_env("POSTGRES_USER", "viomar"),
        db_password=_read_env("POSTGRES_PASSWORD", "viomar"),
        db_name=_read_env("POSTGRES_DB", "viomar"),
        db_sslmode=_read_env("POSTGRES_SSLMODE", "disable"),
        secret_key=get_secret_key(),
        log_level=_read_env("LOG_LEVEL", "INFO"),
        debug_mode=read_bool("DEBUG_MODE", "false"),
        flask_debug=read_bool("FLASK_DEBUG", "false"),
        auth_cookie_name=_read_env("AUTH_COOKIE_NAME", "auth_token"),
        jwt_expires_days=int(_read_env("JWT_EXPIRES_DAYS", "7")),
        ratelimit_enabled=read_bool("RATELIMIT_ENABLED", "true"),
        ratelimit_storage_url=_read_env("RATELIMIT_STORAGE_URL", "memory://"),
        cors_allowed_origins=_split_csv(_read_env("CORS_ALLOWED_ORIGINS", "")),
        num_proxies=int(_read_env("NUM_PROXIES", "0")),
    )
