"""Library configuration using Pydantic Settings.

Configuration is loaded from environment variables.

Optionally, point `ENV_FILE` at a local env file (for development). When
`ENV_FILE` is unset or empty, only the process environment is read.
"""

import os
from enum import Enum
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


# Query options that configure the engine/pool rather than the DBAPI
# connection; they must not be forwarded to the driver's connect().
_ENGINE_ONLY_QUERY_OPTIONS = frozenset(
    {"pool_size", "max_overflow", "pool_timeout", "pool_recycle", "pool_pre_ping", "echo"}
)


def _strip_engine_options(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url
    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in _ENGINE_ONLY_QUERY_OPTIONS
    ]
    return urlunsplit(parts._replace(query=urlencode(query)))


def _with_driver(url: str, driver: str) -> str:
    """Replace the `scheme[+driver]` part of a database URL."""
    scheme, sep, rest = url.partition("://")
    if not sep:
        raise ValueError(f"Invalid database URL: {url!r}")
    dialect = scheme.split("+", 1)[0]
    if dialect == "postgres":
        dialect = "postgresql"
    return f"{dialect}+{driver}://{rest}" if driver else f"{dialect}://{rest}"


class Settings(BaseSettings):
    """
    Library settings with type validation.

    Configuration is loaded from environment variables, with support
    for an explicit env file in development.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "modelrepo"
    app_log_level: str = "INFO"

    # Observability
    observability_structured_logs: bool = True
    metrics_enabled: bool = True

    # Database
    database_url: str = "sqlite:///:memory:"
    database_echo: bool = False

    # Pagination
    pagination_default_per_page: int = 15
    pagination_max_per_page: int = 100

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError:
            raise ValueError(
                f"app_env must be one of {[e.value for e in AppEnvironment]}, got '{v}'"
            )

    @field_validator("app_log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"app_log_level must be a standard logging level, got '{v}'")
        return level

    @model_validator(mode="after")
    def validate_pagination(self) -> "Settings":
        """Pagination bounds must be positive and consistent."""
        if self.pagination_default_per_page < 1:
            raise ValueError("PAGINATION_DEFAULT_PER_PAGE must be at least 1")
        if self.pagination_max_per_page < self.pagination_default_per_page:
            raise ValueError(
                "PAGINATION_MAX_PER_PAGE must be greater than or equal to "
                "PAGINATION_DEFAULT_PER_PAGE"
            )
        return self

    @property
    def sync_url(self) -> str:
        """Database URL for the sync engine (psycopg for Postgres)."""
        url = _strip_engine_options(self.database_url)
        if url.startswith(("postgresql", "postgres:")):
            return _with_driver(url, "psycopg")
        if url.startswith("sqlite"):
            return _with_driver(url, "")
        return url

    @property
    def async_url(self) -> str:
        """Database URL for the async engine (asyncpg / aiosqlite)."""
        url = _strip_engine_options(self.database_url)
        if url.startswith(("postgresql", "postgres:")):
            return _with_driver(url, "asyncpg")
        if url.startswith("sqlite"):
            return _with_driver(url, "aiosqlite")
        return url


settings = Settings()
