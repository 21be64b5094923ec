"""Typed settings read from the environment.

Each section is its own ``BaseSettings`` with its own prefix, so sections
never compete for the same variable. Use :func:`get_settings` for the
process-wide instance::

    from devevent.config import get_settings
    limit = get_settings().events.similar_limit
"""

from functools import lru_cache
from typing import Annotated, Any

from psycopg.conninfo import make_conninfo
from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _parse_flag(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)


Flag = Annotated[bool, BeforeValidator(_parse_flag)]


class PostgresSettings(BaseSettings):
    """Where the event store lives and how the pool is sized."""

    model_config = SettingsConfigDict(
        env_prefix="POSTGRES_",
        extra="ignore",
        populate_by_name=True,
    )

    host: str = "postgres"
    port: int = 5432
    user: str = "devuser"
    password: str = ""
    database: str = Field(default="devevent", validation_alias="POSTGRES_DB")

    pool_min_size: int = Field(default=1, ge=0)
    pool_max_size: int = Field(default=10, ge=1)
    pool_timeout: int = Field(default=30, description="Seconds to wait for a connection")
    pool_max_lifetime: int = Field(default=1800, description="Seconds before a connection is recycled")
    pool_max_idle: int = Field(default=300, description="Seconds an idle connection is kept")

    def get_dsn(self) -> str:
        """libpq connection string for the configured server."""
        return make_conninfo(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password or None,
            dbname=self.database,
            sslmode="disable",
        )


class EventSettings(BaseSettings):
    """Event store behaviour."""

    model_config = SettingsConfigDict(env_prefix="EVENTS_", extra="ignore")

    similar_limit: int = Field(default=6, ge=1, description="Maximum similar events returned")
    slug_retry_attempts: int = Field(
        default=3, ge=2, description="Write attempts when a slug collides at insert time"
    )
    strict_time: Flag = Field(
        default=False, description="Reject times that are not HH:mm once normalized"
    )


class HTTPSettings(BaseSettings):
    """Browser access and HTTP-level switches."""

    model_config = SettingsConfigDict(extra="ignore")

    cors_origins: str = "http://localhost:3000"
    cors_origins_regex: str = ""
    request_debug: Flag = False
    enable_metrics: Flag = True

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        # Browsers refuse credentials with a wildcard origin.
        return self.origins != ["*"] and not self.cors_origins_regex


class Settings:
    """All configuration sections, each loaded independently."""

    def __init__(self) -> None:
        self.postgres = PostgresSettings()
        self.events = EventSettings()
        self.http = HTTPSettings()


@lru_cache
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    """Forget the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()
