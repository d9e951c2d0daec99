"""
Configuration Module for the Passport Service

Settings are loaded from environment variables with Pydantic, and shared
resources are handed to request handlers through typed aiohttp AppKeys.

Key configuration areas include:
- Service networking and debugging
- Database connection
- Password hashing and access token issuance
- Monitoring and error reporting
"""

from typing import Final, Optional
import logging
from aio_statsd import TelegrafStatsdClient
from pydantic import (
    AliasChoices,
    Field,
    PostgresDsn,
    field_validator,
)
from pydantic_settings import BaseSettings
from aiohttp import web
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    AsyncSession,
)

from social.graze.passport.store import PassportStore


logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application settings for the passport service.

    Environment variables map onto fields by name, with aliases where older
    deployments use different names. For example, the database connection
    string can be set with either PG_DSN or DATABASE_URL.
    """

    debug: bool = False
    """
    Enable debug mode for verbose logging.
    Set with DEBUG=true environment variable.
    """

    http_port: int = Field(alias="port", default=5100)
    """
    HTTP port for the service to listen on.
    Set with PORT environment variable.
    """

    sentry_dsn: Optional[str] = None
    """
    Sentry DSN for error reporting. No error reporting if not set.
    Set with SENTRY_DSN environment variable.
    """

    pg_dsn: PostgresDsn = Field(
        "postgresql+asyncpg://postgres:password@db/passport",
        validation_alias=AliasChoices("pg_dsn", "database_url"),
    )  # type: ignore
    """
    PostgreSQL connection string for database access.
    Set with PG_DSN or DATABASE_URL environment variables.
    """

    hash_passwords: bool = True
    """
    Hash local passport passwords with scrypt before storing them. When
    disabled, callers are responsible for handing over hashed values.
    Set with HASH_PASSWORDS environment variable.
    """

    scrypt_n: int = 2**14
    """
    scrypt CPU/memory cost parameter. Must be a power of two.
    Set with SCRYPT_N environment variable.
    """

    access_token_bytes: int = 32
    """
    Number of random bytes in access tokens issued to local passports.
    Set with ACCESS_TOKEN_BYTES environment variable.
    """

    statsd_host: str = Field(alias="TELEGRAF_HOST", default="telegraf")
    """
    StatsD/Telegraf host for metrics collection.
    Set with TELEGRAF_HOST environment variable.
    """

    statsd_port: int = Field(alias="TELEGRAF_PORT", default=8125)
    """
    StatsD/Telegraf port for metrics collection.
    Set with TELEGRAF_PORT environment variable.
    """

    statsd_prefix: str = "passport"
    """Prefix for all StatsD metrics from this service."""

    @field_validator("scrypt_n")
    @classmethod
    def validate_scrypt_n(cls, v: int) -> int:
        if v < 2 or v & (v - 1) != 0:
            raise ValueError("scrypt_n must be a power of two greater than 1")
        return v


SettingsAppKey: Final = web.AppKey("settings", Settings)
"""AppKey for accessing the application settings"""

DatabaseAppKey: Final = web.AppKey("database", AsyncEngine)
"""AppKey for accessing the SQLAlchemy async database engine"""

DatabaseSessionMakerAppKey: Final = web.AppKey(
    "database_session_maker", async_sessionmaker[AsyncSession]
)
"""AppKey for accessing the SQLAlchemy async session factory"""

PassportStoreAppKey: Final = web.AppKey("passport_store", PassportStore)
"""AppKey for accessing the passport store bound to the database engine"""

TelegrafStatsdClientAppKey: Final = web.AppKey(
    "telegraf_statsd_client", TelegrafStatsdClient
)
"""AppKey for the Telegraf/StatsD metrics client"""
