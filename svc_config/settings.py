"""
Application Settings.

Bound from `.env` override files and the process environment with
`svc_env`. Keys are derived from the section layout, e.g.
`database.pool.max_conns` is read from `DATABASE_POOL_MAX_CONNS`.

Precedence: live environment > later .env file > earlier .env file > default.
"""

import os
from datetime import timedelta
from typing import Annotated

from pydantic import BaseModel
from sqlalchemy.engine import URL

from svc_env import Env, Int32, UInt16, load, new_record


class AppSettings(BaseModel):
    """Service identity (APP_*)."""

    name: Annotated[str, Env(default="svc-core")]
    env: Annotated[str, Env(default="development")]
    debug: Annotated[bool, Env(default="false")]


class DatabaseUser(BaseModel):
    """Database credentials (DATABASE_USER_*)."""

    name: Annotated[str, Env(required=True)]
    password: Annotated[str, Env()]


class PoolSettings(BaseModel):
    """Connection pool sizing (DATABASE_POOL_*)."""

    max_conns: Annotated[Int32, Env(default="25")]
    min_conns: Annotated[Int32, Env(default="5")]
    max_conn_lifetime: Annotated[timedelta, Env(default="5m")]
    max_conn_idle_time: Annotated[timedelta, Env(default="5m")]
    connect_timeout: Annotated[timedelta, Env(default="5s")]


class DatabaseSettings(BaseModel):
    """Postgres connection (DATABASE_*)."""

    host: Annotated[str, Env(default="localhost")]
    port: Annotated[UInt16, Env(default="5432")]
    name: Annotated[str, Env(required=True)]
    ssl_mode: Annotated[str, Env(default="disable")]
    user: DatabaseUser
    pool: PoolSettings

    def url(self) -> URL:
        """Async SQLAlchemy URL (asyncpg driver)."""
        return URL.create(
            "postgresql+asyncpg",
            username=self.user.name,
            password=self.user.password or None,
            host=self.host,
            port=self.port,
            database=self.name,
        )


class LogSettings(BaseModel):
    """Logger options (LOG_*)."""

    level: Annotated[str, Env(default="info")]
    format: Annotated[str, Env(default="json")]
    time_format: Annotated[str, Env(default="%b %d %H:%M:%S")]


class Settings(BaseModel):
    """
    Application settings.

    All keys documented in .env.example.
    """

    app: AppSettings
    database: DatabaseSettings
    log: LogSettings

    def dsn(self) -> str:
        """Connection string with the password rendered."""
        return self.database.url().render_as_string(hide_password=False)


def load_settings(*files: str | os.PathLike) -> Settings:
    """Load settings from override files (default `.env`) and the environment.

    Raises:
        svc_env.ConfigError: If any key is missing or malformed
    """
    return load(new_record(Settings), *(files or (".env",)))
