"""Database connection pool.

Async SQLAlchemy engine over asyncpg, sized from `DATABASE_POOL_*` settings
and verified with a `SELECT 1` ping when opened.
"""

from datetime import timedelta

from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from svc_config.settings import DatabaseSettings
from svc_obs.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_CONNS = 25
DEFAULT_MIN_CONNS = 5
DEFAULT_MAX_CONN_LIFETIME = timedelta(minutes=5)
DEFAULT_MAX_CONN_IDLE_TIME = timedelta(minutes=5)
DEFAULT_CONNECT_TIMEOUT = timedelta(seconds=5)

SSL_MODES = ("disable", "require", "verify-ca", "verify-full")


class PoolConfigError(ValueError):
    """Invalid pool option."""

    pass


class PoolConfig(BaseModel):
    """Validated pool options."""

    url: str
    max_conns: int = DEFAULT_MAX_CONNS
    min_conns: int = DEFAULT_MIN_CONNS
    max_conn_lifetime: timedelta = DEFAULT_MAX_CONN_LIFETIME
    max_conn_idle_time: timedelta = DEFAULT_MAX_CONN_IDLE_TIME
    connect_timeout: timedelta = DEFAULT_CONNECT_TIMEOUT
    ssl_mode: str = "disable"
    application_name: str = ""

    def check(self) -> None:
        """Validate option ranges.

        Raises:
            PoolConfigError: On the first invalid option
        """
        if not self.url:
            raise PoolConfigError("dsn cannot be empty")
        if self.max_conns <= 0:
            raise PoolConfigError("max_conns must be positive")
        if self.min_conns < 0:
            raise PoolConfigError("min_conns cannot be negative")
        if self.min_conns > self.max_conns:
            raise PoolConfigError("min_conns cannot exceed max_conns")
        if self.max_conn_lifetime <= timedelta(0):
            raise PoolConfigError("max_conn_lifetime must be positive")
        if self.max_conn_idle_time <= timedelta(0):
            raise PoolConfigError("max_conn_idle_time must be positive")
        if self.connect_timeout <= timedelta(0):
            raise PoolConfigError("connect_timeout must be positive")
        if self.ssl_mode not in SSL_MODES:
            raise PoolConfigError(f"unsupported SSL mode: {self.ssl_mode}")

    @classmethod
    def from_settings(
        cls, database: DatabaseSettings, application_name: str = ""
    ) -> "PoolConfig":
        pool = database.pool
        return cls(
            url=database.url().render_as_string(hide_password=False),
            max_conns=pool.max_conns,
            min_conns=pool.min_conns,
            max_conn_lifetime=pool.max_conn_lifetime,
            max_conn_idle_time=pool.max_conn_idle_time,
            connect_timeout=pool.connect_timeout,
            ssl_mode=database.ssl_mode,
            application_name=application_name,
        )

    def engine_kwargs(self) -> dict:
        """Keyword arguments for `create_async_engine`."""
        # SQLAlchemy recycles by connection age only, so the idle limit caps it
        recycle = min(self.max_conn_lifetime, self.max_conn_idle_time)
        connect_args: dict = {"timeout": self.connect_timeout.total_seconds()}
        if self.ssl_mode != "disable":
            connect_args["ssl"] = self.ssl_mode
        if self.application_name:
            connect_args["server_settings"] = {"application_name": self.application_name}

        return {
            "echo": False,
            "pool_pre_ping": True,
            "pool_size": self.min_conns,
            "max_overflow": self.max_conns - self.min_conns,
            "pool_timeout": self.connect_timeout.total_seconds(),
            "pool_recycle": int(recycle.total_seconds()),
            "connect_args": connect_args,
        }


class DatabasePool:
    """Async engine plus session factory."""

    def __init__(self, engine: AsyncEngine, config: PoolConfig):
        self.engine = engine
        self.config = config
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def ping(self) -> bool:
        """Check database connection health."""
        async with self.engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1

    def stats(self) -> str:
        """Pool checkout status."""
        return self.engine.pool.status()

    async def close(self) -> None:
        """Dispose all pooled connections."""
        await self.engine.dispose()
        logger.info("database_pool_closed")


async def create_pool(config: PoolConfig) -> DatabasePool:
    """Create the engine and verify connectivity.

    Raises:
        PoolConfigError: If the options are invalid
        Exception: If the database cannot be reached (engine is disposed)
    """
    config.check()

    url: URL = make_url(config.url)
    if url.drivername != "postgresql+asyncpg":
        raise PoolConfigError(
            f"Database URL must use asyncpg driver. Got: {url.drivername}"
        )

    engine = create_async_engine(url, **config.engine_kwargs())
    pool = DatabasePool(engine, config)

    try:
        await pool.ping()
    except Exception:
        await engine.dispose()
        raise

    logger.info(
        "database_pool_opened",
        host=url.host,
        database=url.database,
        max_conns=config.max_conns,
        min_conns=config.min_conns,
    )
    return pool
