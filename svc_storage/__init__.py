"""Database storage layer.

Provides the async Postgres connection pool.
"""

from svc_storage.database import DatabasePool, PoolConfig, PoolConfigError, create_pool

__all__ = ["DatabasePool", "PoolConfig", "PoolConfigError", "create_pool"]
