"""
PostgreSQL Client Wrapper

Thin wrapper around an asyncpg connection pool. Provides a consistent
initialization pattern (environment fallbacks, lazy pool creation) and a
small query API that returns plain dicts.

Usage:
    from core.postgres_client import get_postgres_client

    db = await get_postgres_client("inventory_service")
    async with db:
        rows = await db.query("SELECT * FROM inventory.stock_items WHERE id = $1", [item_id])
"""

import logging
import os
from typing import Any, Dict, List, Optional

import asyncpg

logger = logging.getLogger(__name__)


def _affected_rows(status: str) -> int:
    """Row count from an asyncpg command tag such as 'UPDATE 1' or 'INSERT 0 1'"""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, AttributeError, IndexError):
        return 0


class PostgresClientWrapper:
    """
    PostgreSQL client wrapper.

    The pool is created on first use (``connect`` or ``async with``) and
    shared by every caller of the wrapper. Cancelling the calling task
    cancels the in-flight query; ``timeout`` bounds a single statement.
    """

    def __init__(
        self,
        service_name: str,
        host: Optional[str] = None,
        port: Optional[int] = None,
        database: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: Optional[float] = 30.0,
    ):
        self.service_name = service_name
        self.host = host or os.getenv("POSTGRES_HOST", "localhost")
        self.port = port or int(os.getenv("POSTGRES_PORT", "5432"))
        self.database = database or os.getenv("POSTGRES_DB", "postgres")
        self.username = username or os.getenv("POSTGRES_USER", "postgres")
        self.password = password or os.getenv("POSTGRES_PASSWORD", "")
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout

        self._pool: Optional[asyncpg.Pool] = None

        logger.info(f"PostgreSQL client initialized for {service_name}: {self.host}:{self.port}/{self.database}")

    @property
    def pool(self) -> Optional[asyncpg.Pool]:
        """Underlying asyncpg pool (None until connected)"""
        return self._pool

    async def connect(self) -> None:
        if self._pool is not None:
            return
        self._pool = await asyncpg.create_pool(
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.username,
            password=self.password,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self.command_timeout,
        )
        logger.info(f"PostgreSQL pool ready for {self.service_name} (min={self.min_size}, max={self.max_size})")

    async def __aenter__(self):
        """Async context manager entry - ensures the pool exists"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """The pool outlives a single block; close() releases it"""
        return None

    async def health_check(self) -> Optional[Dict]:
        """Check database health"""
        try:
            await self.connect()
            value = await self._pool.fetchval("SELECT 1")
            return {"healthy": value == 1}
        except (OSError, asyncpg.PostgresError) as e:
            logger.error(f"PostgreSQL health check failed: {e}")
            return {"healthy": False, "error": str(e)}

    async def query(
        self, sql: str, params: Optional[List[Any]] = None, timeout: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """Execute query and return results"""
        await self.connect()
        rows = await self._pool.fetch(sql, *(params or []), timeout=timeout)
        return [dict(row) for row in rows]

    async def query_row(
        self, sql: str, params: Optional[List[Any]] = None, timeout: Optional[float] = None
    ) -> Optional[Dict[str, Any]]:
        """Execute query and return single row"""
        await self.connect()
        row = await self._pool.fetchrow(sql, *(params or []), timeout=timeout)
        return dict(row) if row is not None else None

    async def query_value(
        self, sql: str, params: Optional[List[Any]] = None, timeout: Optional[float] = None
    ) -> Any:
        """Execute query and return the first column of the first row"""
        await self.connect()
        return await self._pool.fetchval(sql, *(params or []), timeout=timeout)

    async def execute(
        self, sql: str, params: Optional[List[Any]] = None, timeout: Optional[float] = None
    ) -> int:
        """Execute SQL statement, returning the affected row count"""
        await self.connect()
        status = await self._pool.execute(sql, *(params or []), timeout=timeout)
        return _affected_rows(status)

    async def execute_script(self, sql: str) -> None:
        """Run a multi-statement script (no parameters)"""
        await self.connect()
        async with self._pool.acquire() as conn:
            await conn.execute(sql)

    async def close(self):
        """Close the pool"""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info(f"PostgreSQL pool closed for {self.service_name}")


# Singleton instances per service
_postgres_clients: Dict[str, PostgresClientWrapper] = {}


async def get_postgres_client(
    service_name: str,
    host: Optional[str] = None,
    port: Optional[int] = None,
    database: Optional[str] = None,
    **kwargs,
) -> PostgresClientWrapper:
    """
    Get or create PostgreSQL client for a service.

    Args:
        service_name: Service name
        host: Optional host override
        port: Optional port override
        database: Optional database override
        **kwargs: Additional client options

    Returns:
        PostgresClientWrapper instance
    """
    global _postgres_clients

    if service_name not in _postgres_clients:
        client = PostgresClientWrapper(
            service_name=service_name,
            host=host,
            port=port,
            database=database,
            **kwargs,
        )
        _postgres_clients[service_name] = client

    return _postgres_clients[service_name]
