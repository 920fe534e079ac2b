"""
PostgreSQL Connector

asyncpg-backed connector. Every statement runs inside a READ ONLY
transaction with a local statement timeout, so write statements are
rejected by the database even if they get past the SQL guard.

Usage:
    connector = PostgresConnector.from_url(settings.database.url)
    await connector.connect()

    result = await connector.execute(
        "SELECT name, current_stock FROM products WHERE current_stock < $1",
        params=[10],
    )
    schema_rows = await connector.describe_schema()

    await connector.close()
"""

import asyncio
import logging
import time
from typing import Any
from urllib.parse import unquote, urlparse

import asyncpg

from stella.connectors.base import (
    BaseConnector,
    ConnectionError,
    QueryError,
    QueryResult,
    SchemaError,
)

logger = logging.getLogger(__name__)

_DESCRIBE_SCHEMA_SQL = """
    SELECT c.table_name, c.column_name, c.data_type
    FROM information_schema.columns AS c
    JOIN information_schema.tables AS t
        ON t.table_schema = c.table_schema AND t.table_name = c.table_name
    WHERE c.table_schema = $1
    AND t.table_type IN ('BASE TABLE', 'VIEW')
    ORDER BY c.table_name, c.ordinal_position
"""


class PostgresConnector(BaseConnector):
    """PostgreSQL connector with connection pooling."""

    def __init__(self, *args, schema_name: str = "public", **kwargs):
        super().__init__(*args, **kwargs)
        self.schema_name = schema_name

    @classmethod
    def from_url(
        cls,
        database_url: str,
        pool_size: int = 5,
        timeout: int = 30,
        statement_timeout: int = 15,
    ) -> "PostgresConnector":
        """Build a connector from a postgresql:// URL."""
        parsed = urlparse(str(database_url))
        if not parsed.hostname:
            raise ValueError("Invalid database URL: host is required.")
        return cls(
            host=parsed.hostname,
            port=parsed.port or 5432,
            database=parsed.path.lstrip("/") or "postgres",
            user=unquote(parsed.username or "postgres"),
            password=unquote(parsed.password or ""),
            pool_size=pool_size,
            timeout=timeout,
            statement_timeout=statement_timeout,
        )

    async def connect(self) -> None:
        """
        Create the asyncpg pool and test it.

        Raises:
            ConnectionError: If connection fails
        """
        if self._connected and self._pool:
            logger.debug("Already connected, skipping connection")
            return

        try:
            logger.info(f"Connecting to PostgreSQL at {self.host}:{self.port}/{self.database}")
            self._pool = await asyncpg.create_pool(
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                min_size=1,
                max_size=self.pool_size,
                timeout=self.timeout,
                command_timeout=self.timeout,
            )
            async with self._pool.acquire() as conn:
                version = await conn.fetchval("SELECT version()")
                logger.info(f"Connected to PostgreSQL: {version.split(',')[0]}")
            self._connected = True

        except (asyncpg.PostgresError, OSError) as e:
            logger.error(f"PostgreSQL connection failed: {e}")
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e

    async def execute(self, query: str, params: list[Any] | None = None) -> QueryResult:
        """
        Execute one statement inside a read-only transaction.

        Args:
            query: SQL text using $1, $2, ... placeholders
            params: Values bound to the placeholders

        Raises:
            QueryError: If the statement fails, times out, or tries to write
            ConnectionError: If not connected
        """
        if not self._connected or not self._pool:
            raise ConnectionError("Not connected to database. Call connect() first.")

        start_time = time.perf_counter()
        try:
            async with self._pool.acquire() as conn:
                async with conn.transaction(readonly=True):
                    await conn.execute(
                        f"SET LOCAL statement_timeout = {int(self.statement_timeout * 1000)}"
                    )
                    rows = await conn.fetch(query, *(params or []))

        except asyncpg.QueryCanceledError as e:
            logger.error(f"Query timed out after {self.statement_timeout}s: {query[:100]}")
            raise QueryError(f"Query timeout ({self.statement_timeout}s)") from e
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Query failed: {e}", extra={"query": query[:200]})
            raise QueryError(str(e)) from e

        result_rows = [dict(row) for row in rows]
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f"Query executed in {execution_time_ms:.2f}ms, returned {len(result_rows)} rows"
        )
        return QueryResult(
            rows=result_rows,
            row_count=len(result_rows),
            columns=list(rows[0].keys()) if rows else [],
            execution_time_ms=execution_time_ms,
        )

    async def describe_schema(self) -> list[dict[str, str]]:
        """Column listing for every table and view in the configured schema."""
        if not self._connected or not self._pool:
            raise ConnectionError("Not connected to database. Call connect() first.")

        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(_DESCRIBE_SCHEMA_SQL, self.schema_name)
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Schema discovery failed: {e}")
            raise SchemaError(f"Failed to describe schema: {e}") from e

        logger.info(
            f"Described schema '{self.schema_name}': {len(rows)} columns",
            extra={"schema": self.schema_name, "column_count": len(rows)},
        )
        return [
            {
                "table_name": row["table_name"],
                "column_name": row["column_name"],
                "data_type": row["data_type"],
            }
            for row in rows
        ]

    async def close(self) -> None:
        """Close the pool."""
        if not self._pool:
            logger.debug("No connection pool to close")
            return

        await self._pool.close()
        self._pool = None
        self._connected = False
        logger.info("PostgreSQL connection closed")
