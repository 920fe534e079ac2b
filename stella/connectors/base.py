"""
Base Database Connector

Async interface the pipeline uses to reach the business database:

- connect(): create the connection pool
- execute(): run one read-only statement with bound parameters
- describe_schema(): flat (table, column, type) rows for schema discovery
- close(): release the pool
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ============================================================================
# Data Models
# ============================================================================


class QueryResult(BaseModel):
    """Result from query execution."""

    rows: list[dict[str, Any]] = Field(..., description="Result rows as flat records")
    row_count: int = Field(..., description="Number of rows returned")
    columns: list[str] = Field(..., description="Column names")
    execution_time_ms: float = Field(..., description="Execution time in ms")


class ConnectorError(Exception):
    """Base exception for connector errors."""


class ConnectionError(ConnectorError):
    """Error establishing or using the connection pool."""


class QueryError(ConnectorError):
    """The database rejected or failed a statement."""


class SchemaError(ConnectorError):
    """Schema discovery failed."""


# ============================================================================
# Base Connector
# ============================================================================


class BaseConnector(ABC):
    """
    Abstract base class for database connectors.

    Usage:
        connector = PostgresConnector.from_url("postgresql://user:pw@localhost/shop")
        await connector.connect()
        result = await connector.execute("SELECT name FROM products WHERE current_stock < $1", [10])
        await connector.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        pool_size: int = 5,
        timeout: int = 30,
        statement_timeout: int = 15,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.pool_size = pool_size
        self.timeout = timeout
        self.statement_timeout = statement_timeout

        self._pool = None
        self._connected = False

        logger.info(f"Initialized {self.__class__.__name__} for {user}@{host}:{port}/{database}")

    @abstractmethod
    async def connect(self) -> None:
        """Create the pool. Idempotent."""

    @abstractmethod
    async def execute(self, query: str, params: list[Any] | None = None) -> QueryResult:
        """
        Execute one statement in a read-only transaction.

        Raises:
            QueryError: If the database rejects or fails the statement
            ConnectionError: If not connected
        """

    @abstractmethod
    async def describe_schema(self) -> list[dict[str, str]]:
        """
        Return `{table_name, column_name, data_type}` rows for user tables.

        May legitimately return an empty list.

        Raises:
            SchemaError: If discovery fails
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the pool. Safe to call multiple times."""

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def __repr__(self) -> str:
        status = "connected" if self._connected else "disconnected"
        return f"<{self.__class__.__name__} {self.user}@{self.host}:{self.port}/{self.database} ({status})>"
