"""Database connectors."""

from stella.connectors.base import (
    BaseConnector,
    ConnectionError,
    ConnectorError,
    QueryError,
    QueryResult,
    SchemaError,
)
from stella.connectors.postgres import PostgresConnector

__all__ = [
    "BaseConnector",
    "ConnectionError",
    "ConnectorError",
    "PostgresConnector",
    "QueryError",
    "QueryResult",
    "SchemaError",
]
