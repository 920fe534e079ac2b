"""
Schema Introspector

Builds a SchemaSnapshot from the connector's describe_schema() rows and
renders it for the SQL synthesis prompt. When discovery fails or finds no
tables, the static description of the store schema is used instead.

Snapshots may be cached with a TTL. A cached snapshot is only ever replaced
whole, by a fresh discovery or by invalidate().
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from stella.connectors.base import BaseConnector, ConnectorError

logger = logging.getLogger(__name__)


FALLBACK_SCHEMA_DESCRIPTION = """\
Table `companies`:
  - Columns: id (uuid), name (text), country (text), contact_info (jsonb), created_at (timestamptz), updated_at (timestamptz)
Table `categories`:
  - Columns: id (uuid), name (text), description (text), parent_category_id (uuid), created_at (timestamptz), updated_at (timestamptz)
  - Relationships: `parent_category_id` -> `categories`.`id`
Table `products`:
  - Columns: id (uuid), name (text), sku (text), company_id (uuid), category_id (uuid), cost_price (numeric), selling_price (numeric), current_stock (integer), description (text), image_url (text), is_active (boolean), created_at (timestamptz), updated_at (timestamptz)
  - Relationships: `company_id` -> `companies`.`id`, `category_id` -> `categories`.`id`
Table `admins`:
  - Columns: id (uuid), email (text), username (text), full_name (text), role (text), location (text), is_active (boolean), last_login (timestamptz), created_at (timestamptz), updated_at (timestamptz)
Table `transactions`:
  - Columns: id (uuid), transaction_id (text), product_id (uuid), quantity (integer), unit_price (numeric), total_amount (numeric), customer_location (text), transaction_time (timestamptz), status (text), created_at (timestamptz)
  - Relationships: `product_id` -> `products`.`id`
Table `inventory_logs`:
  - Columns: id (uuid), product_id (uuid), admin_id (uuid), change_type (text), quantity_change (integer), previous_stock (integer), new_stock (integer), reason (text), location (text), created_at (timestamptz)
  - Relationships: `product_id` -> `products`.`id`, `admin_id` -> `admins`.`id`
Table `error_logs`:
  - Columns: id (uuid), error_type (text), description (text), product_id (uuid), admin_id (uuid), expected_value (numeric), actual_value (numeric), discrepancy_amount (numeric), severity (text), resolved (boolean), resolved_by (uuid), resolved_at (timestamptz), created_at (timestamptz)
Table `notifications`:
  - Columns: id (uuid), title (text), message (text), type (text), admin_id (uuid), is_read (boolean), related_error_id (uuid), created_at (timestamptz)
"""


class SchemaSnapshot(BaseModel):
    """Tables and their (column, type) pairs at one point in time."""

    tables: dict[str, tuple[tuple[str, str], ...]] = Field(default_factory=dict)
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_rows(cls, rows: list[dict[str, str]]) -> "SchemaSnapshot":
        tables: dict[str, list[tuple[str, str]]] = {}
        for row in rows:
            tables.setdefault(row["table_name"], []).append(
                (row["column_name"], row["data_type"])
            )
        return cls(tables={name: tuple(cols) for name, cols in tables.items()})

    @property
    def is_empty(self) -> bool:
        return not self.tables

    def describe(self) -> str:
        """Prompt rendering: one block per table with its typed columns."""
        lines = []
        for table, columns in self.tables.items():
            lines.append(f"Table `{table}`:")
            lines.append(
                "  - Columns: " + ", ".join(f"{name} ({data_type})" for name, data_type in columns)
            )
        return "\n".join(lines)


class SchemaIntrospector:
    """Discovers the business schema through a connector."""

    def __init__(
        self,
        connector: BaseConnector,
        cache_enabled: bool = False,
        cache_ttl_seconds: int = 300,
    ):
        self.connector = connector
        self.cache_enabled = cache_enabled
        self.cache_ttl_seconds = cache_ttl_seconds
        self._cached: SchemaSnapshot | None = None
        self._cached_at: float = 0.0

    async def snapshot(self) -> SchemaSnapshot | None:
        """
        Current schema, or None when discovery failed.

        An empty snapshot is returned as-is; callers decide how to render it.
        """
        if self.cache_enabled and self._cached is not None and not self._expired():
            return self._cached

        try:
            rows = await self.connector.describe_schema()
        except ConnectorError as e:
            logger.warning(f"Schema discovery failed, using fallback description: {e}")
            return None
        except Exception as e:
            logger.error(
                f"Unexpected schema discovery error, using fallback description: {e}",
                exc_info=True,
            )
            return None

        snapshot = SchemaSnapshot.from_rows(rows)
        logger.debug(
            "Schema snapshot captured",
            extra={"table_count": len(snapshot.tables), "cached": self.cache_enabled},
        )
        if self.cache_enabled and not snapshot.is_empty:
            self._cached = snapshot
            self._cached_at = time.monotonic()
        return snapshot

    async def describe(self) -> str:
        """Schema text for prompts, falling back to the static description."""
        snapshot = await self.snapshot()
        if snapshot is None or snapshot.is_empty:
            return FALLBACK_SCHEMA_DESCRIPTION
        return snapshot.describe()

    def invalidate(self) -> None:
        self._cached = None
        self._cached_at = 0.0

    def _expired(self) -> bool:
        if self.cache_ttl_seconds == 0:
            return False
        return time.monotonic() - self._cached_at > self.cache_ttl_seconds
