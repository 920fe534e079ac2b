"""
Unit tests for SchemaIntrospector.
"""

import asyncpg
import pytest

from stella.connectors.base import SchemaError
from stella.database.introspector import (
    FALLBACK_SCHEMA_DESCRIPTION,
    SchemaIntrospector,
    SchemaSnapshot,
)

SCHEMA_ROWS = [
    {"table_name": "products", "column_name": "id", "data_type": "uuid"},
    {"table_name": "products", "column_name": "name", "data_type": "text"},
    {"table_name": "companies", "column_name": "country", "data_type": "text"},
]


class TestSchemaSnapshot:
    def test_from_rows_groups_by_table(self):
        snapshot = SchemaSnapshot.from_rows(SCHEMA_ROWS)

        assert list(snapshot.tables) == ["products", "companies"]
        assert snapshot.tables["products"] == (("id", "uuid"), ("name", "text"))

    def test_describe(self):
        text = SchemaSnapshot.from_rows(SCHEMA_ROWS).describe()

        assert text == (
            "Table `products`:\n"
            "  - Columns: id (uuid), name (text)\n"
            "Table `companies`:\n"
            "  - Columns: country (text)"
        )

    def test_empty(self):
        assert SchemaSnapshot.from_rows([]).is_empty


class TestDescribe:
    @pytest.mark.asyncio
    async def test_discovered_schema(self, mock_connector):
        mock_connector.describe_schema.return_value = SCHEMA_ROWS
        introspector = SchemaIntrospector(mock_connector)

        text = await introspector.describe()

        assert "Table `products`:" in text
        assert text != FALLBACK_SCHEMA_DESCRIPTION

    @pytest.mark.asyncio
    async def test_fallback_when_discovery_fails(self, mock_connector):
        mock_connector.describe_schema.side_effect = SchemaError("permission denied")

        text = await SchemaIntrospector(mock_connector).describe()

        assert text == FALLBACK_SCHEMA_DESCRIPTION

    @pytest.mark.asyncio
    async def test_fallback_when_no_tables(self, mock_connector):
        text = await SchemaIntrospector(mock_connector).describe()

        assert text == FALLBACK_SCHEMA_DESCRIPTION
        assert "Table `transactions`:" in text

    @pytest.mark.asyncio
    async def test_snapshot_none_on_failure(self, mock_connector):
        mock_connector.describe_schema.side_effect = SchemaError("boom")

        assert await SchemaIntrospector(mock_connector).snapshot() is None

    @pytest.mark.asyncio
    async def test_fallback_on_unexpected_error(self, mock_connector):
        mock_connector.describe_schema.side_effect = asyncpg.InterfaceError("pool is closing")
        introspector = SchemaIntrospector(mock_connector)

        assert await introspector.snapshot() is None
        assert await introspector.describe() == FALLBACK_SCHEMA_DESCRIPTION


class TestCaching:
    @pytest.mark.asyncio
    async def test_uncached_by_default(self, mock_connector):
        mock_connector.describe_schema.return_value = SCHEMA_ROWS
        introspector = SchemaIntrospector(mock_connector)

        await introspector.describe()
        await introspector.describe()

        assert mock_connector.describe_schema.await_count == 2

    @pytest.mark.asyncio
    async def test_cached_snapshot_reused(self, mock_connector):
        mock_connector.describe_schema.return_value = SCHEMA_ROWS
        introspector = SchemaIntrospector(mock_connector, cache_enabled=True)

        first = await introspector.snapshot()
        second = await introspector.snapshot()

        assert first is second
        assert mock_connector.describe_schema.await_count == 1

    @pytest.mark.asyncio
    async def test_cache_expires(self, mock_connector):
        mock_connector.describe_schema.return_value = SCHEMA_ROWS
        introspector = SchemaIntrospector(mock_connector, cache_enabled=True, cache_ttl_seconds=60)

        await introspector.snapshot()
        introspector._cached_at -= 120
        await introspector.snapshot()

        assert mock_connector.describe_schema.await_count == 2

    @pytest.mark.asyncio
    async def test_empty_snapshot_not_cached(self, mock_connector):
        introspector = SchemaIntrospector(mock_connector, cache_enabled=True)

        await introspector.snapshot()
        await introspector.snapshot()

        assert mock_connector.describe_schema.await_count == 2

    @pytest.mark.asyncio
    async def test_invalidate(self, mock_connector):
        mock_connector.describe_schema.return_value = SCHEMA_ROWS
        introspector = SchemaIntrospector(mock_connector, cache_enabled=True)

        await introspector.snapshot()
        introspector.invalidate()
        await introspector.snapshot()

        assert mock_connector.describe_schema.await_count == 2
