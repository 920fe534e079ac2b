"""
Unit tests for render_query.
"""

import pytest

from stella.models.agent import OperationNotImplementedError
from stella.operations.base import Operation
from stella.operations.catalog import build_default_catalog
from stella.operations.templates import QueryTemplate, render_query


@pytest.fixture
def catalog():
    return build_default_catalog()


def test_binds_supplied_value(catalog):
    sql, args = render_query(catalog.get("getTopSellingProducts"), {"limit": 10})

    assert "LIMIT $1::int" in sql
    assert args == [10]


def test_missing_value_uses_default(catalog):
    _, args = render_query(catalog.get("getTopSellingProducts"), {})

    assert args == [5]


def test_optional_without_default_binds_null(catalog):
    _, args = render_query(catalog.get("getTotalSales"), {"startDate": "2024-01-01"})

    assert args == ["2024-01-01", None]


def test_values_never_formatted_into_sql(catalog):
    sql, args = render_query(
        catalog.get("getProductsByCategory"), {"categoryName": "x'; DROP TABLE products; --"}
    )

    assert "DROP" not in sql
    assert args == ["x'; DROP TABLE products; --"]


def test_bind_order_follows_template(catalog):
    _, args = render_query(catalog.get("getTopRevenueProducts"), {"days": 30})

    assert args == [10, 30]


def test_operation_without_parameters(catalog):
    sql, args = render_query(catalog.get("listOutOfStockProducts"), {})

    assert "current_stock = 0" in sql
    assert args == []


def test_missing_template_raises():
    operation = Operation(name="getForecast", description="Sales forecast", category="products")

    with pytest.raises(OperationNotImplementedError, match="Function getForecast not implemented"):
        render_query(operation, {})


def test_custom_template_registry():
    operation = Operation(name="countProducts", description="Count", category="products")
    templates = {"countProducts": QueryTemplate("SELECT COUNT(*) FROM products")}

    assert render_query(operation, {}, templates) == ("SELECT COUNT(*) FROM products", [])
