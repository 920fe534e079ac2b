"""
Query templates for catalog operations.

Each operation name maps to exactly one statement. Values are bound as
positional parameters ($1, $2, ...), never formatted into the SQL text.
Optional parameters without a default bind NULL and the statement skips the
corresponding filter.
"""

from __future__ import annotations

from typing import Any, NamedTuple

from stella.models.agent import OperationNotImplementedError
from stella.operations.base import Operation


class QueryTemplate(NamedTuple):
    """Statement plus the parameter names bound to $1..$n, in order."""

    sql: str
    binds: tuple[str, ...] = ()


_PRODUCT_COLUMNS = "p.id, p.name, p.sku, p.current_stock, p.selling_price"

QUERY_TEMPLATES: dict[str, QueryTemplate] = {
    # products
    "getTopSellingProducts": QueryTemplate(
        "SELECT p.name, p.sku, p.selling_price, SUM(t.quantity) AS total_sold "
        "FROM products p "
        "JOIN transactions t ON t.product_id = p.id "
        "GROUP BY p.id, p.name, p.sku, p.selling_price "
        "ORDER BY total_sold DESC "
        "LIMIT $1::int",
        ("limit",),
    ),
    "listOutOfStockProducts": QueryTemplate(
        "SELECT p.id, p.name, p.sku, p.current_stock "
        "FROM products p "
        "WHERE p.current_stock = 0 "
        "ORDER BY p.name"
    ),
    "listLowStockProducts": QueryTemplate(
        "SELECT p.id, p.name, p.sku, p.current_stock "
        "FROM products p "
        "WHERE p.current_stock < $1::numeric "
        "ORDER BY p.current_stock, p.name",
        ("threshold",),
    ),
    "getProductsByCategory": QueryTemplate(
        f"SELECT {_PRODUCT_COLUMNS}, c.name AS category "
        "FROM products p "
        "JOIN categories c ON c.id = p.category_id "
        "WHERE c.name ILIKE '%' || $1::text || '%' "
        "ORDER BY p.name",
        ("categoryName",),
    ),
    "getTotalStockValue": QueryTemplate(
        "SELECT COALESCE(SUM(current_stock * selling_price), 0) AS total_stock_value, "
        "COUNT(*) AS product_count "
        "FROM products"
    ),
    "getProductStockValue": QueryTemplate(
        "SELECT p.name, p.sku, p.current_stock, p.selling_price, "
        "p.current_stock * p.selling_price AS stock_value "
        "FROM products p "
        "WHERE p.id::text = $1::text OR p.name ILIKE $1::text",
        ("productId",),
    ),
    "getProfitabilityReport": QueryTemplate(
        "SELECT p.name, p.sku, p.cost_price, p.selling_price, "
        "p.selling_price - p.cost_price AS profit_per_unit, "
        "ROUND((p.selling_price - p.cost_price) / NULLIF(p.cost_price, 0) * 100, 2) "
        "AS margin_percent "
        "FROM products p "
        "WHERE p.is_active "
        "ORDER BY margin_percent DESC NULLS LAST "
        "LIMIT 20"
    ),
    # transactions
    "getTotalSales": QueryTemplate(
        "SELECT COALESCE(SUM(total_amount), 0) AS total_revenue, COUNT(*) AS transaction_count "
        "FROM transactions "
        "WHERE ($1::text IS NULL OR transaction_time >= $1::text::date) "
        "AND ($2::text IS NULL OR transaction_time < $2::text::date + INTERVAL '1 day')",
        ("startDate", "endDate"),
    ),
    "getRecentTransactions": QueryTemplate(
        "SELECT t.transaction_id, p.name AS product_name, t.quantity, t.unit_price, "
        "t.total_amount, t.customer_location, t.transaction_time, t.status "
        "FROM transactions t "
        "JOIN products p ON p.id = t.product_id "
        "ORDER BY t.transaction_time DESC "
        "LIMIT $1::int",
        ("limit",),
    ),
    "getTransactionsByLocation": QueryTemplate(
        "SELECT t.transaction_id, p.name AS product_name, t.quantity, t.total_amount, "
        "t.customer_location, t.transaction_time "
        "FROM transactions t "
        "JOIN products p ON p.id = t.product_id "
        "WHERE t.customer_location ILIKE '%' || $1::text || '%' "
        "ORDER BY t.transaction_time DESC",
        ("location",),
    ),
    "getHighValueTransactions": QueryTemplate(
        "SELECT t.transaction_id, p.name AS product_name, t.quantity, t.total_amount, "
        "t.customer_location, t.transaction_time "
        "FROM transactions t "
        "JOIN products p ON p.id = t.product_id "
        "WHERE t.total_amount > $1::numeric "
        "ORDER BY t.total_amount DESC",
        ("minAmount",),
    ),
    "getTodaysTransactions": QueryTemplate(
        "SELECT t.transaction_id, p.name AS product_name, t.quantity, t.total_amount, "
        "t.customer_location, t.transaction_time "
        "FROM transactions t "
        "JOIN products p ON p.id = t.product_id "
        "WHERE t.transaction_time >= date_trunc('day', now()) "
        "ORDER BY t.transaction_time DESC"
    ),
    "getWeeklySalesReport": QueryTemplate(
        "SELECT transaction_time::date AS day, COUNT(*) AS transaction_count, "
        "SUM(quantity) AS units_sold, SUM(total_amount) AS revenue "
        "FROM transactions "
        "WHERE transaction_time >= date_trunc('week', now()) "
        "GROUP BY 1 "
        "ORDER BY 1"
    ),
    "getMonthlySalesReport": QueryTemplate(
        "SELECT transaction_time::date AS day, COUNT(*) AS transaction_count, "
        "SUM(quantity) AS units_sold, SUM(total_amount) AS revenue "
        "FROM transactions "
        "WHERE transaction_time >= date_trunc('month', now()) "
        "GROUP BY 1 "
        "ORDER BY 1"
    ),
    "getTopRevenueProducts": QueryTemplate(
        "SELECT p.name, p.sku, SUM(t.total_amount) AS revenue, SUM(t.quantity) AS units_sold "
        "FROM products p "
        "JOIN transactions t ON t.product_id = p.id "
        "WHERE ($2::int IS NULL OR t.transaction_time >= now() - make_interval(days => $2::int)) "
        "GROUP BY p.id, p.name, p.sku "
        "ORDER BY revenue DESC "
        "LIMIT $1::int",
        ("limit", "days"),
    ),
    # companies
    "getAllCompanies": QueryTemplate(
        "SELECT c.id, c.name, c.country, c.created_at FROM companies c ORDER BY c.name"
    ),
    "getCompaniesByCountry": QueryTemplate(
        "SELECT c.id, c.name, c.country FROM companies c "
        "WHERE c.country ILIKE $1::text "
        "ORDER BY c.name",
        ("country",),
    ),
    "getTopCompaniesByProductCount": QueryTemplate(
        "SELECT c.name, c.country, COUNT(p.id) AS product_count "
        "FROM companies c "
        "LEFT JOIN products p ON p.company_id = c.id "
        "GROUP BY c.id, c.name, c.country "
        "ORDER BY product_count DESC "
        "LIMIT $1::int",
        ("limit",),
    ),
    # categories
    "getAllCategories": QueryTemplate(
        "SELECT c.id, c.name, c.description, parent.name AS parent_category "
        "FROM categories c "
        "LEFT JOIN categories parent ON parent.id = c.parent_category_id "
        "ORDER BY c.name"
    ),
    "getCategoryProductCount": QueryTemplate(
        "SELECT c.name, COUNT(p.id) AS product_count "
        "FROM categories c "
        "LEFT JOIN products p ON p.category_id = c.id "
        "GROUP BY c.id, c.name "
        "ORDER BY c.name"
    ),
    "getTopCategoriesByProductCount": QueryTemplate(
        "SELECT c.name, COUNT(p.id) AS product_count "
        "FROM categories c "
        "LEFT JOIN products p ON p.category_id = c.id "
        "GROUP BY c.id, c.name "
        "ORDER BY product_count DESC "
        "LIMIT $1::int",
        ("limit",),
    ),
    # admins
    "getAllAdmins": QueryTemplate(
        "SELECT a.full_name, a.username, a.email, a.role, a.location, a.is_active, a.last_login "
        "FROM admins a "
        "ORDER BY a.full_name"
    ),
    "getAdminsByRole": QueryTemplate(
        "SELECT a.full_name, a.username, a.email, a.role, a.location, a.is_active "
        "FROM admins a "
        "WHERE a.role ILIKE replace($1::text, ' ', '_') "
        "ORDER BY a.full_name",
        ("role",),
    ),
}


def render_query(
    operation: Operation,
    params: dict[str, Any],
    templates: dict[str, QueryTemplate] | None = None,
) -> tuple[str, list[Any]]:
    """
    Resolve an operation to its statement and bind arguments.

    Absent values fall back to the parameter default, then to NULL.

    Raises:
        OperationNotImplementedError: If no template exists for the operation
    """
    registry = QUERY_TEMPLATES if templates is None else templates
    template = registry.get(operation.name)
    if template is None:
        raise OperationNotImplementedError(operation.name)

    args = []
    for name in template.binds:
        value = params.get(name)
        if value is None:
            declared = operation.parameter(name)
            value = declared.default if declared else None
        args.append(value)
    return template.sql, args
