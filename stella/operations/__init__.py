"""
Catalog operations.

Usage:
    from stella.operations import build_default_catalog, render_query

    catalog = build_default_catalog()
    operation = catalog.get("getTopSellingProducts")
    sql, args = render_query(operation, {"limit": 5})
"""

from stella.operations.base import Operation, Parameter
from stella.operations.catalog import OperationCatalog, build_default_catalog
from stella.operations.templates import QUERY_TEMPLATES, QueryTemplate, render_query

__all__ = [
    "Operation",
    "OperationCatalog",
    "Parameter",
    "QUERY_TEMPLATES",
    "QueryTemplate",
    "build_default_catalog",
    "render_query",
]
