"""
Operation Catalog Routes

Read-only listing of the catalog operations and example questions.
"""

import logging

from fastapi import APIRouter, Query

from stella.models.api import (
    OperationInfo,
    OperationListResponse,
    OperationParameterInfo,
    SuggestionsResponse,
)
from stella.operations.base import Operation

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_info(operation: Operation) -> OperationInfo:
    return OperationInfo(
        name=operation.name,
        description=operation.description,
        category=operation.category,
        parameters=[
            OperationParameterInfo(
                name=param.name,
                type=param.type,
                required=param.required,
                description=param.description,
                default=param.default,
            )
            for param in operation.parameters
        ],
        examples=list(operation.examples),
    )


@router.get("/operations", response_model=OperationListResponse)
async def list_operations(
    category: str | None = Query(None, description="Only operations in this category"),
    search: str | None = Query(None, description="Keyword matched against names and examples"),
) -> OperationListResponse:
    """List catalog operations, optionally filtered."""
    from stella.api.main import get_catalog

    catalog = get_catalog()
    operations = catalog.search(search) if search else list(catalog)
    if category:
        operations = [op for op in operations if op.category == category]

    return OperationListResponse(
        operations=[_to_info(op) for op in operations],
        categories=catalog.categories,
        total=len(operations),
    )


@router.get("/suggestions", response_model=SuggestionsResponse)
async def suggestions() -> SuggestionsResponse:
    """Example questions drawn from the catalog, one category at a time."""
    from stella.api.main import get_catalog

    return SuggestionsResponse(suggestions=get_catalog().suggestions(limit=10))
