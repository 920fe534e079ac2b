"""
Operation catalog.

Immutable name → Operation mapping built once at startup and passed into
the pipeline. Lookups of unknown names return None rather than raising.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from types import MappingProxyType

from stella.operations.base import Operation
from stella.operations.definitions import DEFAULT_OPERATIONS

logger = logging.getLogger(__name__)


class OperationCatalog:
    """Read-only registry of catalog operations."""

    def __init__(self, operations: Iterable[Operation]):
        registry: dict[str, Operation] = {}
        for operation in operations:
            if operation.name in registry:
                raise ValueError(f"Duplicate operation name: {operation.name}")
            registry[operation.name] = operation
        self._operations = MappingProxyType(registry)
        logger.debug(f"Operation catalog built with {len(registry)} operations")

    def get(self, name: str | None) -> Operation | None:
        if not name:
            return None
        return self._operations.get(name.strip())

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    def __iter__(self) -> Iterator[Operation]:
        return iter(self._operations.values())

    def __len__(self) -> int:
        return len(self._operations)

    @property
    def names(self) -> list[str]:
        return list(self._operations)

    @property
    def categories(self) -> list[str]:
        """Categories in catalog order, without duplicates."""
        return list(dict.fromkeys(op.category for op in self))

    def by_category(self, category: str) -> list[Operation]:
        return [op for op in self if op.category == category]

    def search(self, keyword: str) -> list[Operation]:
        """Case-insensitive match on name, description and examples."""
        needle = keyword.strip().lower()
        if not needle:
            return list(self)
        return [
            op
            for op in self
            if needle in op.name.lower()
            or needle in op.description.lower()
            or any(needle in example.lower() for example in op.examples)
        ]

    def suggestions(self, limit: int = 10) -> list[str]:
        """Example questions, taking one per category in turn until `limit` is reached."""
        queues = [
            [example for op in self.by_category(category) for example in op.examples[:1]]
            for category in self.categories
        ]
        suggestions: list[str] = []
        while len(suggestions) < limit and any(queues):
            for queue in queues:
                if queue and len(suggestions) < limit:
                    suggestions.append(queue.pop(0))
        return suggestions

    def describe(self) -> str:
        """Plain-text listing used in the matcher prompt."""
        lines = []
        for op in self:
            lines.append(f"- {op.signature()}: {op.description}")
            if op.examples:
                lines.append(f"  examples: {'; '.join(op.examples)}")
        return "\n".join(lines)


def build_default_catalog() -> OperationCatalog:
    """Catalog with the built-in product, transaction, company, category and admin operations."""
    return OperationCatalog(DEFAULT_OPERATIONS)
