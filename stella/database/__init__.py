"""Schema discovery for the business database."""

from stella.database.introspector import (
    FALLBACK_SCHEMA_DESCRIPTION,
    SchemaIntrospector,
    SchemaSnapshot,
)

__all__ = ["FALLBACK_SCHEMA_DESCRIPTION", "SchemaIntrospector", "SchemaSnapshot"]
