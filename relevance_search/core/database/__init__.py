"""Database query helpers: statement filters, identifier validation and relevance search."""

from relevance_search.core.database.filters import LimitOffset, OrderBy, StatementFilter
from relevance_search.core.database.validation import (
    IdentifierValidationError,
    split_qualified_name,
    validate_identifier,
)

__all__ = [
    "IdentifierValidationError",
    "LimitOffset",
    "OrderBy",
    "StatementFilter",
    "split_qualified_name",
    "validate_identifier",
]
