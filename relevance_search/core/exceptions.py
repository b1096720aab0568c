"""Relevance search exceptions.

Custom exceptions raised while resolving search configuration, so callers
get a single, typed failure before any SQL is produced instead of raw
SQLAlchemy or lookup errors.
"""
from __future__ import annotations

from typing import Any


class RelevanceSearchError(Exception):
    """Base exception for relevance search operations.

    Carries a human readable message and a dict of structured details
    that are appended to ``str(error)``.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize relevance search error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigurationError(RelevanceSearchError):
    """Searchable configuration cannot be resolved.

    Raised for an empty column map, non-positive weights, columns on
    tables with no join specification, malformed joins, colliding
    column names, or tables and columns missing from the metadata.

    Attributes:
        entity: Name of the primary table or model being configured
        column: The offending column or table reference, if any
    """

    def __init__(
        self,
        message: str,
        *,
        entity: str | None = None,
        column: str | None = None,
    ):
        """Initialize configuration error.

        Args:
            message: Error description
            entity: Primary table or model name
            column: Offending column/table reference
        """
        self.entity = entity
        self.column = column

        details: dict[str, Any] = {}
        if entity:
            details["entity"] = entity
        if column:
            details["column"] = column
        super().__init__(message, details=details)

    def __repr__(self) -> str:
        """Repr for debugging."""
        return (
            f"ConfigurationError(message={self.message!r}, "
            f"entity={self.entity!r}, column={self.column!r})"
        )


__all__ = [
    "ConfigurationError",
    "RelevanceSearchError",
]
