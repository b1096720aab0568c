"""SQL identifier validation utilities.

Searchable column maps and join maps arrive as plain strings
(``"users.first_name"``), usually from model class attributes. They are
validated here before they are resolved against table metadata.

Example:
    from relevance_search.core.database.validation import (
        split_qualified_name,
        validate_identifier,
    )

    validate_identifier("first_name")                 # 'first_name'
    split_qualified_name("users.first_name")          # ('users', 'first_name')
    split_qualified_name("first_name", default="users")  # ('users', 'first_name')
"""

from __future__ import annotations

import re

# Identifiers accepted by every supported engine: a letter or underscore
# followed by letters, digits, underscores or dollar signs, at most 63
# characters (the PostgreSQL limit).
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$]*$")
MAX_IDENTIFIER_LENGTH = 63


class IdentifierValidationError(ValueError):
    """Invalid SQL identifier."""


def validate_identifier(name: str, *, identifier_type: str = "identifier") -> str:
    """Return ``name`` if it is a plain SQL identifier, else raise.

    ``identifier_type`` ("table", "column") only shapes the error message.
    """
    if not name:
        msg = f"Empty {identifier_type} name"
        raise IdentifierValidationError(msg)
    if len(name) > MAX_IDENTIFIER_LENGTH:
        msg = f"{identifier_type} name {name[:20]!r}... exceeds maximum length of {MAX_IDENTIFIER_LENGTH}"
        raise IdentifierValidationError(msg)
    if VALID_IDENTIFIER.match(name) is None:
        msg = f"Invalid {identifier_type} name {name!r}"
        raise IdentifierValidationError(msg)
    return name


def split_qualified_name(
    reference: str,
    *,
    default: str | None = None,
) -> tuple[str, str]:
    """Split a ``table.column`` reference into its validated parts.

    Args:
        reference: Column reference, qualified or bare
        default: Table used for bare references; None requires qualification

    Returns:
        ``(table, column)`` tuple

    Raises:
        IdentifierValidationError: If a part is invalid, the reference has
            more than one dot, or it is bare and no default was given
    """
    parts = reference.split(".")
    if len(parts) == 1:
        if default is None:
            msg = f"Column reference {reference!r} must be qualified as table.column"
            raise IdentifierValidationError(msg)
        table, column = default, parts[0]
    elif len(parts) == 2:
        table, column = parts
    else:
        msg = f"Column reference {reference!r} has too many qualifiers"
        raise IdentifierValidationError(msg)

    return (
        validate_identifier(table, identifier_type="table"),
        validate_identifier(column, identifier_type="column"),
    )


__all__ = [
    "IdentifierValidationError",
    "split_qualified_name",
    "validate_identifier",
]
