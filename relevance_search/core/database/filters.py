"""Statement filters for SQLAlchemy select statements.

A filter takes a statement and returns a new one. The relevance search
itself is a ``StatementFilter``; ``OrderBy`` and ``LimitOffset`` are the
ones callers usually apply to the scored statement afterwards. Because the
scored columns live on a derived table, ``OrderBy`` also accepts plain
column names and resolves them against the statement's selected columns.

Usage:
    stmt = RelevanceSearchFilter(config, users, request).apply(select(users))
    stmt = OrderBy("last_name").apply(stmt)            # scored.last_name ASC
    stmt = LimitOffset.for_page(3, per_page=20).apply(stmt)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Literal

from sqlalchemy import Select
from sqlalchemy.sql.expression import ColumnElement

SortOrder = Literal["asc", "desc"]
OrderField = ColumnElement[Any] | str


class StatementFilter(ABC):
    """Transforms a select statement into a new select statement."""

    @abstractmethod
    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Return ``statement`` with this filter applied."""
        ...


class OrderBy(StatementFilter):
    """Add ORDER BY terms.

    Terms are appended after any existing ordering, so on a scored
    statement they break relevance ties. ``replace=True`` discards the
    existing ordering instead.

    Example:
        # Tie-break equal relevance by name
        stmt = OrderBy("last_name").apply(stmt)

        # Ignore relevance entirely
        stmt = OrderBy(["created_at", "id"], "desc", replace=True).apply(stmt)
    """

    def __init__(
        self,
        fields: OrderField | Sequence[OrderField],
        sort_order: SortOrder | Sequence[SortOrder] = "asc",
        *,
        replace: bool = False,
    ):
        """Initialize ordering filter.

        Args:
            fields: Column expression(s) or selected column name(s)
            sort_order: One direction for all fields, or one per field
            replace: Drop existing ORDER BY clauses first
        """
        if isinstance(fields, str) or not isinstance(fields, Sequence):
            fields = [fields]
        self.fields: list[OrderField] = list(fields)
        self.replace = replace

        if isinstance(sort_order, str):
            sort_order = [sort_order] * len(self.fields)
        self.sort_orders: list[SortOrder] = list(sort_order)
        if len(self.sort_orders) != len(self.fields):
            msg = "sort_order length must match fields length"
            raise ValueError(msg)

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Apply ordering to statement.

        Raises:
            ValueError: If a field name is not a selected column
        """
        if self.replace:
            statement = statement.order_by(None)
        terms = []
        for field, order in zip(self.fields, self.sort_orders, strict=True):
            column = _selected_column(statement, field) if isinstance(field, str) else field
            terms.append(column.desc() if order == "desc" else column.asc())
        return statement.order_by(*terms)


class LimitOffset(StatementFilter):
    """Pagination using LIMIT and OFFSET.

    Example:
        stmt = LimitOffset(limit=50, offset=100).apply(stmt)
        stmt = LimitOffset.for_page(3, 20).apply(stmt)   # rows 41-60
    """

    def __init__(self, limit: int, offset: int = 0):
        if limit < 1:
            msg = "limit must be at least 1"
            raise ValueError(msg)
        if offset < 0:
            msg = "offset must not be negative"
            raise ValueError(msg)
        self.limit = limit
        self.offset = offset

    @classmethod
    def for_page(cls, page: int, per_page: int) -> LimitOffset:
        """Pagination for a 1-based page number."""
        if page < 1:
            msg = "page must be at least 1"
            raise ValueError(msg)
        return cls(limit=per_page, offset=(page - 1) * per_page)

    def apply(self, statement: Select[Any]) -> Select[Any]:
        return statement.limit(self.limit).offset(self.offset)


def _selected_column(statement: Select[Any], name: str) -> ColumnElement[Any]:
    try:
        return statement.selected_columns[name]
    except KeyError:
        msg = f"{name!r} is not a selected column"
        raise ValueError(msg) from None


__all__ = [
    "LimitOffset",
    "OrderBy",
    "StatementFilter",
]
