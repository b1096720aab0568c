"""Dialect-specific placement rules for relevance queries.

Engines disagree on two things the relevance query relies on:

- Whether ``HAVING`` may reference a select-list alias. MySQL, MariaDB and
  SQLite accept ``HAVING relevance >= :threshold``; PostgreSQL and SQL
  Server need the aggregate expression repeated.
- Whether a grouped derived table can expose ``table.*`` while grouping by
  the primary key only. SQL Server cannot, so every selected column is
  grouped, and it does not re-expose derived-table columns the way the
  others do. Callers on SQL Server must therefore select every column they
  need, and place joins, filters and limits on the statement *before*
  the search is applied, adding relevance ordering afterwards.

Usage:
    strategy = get_dialect_strategy(engine)           # Engine / Connection
    strategy = get_dialect_strategy("postgresql")     # plain name
    strategy = get_dialect_strategy(postgresql.dialect())
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
import logging
from typing import Any

logger = logging.getLogger(__name__)


class ThresholdPlacement(StrEnum):
    """How the threshold comparison references the relevance value."""

    ALIAS = "alias"
    EXPRESSION = "expression"


@dataclass(frozen=True, slots=True)
class DialectStrategy:
    """Relevance query rules for one database dialect.

    Attributes:
        name: Dialect name
        threshold_placement: HAVING on the alias or on the repeated aggregate
        group_by_all_columns: Group by every selected column instead of the key
        order_sensitive_clauses: Clauses that must be added before the search
            call (``order_by`` must come after it)
    """

    name: str
    threshold_placement: ThresholdPlacement = ThresholdPlacement.EXPRESSION
    group_by_all_columns: bool = False
    order_sensitive_clauses: tuple[str, ...] = ()

    @property
    def is_order_sensitive(self) -> bool:
        """True when clause order relative to the search call matters."""
        return bool(self.order_sensitive_clauses)


DEFAULT_STRATEGY = DialectStrategy(name="default")

_STRATEGIES: dict[str, DialectStrategy] = {
    "mysql": DialectStrategy(name="mysql", threshold_placement=ThresholdPlacement.ALIAS),
    "mariadb": DialectStrategy(name="mariadb", threshold_placement=ThresholdPlacement.ALIAS),
    "sqlite": DialectStrategy(name="sqlite", threshold_placement=ThresholdPlacement.ALIAS),
    "postgresql": DialectStrategy(name="postgresql"),
    "mssql": DialectStrategy(
        name="mssql",
        group_by_all_columns=True,
        order_sensitive_clauses=("columns", "join", "where", "limit", "order_by"),
    ),
}


def register_dialect_strategy(strategy: DialectStrategy) -> None:
    """Register or replace the strategy used for ``strategy.name``."""
    _STRATEGIES[strategy.name] = strategy
    logger.debug("Registered relevance dialect strategy: %s", strategy.name)


def get_dialect_strategy(dialect: Any = None) -> DialectStrategy:
    """Resolve the strategy for a dialect.

    Args:
        dialect: Dialect name, SQLAlchemy ``Dialect``, anything with a
            ``.dialect`` attribute (Engine, Connection, AsyncEngine), a
            ``DialectStrategy``, or None for the default strategy

    Returns:
        Matching strategy; unknown dialects get the default strategy
    """
    if dialect is None:
        return DEFAULT_STRATEGY
    if isinstance(dialect, DialectStrategy):
        return dialect

    name = dialect if isinstance(dialect, str) else _dialect_name(dialect)
    # "postgresql+asyncpg" style URLs name the backend before the driver
    name = name.split("+", 1)[0].lower()

    strategy = _STRATEGIES.get(name)
    if strategy is None:
        logger.debug("No relevance strategy for dialect %r, using default", name)
        return DEFAULT_STRATEGY
    return strategy


def _dialect_name(obj: Any) -> str:
    inner = getattr(obj, "dialect", None)
    if inner is not None and not isinstance(inner, str):
        obj = inner
    name = getattr(obj, "name", None)
    if not isinstance(name, str):
        msg = f"Cannot determine dialect from {obj!r}"
        raise TypeError(msg)
    return name


__all__ = [
    "DEFAULT_STRATEGY",
    "DialectStrategy",
    "ThresholdPlacement",
    "get_dialect_strategy",
    "register_dialect_strategy",
]
