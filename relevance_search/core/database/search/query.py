"""Relevance-ranked search for SQLAlchemy 2.0 style queries.

Scores every row of a select statement by how well its searchable columns
match a free-text query, keeps rows at or above a threshold, and orders
them by that score. The caller's statement becomes the inner query of a
scored derived table:

    SELECT scored.* FROM (
        SELECT users.*, max(<relevance>) AS relevance
        FROM users LEFT OUTER JOIN posts ON users.id = posts.user_id
        WHERE <caller filters>
        GROUP BY users.id
        HAVING relevance >= :threshold
    ) AS scored
    ORDER BY scored.relevance DESC

Two approaches are provided:

1. **Function-based**:
   - ``search_relevance(stmt, config, users, "john doe")`` returns a ``Select``

2. **Chainable**:
   - ``relevance_select(...)`` returns a ``RelevanceSelect`` with helpers
     for filtering, ordering and paginating on the scored columns

Usage:
    from relevance_search.core.database.search import relevance_select

    config = SearchConfiguration.from_mapping(
        {"first_name": 10, "last_name": 5, "posts.title": 2},
        {"posts": ["users.id", "posts.user_id"]},
        primary_table="users",
    )

    # Clauses added before the search become part of the inner query
    stmt = select(users).where(users.c.active.is_(True))

    query = (
        relevance_select(stmt, config, users, "john doe", prioritize_full_text=True)
        .where(lambda c: c.country == "NL")   # filters on the scored columns
        .order_by(lambda c: c.last_name)      # supplements relevance ordering
        .paginate(page=1, per_page=20)
    )
    rows = (await session.execute(query.statement)).all()
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import Float, Select, Table, func, literal, literal_column, select
from sqlalchemy.orm import aliased
from sqlalchemy.sql.expression import Join
from sqlalchemy.sql.util import find_tables

from relevance_search.core.database.filters import LimitOffset, StatementFilter
from relevance_search.core.database.search.dialects import (
    DialectStrategy,
    ThresholdPlacement,
    get_dialect_strategy,
)
from relevance_search.core.database.search.expressions import RelevancePlan
from relevance_search.core.database.search.tokens import SearchRequest, truncate_search
from relevance_search.core.exceptions import ConfigurationError
from relevance_search.core.settings import SearchSettings, get_search_settings
from relevance_search.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.sql.expression import ColumnElement, Subquery

    from relevance_search.core.database.search.schema import JoinSpec, SearchConfiguration

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)

Restriction = Callable[[Select[Any]], Select[Any]]

DEFAULT_ALIAS = "scored"


class RelevanceSearchFilter(StatementFilter):
    """Relevance scoring filter.

    Turns a caller's select statement into a scored, thresholded and
    relevance-ordered query (see module docs for the generated shape).

    Example:
        stmt = RelevanceSearchFilter(
            config,
            users,
            SearchRequest("john doe", prioritize_full_text=True),
            dialect=engine,
        ).apply(select(users))

    Attributes:
        configuration: Searchable columns and joins
        table: Primary table (or mapped class)
        request: Search request (already truncated to the settings limit)
        strategy: Dialect placement rules
        settings: Search settings
        restriction: Callable applied to the inner statement before wrapping
        alias: Name of the scored derived table
    """

    def __init__(
        self,
        configuration: SearchConfiguration,
        table: Any,
        request: SearchRequest,
        *,
        dialect: Any = None,
        settings: SearchSettings | None = None,
        restriction: Restriction | None = None,
        alias: str | None = None,
    ) -> None:
        """Initialize relevance search filter.

        Args:
            configuration: Validated search configuration
            table: Primary ``Table`` or declarative model class
            request: Search request
            dialect: Dialect name, ``Dialect``, ``Engine``/``Connection`` or
                ``DialectStrategy``; defaults to ``settings.default_dialect``
            settings: Search settings (cached settings when omitted)
            restriction: Callable receiving and returning the inner statement
            alias: Derived table name (default ``"scored"``)

        Raises:
            ConfigurationError: If the table does not match the configuration
        """
        self.settings = settings or get_search_settings()
        self.configuration = configuration
        self.table = _resolve_table(table)
        self.request = replace(
            request,
            search=truncate_search(request.search or "", self.settings.max_query_length),
        )
        self.dialect = dialect if dialect is not None else self.settings.default_dialect
        self.strategy: DialectStrategy = get_dialect_strategy(self.dialect)
        self.restriction = restriction
        self.alias = alias or DEFAULT_ALIAS

        if self.table.name != configuration.primary_table:
            raise ConfigurationError(
                f"Table {self.table.name!r} does not match the configured primary table",
                entity=configuration.primary_table,
                column=self.table.name,
            )

    @property
    def threshold(self) -> float:
        """Threshold the relevance is compared against."""
        return self.request.resolve_threshold(
            self.configuration.weight_sum(),
            self.settings.threshold_divisor,
        )

    def plan(self) -> RelevancePlan:
        """Resolve the configured columns and build the relevance plan."""
        weighted = [
            (self._column(column.qualifier, column.name), column.weight)
            for column in self.configuration.columns
        ]
        return RelevancePlan.build(
            weighted,
            self.request,
            escape_char=self.settings.like_escape_char,
        )

    def apply(self, statement: Select[Any]) -> Select[Any]:
        """Wrap ``statement`` in a scored, thresholded derived table.

        Args:
            statement: Caller's select statement (filters, joins, columns and
                limits already applied become part of the inner query)

        Returns:
            ``SELECT * FROM (<scored inner>) AS <alias> ORDER BY relevance DESC``

        Raises:
            ConfigurationError: If configured tables or columns are missing
                from the table metadata (raised before any SQL is built)
        """
        plan = self.plan()
        joins = self.configuration.required_joins()
        join_tables = [(spec, self._table(spec.table)) for spec in joins]

        self._check_clause_order(statement)
        original_columns = list(statement.selected_columns)

        inner = self._add_joins(statement, join_tables)

        relevance = func.max(plan.expression(), type_=Float)
        relevance_label = self.settings.relevance_label
        inner = inner.add_columns(relevance.label(relevance_label))

        full_text = plan.full_text_match()
        full_text_agg = func.max(full_text) if full_text is not None else None
        if self.request.prioritize_full_text and full_text_agg is not None:
            inner = inner.add_columns(full_text_agg.label(self.settings.full_text_label))

        inner = inner.group_by(*self._group_by_columns(original_columns))

        threshold = literal(self.threshold, Float)
        if self.strategy.threshold_placement is ThresholdPlacement.ALIAS:
            inner = inner.having(literal_column(relevance_label) >= threshold)
        else:
            inner = inner.having(relevance >= threshold)

        if self.request.full_text_only and full_text_agg is not None:
            inner = inner.having(full_text_agg >= literal(1))

        if self.restriction is not None:
            inner = self.restriction(inner)

        scored = inner.subquery(self.alias)
        outer = select(scored).order_by(scored.c[relevance_label].desc())

        logger.debug(
            "Built relevance search",
            extra={
                "entity": self.configuration.primary_table,
                "tokens": len(self.request.tokens),
                "terms": len(plan.terms),
                "joins": len(joins),
                "threshold": self.threshold,
                "dialect": self.strategy.name,
            },
        )
        if self.settings.log_statements:
            lazy_logger.debug("Relevance search SQL: %s", lambda: compile_sql(outer, self.dialect))

        return outer

    def _add_joins(
        self,
        statement: Select[Any],
        join_tables: list[tuple[JoinSpec, Table]],
    ) -> Select[Any]:
        present = _joined_tables(statement, self.table)
        if self.table.name not in present:
            statement = statement.select_from(self.table)
            present.add(self.table.name)

        for spec, joined in join_tables:
            if spec.table in present:
                continue
            local_table, local_column = spec.local_key.split(".")
            foreign_table, foreign_column = spec.foreign_key.split(".")
            onclause = self._column(local_table, local_column) == self._column(
                foreign_table, foreign_column
            )
            statement = statement.join(joined, onclause, isouter=True)
            present.add(spec.table)
        return statement

    def _group_by_columns(self, original_columns: list[Any]) -> list[Any]:
        if self.strategy.group_by_all_columns:
            return original_columns
        if self.configuration.group_by is not None:
            return [
                self._column(*reference.split("."))
                for reference in self.configuration.group_by
            ]
        primary_key = list(self.table.primary_key.columns)
        if not primary_key:
            logger.debug(
                "Table %s has no primary key, grouping by all selected columns",
                self.table.name,
            )
            return original_columns
        return primary_key

    def _check_clause_order(self, statement: Select[Any]) -> None:
        if not self.strategy.is_order_sensitive:
            return
        # Select has no public accessor for its ORDER BY clauses
        if getattr(statement, "_order_by_clauses", ()):
            logger.warning(
                "ORDER BY placed before a relevance search is not supported on %s; "
                "order the scored statement instead",
                self.strategy.name,
                extra={"entity": self.configuration.primary_table},
            )

    def _table(self, name: str) -> Table:
        if name == self.table.name:
            return self.table
        metadata = self.table.metadata
        found = metadata.tables.get(name)
        if found is None:
            found = next((t for t in metadata.tables.values() if t.name == name), None)
        if found is None:
            raise ConfigurationError(
                f"Table {name!r} is not defined in the metadata",
                entity=self.configuration.primary_table,
                column=name,
            )
        return found

    def _column(self, table_name: str, column_name: str) -> ColumnElement[Any]:
        column = self._table(table_name).c.get(column_name)
        if column is None:
            raise ConfigurationError(
                f"Column {column_name!r} is not defined on table {table_name!r}",
                entity=self.configuration.primary_table,
                column=f"{table_name}.{column_name}",
            )
        return column


def search_relevance(
    statement: Select[Any],
    configuration: SearchConfiguration,
    table: Any,
    search: str,
    *,
    threshold: float | None = None,
    prioritize_full_text: bool = False,
    full_text_only: bool = False,
    dialect: Any = None,
    settings: SearchSettings | None = None,
    restriction: Restriction | None = None,
    alias: str | None = None,
) -> Select[Any]:
    """Add relevance scoring to a SQLAlchemy select statement.

    Args:
        statement: Caller's select statement.
        configuration: Searchable columns and joins.
        table: Primary table or mapped class.
        search: Free-text search string.
        threshold: Minimum relevance; None uses ``weight_sum / 4``. Zero and
            negative values are honoured as given.
        prioritize_full_text: Also select the ``full_text_match`` flag column.
        full_text_only: Only return rows where a column contains the phrase.
        dialect: Dialect name, Dialect, Engine or Connection.
        settings: Search settings override.
        restriction: Callable applied to the inner statement.
        alias: Name of the scored derived table.

    Returns:
        Scored select statement.

    Example:
        stmt = search_relevance(select(users), config, users, "john")
        rows = (await session.execute(stmt)).all()
    """
    request = SearchRequest(
        search=search,
        threshold=threshold,
        prioritize_full_text=prioritize_full_text,
        full_text_only=full_text_only,
    )
    return RelevanceSearchFilter(
        configuration,
        table,
        request,
        dialect=dialect,
        settings=settings,
        restriction=restriction,
        alias=alias,
    ).apply(statement)


ColumnsCallback = Callable[[Any], Any]


@dataclass
class RelevanceSelect:
    """Chainable wrapper around a scored statement.

    Post-search clauses reference the scored derived table, either directly
    through ``.c`` or via a callback receiving it.

    Example:
        query = relevance_select(select(users), config, users, "john")
        query = query.where(lambda c: c.age > 18).order_by(lambda c: c.last_name)
        rows = (await session.execute(query.statement)).all()
    """

    _statement: Select[Any]
    scored: Subquery
    relevance_label: str = "relevance"
    model: Any = None

    @property
    def statement(self) -> Select[Any]:
        """Get the underlying SQLAlchemy select statement."""
        return self._statement

    @property
    def c(self) -> Any:
        """Columns of the scored derived table."""
        return self.scored.c

    @property
    def relevance(self) -> ColumnElement[Any]:
        """The computed relevance column."""
        return self.scored.c[self.relevance_label]

    def where(self, *criteria: Any) -> RelevanceSelect:
        """Filter on the scored columns.

        Args:
            *criteria: Expressions, or callables receiving ``.c``

        Returns:
            Self for chaining.
        """
        self._statement = self._statement.where(*self._resolve(criteria))
        return self

    def order_by(self, *clauses: Any, replace: bool = False) -> RelevanceSelect:
        """Add ordering after the relevance ordering.

        Args:
            *clauses: Expressions, or callables receiving ``.c``
            replace: Drop the relevance ordering first

        Returns:
            Self for chaining.
        """
        if replace:
            self._statement = self._statement.order_by(None)
        self._statement = self._statement.order_by(*self._resolve(clauses))
        return self

    def limit(self, limit: int) -> RelevanceSelect:
        """Limit the number of rows."""
        self._statement = self._statement.limit(limit)
        return self

    def offset(self, offset: int) -> RelevanceSelect:
        """Skip rows."""
        self._statement = self._statement.offset(offset)
        return self

    def paginate(self, page: int, per_page: int) -> RelevanceSelect:
        """Apply 1-based page pagination."""
        return self.apply(LimitOffset.for_page(page, per_page))

    def apply(self, statement_filter: StatementFilter) -> RelevanceSelect:
        """Apply any ``StatementFilter`` to the scored statement."""
        self._statement = statement_filter.apply(self._statement)
        return self

    def entities(self, model: Any = None) -> Select[Any]:
        """Select mapped instances of ``model`` plus their relevance.

        Args:
            model: Declarative class (defaults to the model the search was
                started from)

        Returns:
            Statement yielding ``(instance, relevance)`` rows with the same
            filters, ordering and pagination
        """
        model = model if model is not None else self.model
        if model is None:
            msg = "No model given and none bound to this search"
            raise ValueError(msg)
        entity = aliased(model, self.scored)
        return self._statement.with_only_columns(entity, self.relevance)

    def compile_sql(self, dialect: Any = None) -> str:
        """Render the statement as SQL text for ``dialect``."""
        return compile_sql(self._statement, dialect)

    def _resolve(self, items: tuple[Any, ...]) -> list[Any]:
        return [item(self.scored.c) if callable(item) else item for item in items]


def relevance_select(
    statement: Select[Any],
    configuration: SearchConfiguration,
    table: Any,
    search: str,
    *,
    model: Any = None,
    settings: SearchSettings | None = None,
    **options: Any,
) -> RelevanceSelect:
    """Create a chainable relevance search.

    Args:
        statement: Caller's select statement.
        configuration: Searchable columns and joins.
        table: Primary table or mapped class.
        search: Free-text search string.
        model: Mapped class returned by ``RelevanceSelect.entities()``.
        settings: Search settings override.
        **options: Keyword options accepted by ``search_relevance``.

    Returns:
        RelevanceSelect wrapper for chaining.
    """
    settings = settings or get_search_settings()
    scored_statement = search_relevance(
        statement,
        configuration,
        table,
        search,
        settings=settings,
        **options,
    )
    scored = scored_statement.get_final_froms()[0]
    return RelevanceSelect(
        _statement=scored_statement,
        scored=scored,
        relevance_label=settings.relevance_label,
        model=model,
    )


def compile_sql(statement: Select[Any], dialect: Any = None) -> str:
    """Render a statement as SQL text (parameters stay as placeholders).

    Args:
        statement: Statement to render
        dialect: Dialect name, ``Dialect``, Engine/Connection, or None for
            SQLAlchemy's default string dialect

    Returns:
        SQL text
    """
    return str(statement.compile(dialect=_compile_dialect(dialect)))


def _compile_dialect(dialect: Any) -> Dialect | None:
    if dialect is None or isinstance(dialect, DialectStrategy):
        return None
    if isinstance(dialect, str):
        from sqlalchemy.engine import make_url

        name = dialect if "://" in dialect else f"{dialect}://"
        return make_url(name).get_dialect()()
    inner = getattr(dialect, "dialect", None)
    return inner if inner is not None else dialect


def _resolve_table(table: Any) -> Table:
    if isinstance(table, Table):
        return table
    mapped = getattr(table, "__table__", None)
    if isinstance(mapped, Table):
        return mapped
    msg = f"Expected a Table or mapped class, got {table!r}"
    raise TypeError(msg)


def _joined_tables(statement: Select[Any], primary: Table) -> set[str]:
    """Tables already joined into the FROM clause.

    Tables that only appear as separate FROM entries (pulled in implicitly by
    a WHERE criterion) do not count; joining them explicitly folds them into
    the join.
    """
    present: set[str] = set()
    for from_clause in statement.get_final_froms():
        if isinstance(from_clause, Join):
            present.update(t.name for t in find_tables(from_clause))
        elif from_clause is primary:
            present.add(primary.name)
    return present


__all__ = [
    "DEFAULT_ALIAS",
    "RelevanceSearchFilter",
    "RelevanceSelect",
    "Restriction",
    "compile_sql",
    "relevance_select",
    "search_relevance",
]
