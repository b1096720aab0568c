"""Searchable column and join configuration for one entity.

A ``SearchConfiguration`` is built from two plain mappings, the same
shape models declare them in:

    columns = {
        "users.first_name": 10,
        "users.last_name": 10,
        "users.email": 5,
        "posts.title": 2,
    }
    joins = {
        "posts": ["users.id", "posts.user_id"],
    }

    config = SearchConfiguration.from_mapping(columns, joins, primary_table="users")
    config.weight_sum()                  # 27.0
    config.required_joins()              # (JoinSpec(table='posts', ...),)

Unqualified column names (``"first_name"``) belong to the primary table.
Every other table must be reachable through a join; joins may hang off
other joined tables, in which case the parent join is pulled in first.

Configurations are validated once, are immutable, and are safe to share
between threads.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
import math
from types import MappingProxyType

from relevance_search.core.database.validation import (
    IdentifierValidationError,
    split_qualified_name,
    validate_identifier,
)
from relevance_search.core.exceptions import ConfigurationError


@dataclass(frozen=True, slots=True)
class SearchableColumn:
    """One searchable column and its relative importance.

    Attributes:
        qualifier: Owning table name (primary or joined)
        name: Column name
        weight: Positive relevance weight
    """

    qualifier: str
    name: str
    weight: float

    @property
    def qualified_name(self) -> str:
        """Return ``table.column``."""
        return f"{self.qualifier}.{self.name}"


@dataclass(frozen=True, slots=True)
class JoinSpec:
    """Equality join needed to reach columns outside the primary table.

    Attributes:
        table: Joined table name
        local_key: Qualified key on the table the join hangs off
        foreign_key: Qualified key on the joined table
    """

    table: str
    local_key: str
    foreign_key: str

    @property
    def parent_table(self) -> str:
        """Table referenced by the local key."""
        return self.local_key.split(".", 1)[0]


def qualify_column(column: str, primary_table: str) -> str:
    """Return a fully qualified column reference.

    Args:
        column: ``"table.column"`` or bare ``"column"``
        primary_table: Table assumed for bare names

    Returns:
        ``"table.column"``

    Raises:
        ConfigurationError: If the reference is not a valid identifier
    """
    try:
        table, name = split_qualified_name(column, default=primary_table)
    except IdentifierValidationError as e:
        raise ConfigurationError(str(e), entity=primary_table, column=column) from e
    return f"{table}.{name}"


@dataclass(frozen=True, slots=True)
class SearchConfiguration:
    """Validated searchable columns and joins of one entity.

    Prefer ``SearchConfiguration.from_mapping()``; the constructor assumes
    its inputs were already validated.

    Attributes:
        primary_table: Table the search is rooted at
        columns: Searchable columns in declaration order
        joins: Join specifications keyed by joined table name
        group_by: Explicit grouping columns (qualified), None for the primary key
    """

    primary_table: str
    columns: tuple[SearchableColumn, ...]
    joins: Mapping[str, JoinSpec]
    group_by: tuple[str, ...] | None = None

    @classmethod
    def from_mapping(
        cls,
        columns: Mapping[str, float],
        joins: Mapping[str, Sequence[str]] | None = None,
        *,
        primary_table: str,
        group_by: Sequence[str] | None = None,
    ) -> SearchConfiguration:
        """Build and validate a configuration from raw mappings.

        Args:
            columns: ``{column reference: weight}``
            joins: ``{joined table: [local key, foreign key]}``
            primary_table: Table the search is rooted at
            group_by: Optional grouping columns replacing the primary key

        Returns:
            Immutable, validated configuration

        Raises:
            ConfigurationError: On any invalid entry (see module docs)
        """
        try:
            validate_identifier(primary_table, identifier_type="table")
        except IdentifierValidationError as e:
            raise ConfigurationError(str(e), entity=primary_table) from e

        if not columns:
            raise ConfigurationError("No searchable columns configured", entity=primary_table)

        join_specs = _build_joins(joins or {}, primary_table)

        searchable: list[SearchableColumn] = []
        seen: set[str] = set()
        for reference, weight in columns.items():
            qualified = qualify_column(reference, primary_table)
            if qualified in seen:
                raise ConfigurationError(
                    "Searchable column declared more than once",
                    entity=primary_table,
                    column=reference,
                )
            seen.add(qualified)

            if isinstance(weight, bool) or not isinstance(weight, int | float):
                raise ConfigurationError(
                    f"Weight must be a number, got {type(weight).__name__}",
                    entity=primary_table,
                    column=reference,
                )
            if not math.isfinite(weight) or weight <= 0:
                raise ConfigurationError(
                    f"Weight must be a positive number, got {weight!r}",
                    entity=primary_table,
                    column=reference,
                )

            table, name = qualified.split(".")
            if table != primary_table and table not in join_specs:
                raise ConfigurationError(
                    f"No join configured for table {table!r}",
                    entity=primary_table,
                    column=reference,
                )
            searchable.append(SearchableColumn(table, name, float(weight)))

        grouping = None
        if group_by is not None:
            grouping = tuple(qualify_column(c, primary_table) for c in group_by)
            if not grouping:
                raise ConfigurationError("group_by must not be empty", entity=primary_table)

        return cls(
            primary_table=primary_table,
            columns=tuple(searchable),
            joins=MappingProxyType(join_specs),
            group_by=grouping,
        )

    def weight_sum(self) -> float:
        """Sum of all column weights."""
        return sum(column.weight for column in self.columns)

    def qualify_column(self, column: str) -> str:
        """Qualify a column reference against this configuration's primary table."""
        return qualify_column(column, self.primary_table)

    def required_joins(
        self,
        columns: Iterable[SearchableColumn] | None = None,
    ) -> tuple[JoinSpec, ...]:
        """Return the minimal joins needed to reach ``columns``.

        Parent joins come before the joins hanging off them and each table
        appears once, in first-needed order.

        Args:
            columns: Subset of searchable columns; defaults to all of them

        Returns:
            Ordered tuple of join specifications
        """
        selected = self.columns if columns is None else columns
        ordered: dict[str, JoinSpec] = {}

        def visit(table: str) -> None:
            if table == self.primary_table or table in ordered:
                return
            try:
                spec = self.joins[table]
            except KeyError:
                raise ConfigurationError(
                    f"No join configured for table {table!r}",
                    entity=self.primary_table,
                    column=table,
                ) from None
            visit(spec.parent_table)
            ordered[table] = spec

        for column in selected:
            visit(column.qualifier)

        return tuple(ordered.values())


def _build_joins(
    joins: Mapping[str, Sequence[str]],
    primary_table: str,
) -> dict[str, JoinSpec]:
    """Validate raw join entries and check the join graph reaches the primary table."""
    specs: dict[str, JoinSpec] = {}
    for table, keys in joins.items():
        if isinstance(keys, str) or len(keys) != 2:
            raise ConfigurationError(
                "Join must be a [local_key, foreign_key] pair",
                entity=primary_table,
                column=str(table),
            )
        try:
            validate_identifier(table, identifier_type="table")
            local = ".".join(split_qualified_name(keys[0]))
            foreign = ".".join(split_qualified_name(keys[1]))
        except IdentifierValidationError as e:
            raise ConfigurationError(str(e), entity=primary_table, column=table) from e

        if table == primary_table:
            raise ConfigurationError(
                "The primary table cannot be joined to itself",
                entity=primary_table,
                column=table,
            )
        specs[table] = JoinSpec(table=table, local_key=local, foreign_key=foreign)

    for spec in specs.values():
        path = [spec.table]
        parent = spec.parent_table
        while parent != primary_table:
            if parent not in specs:
                raise ConfigurationError(
                    f"Join for {spec.table!r} references unreachable table {parent!r}",
                    entity=primary_table,
                    column=spec.local_key,
                )
            if parent in path:
                raise ConfigurationError(
                    f"Cyclic join configuration: {' -> '.join([*path, parent])}",
                    entity=primary_table,
                    column=spec.table,
                )
            path.append(parent)
            parent = specs[parent].parent_table

    return specs


__all__ = [
    "JoinSpec",
    "SearchConfiguration",
    "SearchableColumn",
    "qualify_column",
]
