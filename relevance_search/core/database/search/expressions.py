"""Relevance scoring terms and their SQL expressions.

Every searchable column is scored against every token in three tiers, and
against the whole phrase in two more:

    tier              condition                       points
    EXACT             lower(col) = token              weight * 15
    STARTS_WITH       lower(col) LIKE 'token%'        weight * 5
    CONTAINS          lower(col) LIKE '%token%'       weight * 1
    PHRASE_EXACT      lower(col) = phrase             weight * 50
    PHRASE_CONTAINS   lower(col) LIKE '%phrase%'      weight * 30

Tiers are additive: a value equal to a token also starts with and
contains it, so it earns 15 + 5 + 1 points per unit of weight.

The terms form a small typed plan (``ScoreTerm`` / ``RelevancePlan``) that
is rendered into a SQLAlchemy expression only when a statement is built.
Token values are always bound parameters; the points are numeric
literals computed from validated configuration.

Usage:
    plan = RelevancePlan.build(
        [(users.c.first_name, 10.0), (users.c.last_name, 5.0)],
        SearchRequest("John Doe"),
    )
    relevance = plan.expression()          # CASE WHEN ... + CASE WHEN ...
    plan.score({"users.first_name": "John"})  # pure Python evaluation
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from functools import reduce
import operator
from typing import Any

from sqlalchemy import case, func, literal_column, or_
from sqlalchemy.sql.expression import ColumnElement

from relevance_search.core.database.search.tokens import SearchRequest, escape_like


class MatchTier(IntEnum):
    """Match strength categories; the value is the weight multiplier."""

    EXACT = 15
    STARTS_WITH = 5
    CONTAINS = 1
    PHRASE_EXACT = 50
    PHRASE_CONTAINS = 30

    @property
    def is_phrase(self) -> bool:
        """True for tiers matched against the whole phrase."""
        return self in (MatchTier.PHRASE_EXACT, MatchTier.PHRASE_CONTAINS)

    @property
    def is_exact(self) -> bool:
        """True for equality tiers."""
        return self in (MatchTier.EXACT, MatchTier.PHRASE_EXACT)

    def pattern(self, value: str, escape_char: str = "/") -> str | None:
        """Return the LIKE pattern for this tier, None for equality tiers."""
        if self.is_exact:
            return None
        escaped = escape_like(value, escape_char)
        if self is MatchTier.STARTS_WITH:
            return f"{escaped}%"
        return f"%{escaped}%"

    def matches(self, candidate: str | None, value: str) -> bool:
        """Evaluate the tier against a Python string, case-insensitively.

        Case folding uses ``str.lower()``. Engines whose ``lower()`` only folds
        ASCII (SQLite) can disagree on non-ASCII text such as "É".
        """
        if candidate is None:
            return False
        candidate = candidate.lower()
        if self.is_exact:
            return candidate == value
        if self is MatchTier.STARTS_WITH:
            return candidate.startswith(value)
        return value in candidate


TOKEN_TIERS = (MatchTier.EXACT, MatchTier.STARTS_WITH, MatchTier.CONTAINS)
PHRASE_TIERS = (MatchTier.PHRASE_EXACT, MatchTier.PHRASE_CONTAINS)


def score_literal(points: float) -> ColumnElement[Any]:
    """Render a point value as an inline numeric literal."""
    points = float(points)
    text = str(int(points)) if points.is_integer() else repr(points)
    return literal_column(text)


def tier_condition(
    column: ColumnElement[Any],
    value: str,
    tier: MatchTier,
    escape_char: str = "/",
) -> ColumnElement[bool]:
    """Build the boolean condition of one tier for one column and value.

    Args:
        column: Column to match
        value: Lowercased token or phrase
        tier: Match tier
        escape_char: LIKE escape character

    Returns:
        ``lower(col) = :value`` or ``lower(col) LIKE :pattern ESCAPE '<c>'``
    """
    lowered = func.lower(column)
    pattern = tier.pattern(value, escape_char)
    if pattern is None:
        return lowered == value
    return lowered.like(pattern, escape=escape_char)


@dataclass(frozen=True, slots=True, eq=False)
class ScoreTerm:
    """One weighted tier check of one column against one value.

    Attributes:
        key: Column key used for Python-side evaluation
        column: SQL column expression
        weight: Column weight
        value: Lowercased token or phrase
        tier: Match tier
    """

    key: str
    column: ColumnElement[Any]
    weight: float
    value: str
    tier: MatchTier

    @property
    def points(self) -> float:
        """Points contributed when the condition holds."""
        return self.weight * int(self.tier)

    def condition(self, escape_char: str = "/") -> ColumnElement[bool]:
        """SQL condition for this term."""
        return tier_condition(self.column, self.value, self.tier, escape_char)

    def expression(self, escape_char: str = "/") -> ColumnElement[Any]:
        """``CASE WHEN <condition> THEN <points> ELSE 0 END``."""
        return case(
            (self.condition(escape_char), score_literal(self.points)),
            else_=score_literal(0),
        )

    def evaluate(self, candidate: str | None) -> float:
        """Points this term awards to a Python value."""
        return self.points if self.tier.matches(candidate, self.value) else 0.0


@dataclass(frozen=True, slots=True, eq=False)
class RelevancePlan:
    """All score terms of one search, in deterministic order.

    Order is column declaration order, then token tiers per token in input
    order, then phrase tiers. Identical inputs always produce identical
    plans and therefore identical SQL.

    Attributes:
        terms: Score terms (empty for the zero-score case)
        phrase_columns: ``(key, column)`` pairs checked for the whole phrase
        phrase: Lowercased phrase, empty when there is nothing to search
        escape_char: LIKE escape character
    """

    terms: tuple[ScoreTerm, ...]
    phrase_columns: tuple[tuple[str, ColumnElement[Any]], ...]
    phrase: str
    escape_char: str = "/"

    @classmethod
    def build(
        cls,
        columns: Sequence[tuple[ColumnElement[Any], float]],
        request: SearchRequest,
        *,
        escape_char: str = "/",
    ) -> RelevancePlan:
        """Build the plan for ``request`` over weighted columns.

        Args:
            columns: ``(column, weight)`` pairs in declaration order
            request: Search request
            escape_char: LIKE escape character

        Returns:
            Relevance plan
        """
        tokens = request.tokens
        phrase = request.phrase
        terms: list[ScoreTerm] = []
        phrase_columns: list[tuple[str, ColumnElement[Any]]] = []

        for column, weight in columns:
            key = _column_key(column)
            for token in tokens:
                terms.extend(
                    ScoreTerm(key, column, weight, token, tier) for tier in TOKEN_TIERS
                )
            if phrase:
                terms.extend(
                    ScoreTerm(key, column, weight, phrase, tier) for tier in PHRASE_TIERS
                )
                phrase_columns.append((key, column))

        return cls(
            terms=tuple(terms),
            phrase_columns=tuple(phrase_columns),
            phrase=phrase,
            escape_char=escape_char,
        )

    @property
    def is_noop(self) -> bool:
        """True when every row scores zero."""
        return not self.terms

    def expression(self) -> ColumnElement[Any]:
        """Sum of every term's CASE expression, or literal 0."""
        if self.is_noop:
            return score_literal(0)
        return reduce(operator.add, (term.expression(self.escape_char) for term in self.terms))

    def full_text_match(self) -> ColumnElement[Any] | None:
        """``CASE WHEN <any column contains phrase> THEN 1 ELSE 0 END``.

        Returns:
            Match flag expression, or None when there is no phrase
        """
        if not self.phrase_columns:
            return None
        conditions = [
            tier_condition(column, self.phrase, MatchTier.PHRASE_CONTAINS, self.escape_char)
            for _, column in self.phrase_columns
        ]
        return case((or_(*conditions), score_literal(1)), else_=score_literal(0))

    def score(self, row: Mapping[str, str | None]) -> float:
        """Evaluate the plan against a row of Python values.

        Args:
            row: Column key to value (missing keys count as NULL)

        Returns:
            Relevance for the row; matches the database for ASCII text,
            see ``MatchTier.matches`` for non-ASCII case folding
        """
        return sum(term.evaluate(row.get(term.key)) for term in self.terms)

    def matches_full_text(self, row: Mapping[str, str | None]) -> bool:
        """True when any phrase column of ``row`` contains the phrase."""
        return any(
            MatchTier.PHRASE_CONTAINS.matches(row.get(key), self.phrase)
            for key, _ in self.phrase_columns
        )


def _column_key(column: ColumnElement[Any]) -> str:
    """``table.column`` for table-bound columns, else the column key."""
    table = getattr(column, "table", None)
    name = getattr(column, "key", None) or getattr(column, "name", None) or str(column)
    table_name = getattr(table, "name", None)
    return f"{table_name}.{name}" if table_name else str(name)


__all__ = [
    "PHRASE_TIERS",
    "TOKEN_TIERS",
    "MatchTier",
    "RelevancePlan",
    "ScoreTerm",
    "score_literal",
    "tier_condition",
]
