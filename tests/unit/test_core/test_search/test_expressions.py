"""Unit tests for relevance scoring terms and plans."""

from __future__ import annotations

import pytest
from sqlalchemy.dialects import sqlite

from relevance_search.core.database.search.expressions import (
    PHRASE_TIERS,
    TOKEN_TIERS,
    MatchTier,
    RelevancePlan,
    ScoreTerm,
    score_literal,
    tier_condition,
)
from relevance_search.core.database.search.tokens import SearchRequest


def _sql(expression) -> str:
    return str(expression.compile(dialect=sqlite.dialect()))


def _params(expression) -> dict:
    return expression.compile(dialect=sqlite.dialect()).params


@pytest.fixture
def name_columns(tables):
    """``(column, weight)`` pairs for first_name (10) and last_name (5)."""
    return [(tables.users.c.first_name, 10.0), (tables.users.c.last_name, 5.0)]


# ──────────────────────────────────────────────────────────────
# Test MatchTier
# ──────────────────────────────────────────────────────────────


class TestMatchTier:
    """Tests for match tier multipliers and patterns."""

    def test_multipliers(self):
        assert int(MatchTier.EXACT) == 15
        assert int(MatchTier.STARTS_WITH) == 5
        assert int(MatchTier.CONTAINS) == 1
        assert int(MatchTier.PHRASE_EXACT) == 50
        assert int(MatchTier.PHRASE_CONTAINS) == 30

    def test_tier_groups(self):
        assert all(not tier.is_phrase for tier in TOKEN_TIERS)
        assert all(tier.is_phrase for tier in PHRASE_TIERS)

    def test_exact_tiers_have_no_pattern(self):
        assert MatchTier.EXACT.pattern("john") is None
        assert MatchTier.PHRASE_EXACT.pattern("john doe") is None

    def test_patterns(self):
        assert MatchTier.STARTS_WITH.pattern("john") == "john%"
        assert MatchTier.CONTAINS.pattern("john") == "%john%"
        assert MatchTier.PHRASE_CONTAINS.pattern("john doe") == "%john doe%"

    def test_patterns_escape_wildcards(self):
        assert MatchTier.STARTS_WITH.pattern("50%") == "50/%%"
        assert MatchTier.CONTAINS.pattern("a_b") == "%a/_b%"

    @pytest.mark.parametrize(
        ("tier", "candidate", "expected"),
        [
            (MatchTier.EXACT, "John", True),
            (MatchTier.EXACT, "Johnny", False),
            (MatchTier.STARTS_WITH, "Johnny", True),
            (MatchTier.STARTS_WITH, "Mcjohn", False),
            (MatchTier.CONTAINS, "Mcjohnson", True),
            (MatchTier.CONTAINS, None, False),
        ],
    )
    def test_python_matching(self, tier, candidate, expected):
        assert tier.matches(candidate, "john") is expected

    @pytest.mark.parametrize("candidate", ["john", "JOHN", "John"])
    def test_exact_match_implies_every_token_tier(self, candidate):
        """Tiers are additive: an exact match also starts with and contains the token."""
        assert all(tier.matches(candidate, "john") for tier in TOKEN_TIERS)

    def test_python_matching_folds_non_ascii(self):
        """Python folding covers non-ASCII letters, which SQLite's lower() leaves alone."""
        assert MatchTier.EXACT.matches("ÉCOLE", "école") is True
        assert "ASCII" in MatchTier.matches.__doc__


# ──────────────────────────────────────────────────────────────
# Test SQL conditions
# ──────────────────────────────────────────────────────────────


class TestTierCondition:
    """Tests for tier_condition() rendering."""

    def test_exact_uses_equality(self, tables):
        condition = tier_condition(tables.users.c.first_name, "john", MatchTier.EXACT)

        assert _sql(condition) == "lower(users.first_name) = ?"
        assert list(_params(condition).values()) == ["john"]

    def test_contains_uses_escaped_like(self, tables):
        condition = tier_condition(tables.users.c.first_name, "50%", MatchTier.CONTAINS)

        assert _sql(condition) == "lower(users.first_name) LIKE ? ESCAPE '/'"
        assert list(_params(condition).values()) == ["%50/%%"]

    def test_token_never_rendered_inline(self, tables):
        """Search values are bound parameters, never SQL text."""
        value = "'; drop table users; --"
        condition = tier_condition(tables.users.c.first_name, value, MatchTier.STARTS_WITH)

        assert "drop table" not in _sql(condition)

    def test_custom_escape_character(self, tables):
        condition = tier_condition(
            tables.users.c.first_name, "a_b", MatchTier.CONTAINS, escape_char="!"
        )

        assert "ESCAPE '!'" in _sql(condition)
        assert list(_params(condition).values()) == ["%a!_b%"]


class TestScoreLiteral:
    """Tests for inline point literals."""

    def test_integer_points(self):
        assert _sql(score_literal(150.0)) == "150"

    def test_fractional_points(self):
        assert _sql(score_literal(7.5)) == "7.5"


class TestScoreTerm:
    """Tests for individual score terms."""

    def test_points_are_weight_times_multiplier(self, tables):
        term = ScoreTerm("users.first_name", tables.users.c.first_name, 10.0, "john", MatchTier.EXACT)

        assert term.points == 150.0

    def test_expression_is_case(self, tables):
        term = ScoreTerm("users.first_name", tables.users.c.first_name, 10.0, "john", MatchTier.EXACT)

        assert _sql(term.expression()) == (
            "CASE WHEN (lower(users.first_name) = ?) THEN 150 ELSE 0 END"
        )

    def test_evaluate(self, tables):
        term = ScoreTerm("users.first_name", tables.users.c.first_name, 2.0, "john", MatchTier.CONTAINS)

        assert term.evaluate("Mcjohnson") == 2.0
        assert term.evaluate("Doe") == 0.0
        assert term.evaluate(None) == 0.0


# ──────────────────────────────────────────────────────────────
# Test RelevancePlan
# ──────────────────────────────────────────────────────────────


class TestRelevancePlanBuild:
    """Tests for plan construction."""

    def test_term_count(self, name_columns):
        """Each column gets 3 tiers per token plus 2 phrase tiers."""
        plan = RelevancePlan.build(name_columns, SearchRequest("John Doe"))

        assert len(plan.terms) == 2 * (2 * 3 + 2)

    def test_term_order(self, name_columns):
        """Column order, then token tiers per token, then phrase tiers."""
        plan = RelevancePlan.build(name_columns, SearchRequest("John Doe"))
        first_column = plan.terms[:8]

        assert [(t.value, t.tier) for t in first_column] == [
            ("john", MatchTier.EXACT),
            ("john", MatchTier.STARTS_WITH),
            ("john", MatchTier.CONTAINS),
            ("doe", MatchTier.EXACT),
            ("doe", MatchTier.STARTS_WITH),
            ("doe", MatchTier.CONTAINS),
            ("john doe", MatchTier.PHRASE_EXACT),
            ("john doe", MatchTier.PHRASE_CONTAINS),
        ]
        assert {t.key for t in first_column} == {"users.first_name"}

    def test_single_token_still_gets_phrase_tiers(self, name_columns):
        plan = RelevancePlan.build(name_columns, SearchRequest("john"))

        assert len(plan.terms) == 2 * (3 + 2)
        assert plan.phrase == "john"

    def test_empty_search_is_noop(self, name_columns):
        plan = RelevancePlan.build(name_columns, SearchRequest("   "))

        assert plan.is_noop
        assert _sql(plan.expression()) == "0"
        assert plan.full_text_match() is None

    def test_identical_inputs_render_identically(self, name_columns):
        """Building the same plan twice produces byte-identical SQL."""
        first = RelevancePlan.build(name_columns, SearchRequest("John Doe"))
        second = RelevancePlan.build(name_columns, SearchRequest("John Doe"))

        assert _sql(first.expression()) == _sql(second.expression())


class TestRelevancePlanExpressions:
    """Tests for the summed relevance and full-text expressions."""

    def test_expression_sums_every_term(self, name_columns):
        plan = RelevancePlan.build(name_columns, SearchRequest("john"))
        sql = _sql(plan.expression())

        assert sql.count("CASE WHEN") == len(plan.terms)
        assert sql.count(" + ") == len(plan.terms) - 1

    def test_full_text_match_checks_every_column(self, name_columns):
        plan = RelevancePlan.build(name_columns, SearchRequest("John Doe"))
        sql = _sql(plan.full_text_match())

        assert sql.startswith("CASE WHEN (lower(users.first_name) LIKE ? ESCAPE '/'")
        assert " OR lower(users.last_name) LIKE ? ESCAPE '/'" in sql
        assert sql.endswith("THEN 1 ELSE 0 END")


class TestRelevancePlanScore:
    """Tests for Python-side scoring."""

    def test_exact_first_name(self, name_columns):
        """An exact first-name match earns exact + prefix + contains points."""
        plan = RelevancePlan.build(name_columns, SearchRequest("John Doe"))

        score = plan.score({"users.first_name": "John", "users.last_name": "Smith"})

        assert score == 10 * (15 + 5 + 1)

    def test_exact_match_outranks_contains_only(self, name_columns):
        plan = RelevancePlan.build(name_columns, SearchRequest("John Doe"))

        exact = plan.score({"users.first_name": "John", "users.last_name": "Smith"})
        contains = plan.score({"users.first_name": "Alice", "users.last_name": "Mcjohnson"})

        assert contains == 5 * 1
        assert exact > contains

    def test_phrase_tiers(self, name_columns):
        plan = RelevancePlan.build(name_columns, SearchRequest("John Doe"))
        row = {"users.first_name": "Mary", "users.last_name": "John Doe Jr"}

        # john: prefix + contains, doe: contains, phrase: contains
        assert plan.score(row) == 5 * (5 + 1) + 5 * 1 + 5 * 30
        assert plan.matches_full_text(row) is True

    def test_full_text_requires_phrase_in_one_column(self, name_columns):
        """The phrase split across two columns is not a full-text match."""
        plan = RelevancePlan.build(name_columns, SearchRequest("John Doe"))

        assert plan.matches_full_text({"users.first_name": "John", "users.last_name": "Doe"}) is False

    def test_scores_are_never_negative(self, name_columns):
        plan = RelevancePlan.build(name_columns, SearchRequest("x y z"))

        for row in (
            {},
            {"users.first_name": None, "users.last_name": None},
            {"users.first_name": "x", "users.last_name": "xyz"},
        ):
            assert plan.score(row) >= 0

    def test_noop_scores_zero(self, name_columns):
        plan = RelevancePlan.build(name_columns, SearchRequest(""))

        assert plan.score({"users.first_name": "John"}) == 0
