"""Unit tests for searchable column and join configuration."""

from __future__ import annotations

import pytest

from relevance_search.core.database.search.schema import (
    JoinSpec,
    SearchableColumn,
    SearchConfiguration,
    qualify_column,
)
from relevance_search.core.exceptions import ConfigurationError


# ──────────────────────────────────────────────────────────────
# Test qualify_column
# ──────────────────────────────────────────────────────────────


class TestQualifyColumn:
    """Tests for column reference qualification."""

    def test_bare_name_defaults_to_primary_table(self):
        """Unqualified names belong to the primary table."""
        assert qualify_column("first_name", "users") == "users.first_name"

    def test_qualified_name_kept(self):
        """Qualified names keep their table."""
        assert qualify_column("posts.title", "users") == "posts.title"

    def test_invalid_identifier_raises(self):
        """Names that are not SQL identifiers are configuration errors."""
        with pytest.raises(ConfigurationError) as exc_info:
            qualify_column("first name", "users")

        assert exc_info.value.entity == "users"
        assert exc_info.value.column == "first name"

    def test_too_many_qualifiers_raises(self):
        """schema.table.column references are rejected."""
        with pytest.raises(ConfigurationError):
            qualify_column("public.users.first_name", "users")


# ──────────────────────────────────────────────────────────────
# Test SearchConfiguration construction
# ──────────────────────────────────────────────────────────────


class TestSearchConfigurationFromMapping:
    """Tests for building configurations from raw mappings."""

    def test_columns_keep_declaration_order(self):
        """Columns come back in the order they were declared."""
        config = SearchConfiguration.from_mapping(
            {"last_name": 5, "first_name": 10, "email": 1},
            primary_table="users",
        )

        assert [c.qualified_name for c in config.columns] == [
            "users.last_name",
            "users.first_name",
            "users.email",
        ]

    def test_weights_are_floats(self):
        """Integer weights are stored as floats."""
        config = SearchConfiguration.from_mapping({"first_name": 10}, primary_table="users")

        assert config.columns == (SearchableColumn("users", "first_name", 10.0),)

    def test_weight_sum(self, post_config):
        """weight_sum adds every configured weight."""
        assert post_config.weight_sum() == 18.0

    def test_fractional_weights(self):
        """Fractional weights are accepted and summed exactly."""
        config = SearchConfiguration.from_mapping(
            {"first_name": 0.5, "last_name": 1.25},
            primary_table="users",
        )
        assert config.weight_sum() == 1.75

    def test_joins_are_read_only(self, post_config):
        """The join mapping cannot be mutated."""
        with pytest.raises(TypeError):
            post_config.joins["comments"] = JoinSpec("comments", "posts.id", "comments.post_id")  # type: ignore[index]

    def test_configuration_is_frozen(self, name_config):
        """Configurations are immutable."""
        with pytest.raises(AttributeError):
            name_config.primary_table = "posts"  # type: ignore[misc]

    def test_group_by_is_qualified(self):
        """Explicit group_by columns are qualified against the primary table."""
        config = SearchConfiguration.from_mapping(
            {"first_name": 1},
            primary_table="users",
            group_by=["id", "users.email"],
        )
        assert config.group_by == ("users.id", "users.email")

    def test_group_by_defaults_to_none(self, name_config):
        """Without group_by the primary key is used later."""
        assert name_config.group_by is None


class TestSearchConfigurationValidation:
    """Tests for configuration validation failures."""

    def test_empty_columns_raises(self):
        """Nothing searchable is an error."""
        with pytest.raises(ConfigurationError, match="No searchable columns"):
            SearchConfiguration.from_mapping({}, primary_table="users")

    @pytest.mark.parametrize("weight", [0, -1, -0.5, float("inf"), float("nan")])
    def test_non_positive_or_non_finite_weight_raises(self, weight):
        """Weights must be positive finite numbers."""
        with pytest.raises(ConfigurationError, match="positive"):
            SearchConfiguration.from_mapping({"first_name": weight}, primary_table="users")

    @pytest.mark.parametrize("weight", [True, "10", None])
    def test_non_numeric_weight_raises(self, weight):
        """Booleans and strings are not weights."""
        with pytest.raises(ConfigurationError, match="must be a number"):
            SearchConfiguration.from_mapping({"first_name": weight}, primary_table="users")

    def test_column_on_unjoined_table_raises(self):
        """A joined-table column without a join cannot be resolved."""
        with pytest.raises(ConfigurationError) as exc_info:
            SearchConfiguration.from_mapping(
                {"first_name": 10, "posts.title": 2},
                primary_table="users",
            )

        assert "posts" in exc_info.value.message
        assert exc_info.value.column == "posts.title"

    def test_duplicate_after_qualification_raises(self):
        """``name`` and ``users.name`` are the same column."""
        with pytest.raises(ConfigurationError, match="more than once"):
            SearchConfiguration.from_mapping(
                {"first_name": 10, "users.first_name": 5},
                primary_table="users",
            )

    def test_invalid_primary_table_raises(self):
        """The primary table must be a valid identifier."""
        with pytest.raises(ConfigurationError):
            SearchConfiguration.from_mapping({"first_name": 1}, primary_table="users;drop")

    @pytest.mark.parametrize(
        "keys",
        [
            ["users.id"],
            ["users.id", "posts.user_id", "posts.id"],
            "users.id",
        ],
    )
    def test_join_must_be_a_pair(self, keys):
        """Joins take exactly one local and one foreign key."""
        with pytest.raises(ConfigurationError, match="pair"):
            SearchConfiguration.from_mapping(
                {"posts.title": 1},
                {"posts": keys},
                primary_table="users",
            )

    def test_join_keys_must_be_qualified(self):
        """Bare join keys are ambiguous."""
        with pytest.raises(ConfigurationError, match="qualified"):
            SearchConfiguration.from_mapping(
                {"posts.title": 1},
                {"posts": ["id", "posts.user_id"]},
                primary_table="users",
            )

    def test_unreachable_join_parent_raises(self):
        """A join hanging off an unknown table is unreachable."""
        with pytest.raises(ConfigurationError, match="unreachable"):
            SearchConfiguration.from_mapping(
                {"comments.content": 1},
                {"comments": ["posts.id", "comments.post_id"]},
                primary_table="users",
            )

    def test_cyclic_joins_raise(self):
        """Joins that only reach each other never reach the primary table."""
        with pytest.raises(ConfigurationError, match="Cyclic"):
            SearchConfiguration.from_mapping(
                {"posts.title": 1},
                {
                    "posts": ["comments.post_id", "posts.id"],
                    "comments": ["posts.id", "comments.post_id"],
                },
                primary_table="users",
            )

    def test_primary_table_self_join_raises(self):
        """The primary table is already in the FROM clause."""
        with pytest.raises(ConfigurationError, match="itself"):
            SearchConfiguration.from_mapping(
                {"first_name": 1},
                {"users": ["users.id", "users.id"]},
                primary_table="users",
            )

    def test_empty_group_by_raises(self):
        """An explicit group_by needs at least one column."""
        with pytest.raises(ConfigurationError, match="group_by"):
            SearchConfiguration.from_mapping(
                {"first_name": 1},
                primary_table="users",
                group_by=[],
            )


# ──────────────────────────────────────────────────────────────
# Test required_joins
# ──────────────────────────────────────────────────────────────


class TestRequiredJoins:
    """Tests for join resolution."""

    def test_no_joins_for_primary_columns(self, name_config):
        """Primary-table columns need no joins."""
        assert name_config.required_joins() == ()

    def test_one_join_for_two_columns_on_same_table(self, post_config):
        """Two posts columns still need a single posts join."""
        joins = post_config.required_joins()

        assert joins == (JoinSpec("posts", "users.id", "posts.user_id"),)

    def test_subset_of_columns(self, post_config):
        """Only the joins needed by the given columns are returned."""
        primary_only = [c for c in post_config.columns if c.qualifier == "users"]

        assert post_config.required_joins(primary_only) == ()

    def test_transitive_joins_come_parent_first(self, comment_config):
        """comments hangs off posts, so posts is joined first."""
        joins = comment_config.required_joins()

        assert [j.table for j in joins] == ["posts", "comments"]
        assert joins[1].parent_table == "posts"

    def test_unused_joins_are_skipped(self):
        """Configured joins no column needs are not returned."""
        config = SearchConfiguration.from_mapping(
            {"first_name": 1},
            {"posts": ["users.id", "posts.user_id"]},
            primary_table="users",
        )
        assert config.required_joins() == ()

    def test_configuration_method_qualifies(self, name_config):
        """The bound qualify_column uses the configured primary table."""
        assert name_config.qualify_column("email") == "users.email"
