"""Pytest configuration and shared fixtures.

Organization:
    - Settings Fixtures: isolated settings per test
    - Schema Fixtures: Core tables used by compile-only tests
    - Configuration Fixtures: ready-made search configurations

Execution tests against SQLite live in tests/integration and declare their
own ORM models and async engine fixtures.
"""

from __future__ import annotations

from collections.abc import Generator
from types import SimpleNamespace

import pytest
from sqlalchemy import Boolean, Column, ForeignKey, Integer, MetaData, String, Table, Text

from relevance_search.core.database.search import (
    SearchConfiguration,
    clear_search_configurations,
)
from relevance_search.core.settings import SearchSettings, clear_settings_cache


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def _isolated_caches() -> Generator[None]:
    """Drop cached settings and model configurations around every test."""
    clear_settings_cache()
    clear_search_configurations()
    yield
    clear_settings_cache()
    clear_search_configurations()


@pytest.fixture
def search_settings() -> SearchSettings:
    """Default search settings, independent of the environment."""
    return SearchSettings(
        threshold_divisor=4.0,
        relevance_label="relevance",
        full_text_label="full_text_match",
        like_escape_char="/",
        max_query_length=500,
        default_dialect=None,
        log_statements=False,
    )


# ============================================================================
# Schema Fixtures
# ============================================================================


@pytest.fixture
def tables() -> SimpleNamespace:
    """users -> posts -> comments tables on a fresh MetaData.

    Returns:
        Namespace with ``metadata``, ``users``, ``posts`` and ``comments``.
    """
    metadata = MetaData()
    users = Table(
        "users",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("first_name", String(100), nullable=False),
        Column("last_name", String(100), nullable=False),
        Column("email", String(255)),
        Column("active", Boolean, default=True),
    )
    posts = Table(
        "posts",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("user_id", ForeignKey("users.id"), nullable=False),
        Column("title", String(200), nullable=False),
        Column("body", Text),
    )
    comments = Table(
        "comments",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("post_id", ForeignKey("posts.id"), nullable=False),
        Column("content", Text, nullable=False),
    )
    return SimpleNamespace(metadata=metadata, users=users, posts=posts, comments=comments)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def name_config() -> SearchConfiguration:
    """``{first_name: 10, last_name: 5}`` on users (weight sum 15)."""
    return SearchConfiguration.from_mapping(
        {"first_name": 10, "last_name": 5},
        primary_table="users",
    )


@pytest.fixture
def post_config() -> SearchConfiguration:
    """Names plus two columns on the joined posts table (weight sum 18)."""
    return SearchConfiguration.from_mapping(
        {
            "first_name": 10,
            "last_name": 5,
            "posts.title": 2,
            "posts.body": 1,
        },
        {"posts": ["users.id", "posts.user_id"]},
        primary_table="users",
    )


@pytest.fixture
def comment_config() -> SearchConfiguration:
    """Columns reached through a users -> posts -> comments join chain."""
    return SearchConfiguration.from_mapping(
        {"first_name": 10, "comments.content": 1},
        {
            "posts": ["users.id", "posts.user_id"],
            "comments": ["posts.id", "comments.post_id"],
        },
        primary_table="users",
    )
