"""Relevance-ranked search query generation for SQLAlchemy.

    from relevance_search import SearchConfiguration, relevance_select

    config = SearchConfiguration.from_mapping(
        {"first_name": 10, "last_name": 5, "posts.title": 2},
        {"posts": ["users.id", "posts.user_id"]},
        primary_table="users",
    )
    query = relevance_select(select(users), config, users, "john doe")
"""

from relevance_search.core.database.search import (
    MatchTier,
    RelevanceSearchableMixin,
    RelevanceSearchFilter,
    RelevanceSelect,
    SearchConfiguration,
    SearchRequest,
    relevance_select,
    search_relevance,
)
from relevance_search.core.exceptions import ConfigurationError, RelevanceSearchError

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "MatchTier",
    "RelevanceSearchError",
    "RelevanceSearchFilter",
    "RelevanceSearchableMixin",
    "RelevanceSelect",
    "SearchConfiguration",
    "SearchRequest",
    "__version__",
    "relevance_select",
    "search_relevance",
]
