"""Relevance-ranked search infrastructure.

Scores rows by how well weighted columns match a free-text query using
portable LIKE / equality checks, then filters by a relevance threshold
and orders by relevance.

Core Components:
- SearchConfiguration: Validated searchable columns and joins of one entity
- SearchRequest: Per-call search string, threshold and full-text flags
- RelevancePlan / MatchTier: The weighted scoring terms
- DialectStrategy: Per-engine placement rules

Search Functions:
- search_relevance: Add relevance scoring to any select statement
- relevance_select: Chainable scored query (RelevanceSelect)
- RelevanceSearchFilter: Explicit StatementFilter form

Models:
- RelevanceSearchableMixin: ``__searchable__`` configuration on models

Usage:
    from relevance_search.core.database.search import (
        SearchConfiguration,
        relevance_select,
    )

    config = SearchConfiguration.from_mapping(
        {"first_name": 10, "last_name": 5},
        primary_table="users",
    )
    query = relevance_select(select(users), config, users, "john doe")
    rows = (await session.execute(query.statement)).all()
"""

from relevance_search.core.database.search.dialects import (
    DEFAULT_STRATEGY,
    DialectStrategy,
    ThresholdPlacement,
    get_dialect_strategy,
    register_dialect_strategy,
)
from relevance_search.core.database.search.expressions import (
    PHRASE_TIERS,
    TOKEN_TIERS,
    MatchTier,
    RelevancePlan,
    ScoreTerm,
    tier_condition,
)
from relevance_search.core.database.search.mixins import (
    RelevanceSearchableMixin,
    clear_search_configurations,
)
from relevance_search.core.database.search.query import (
    RelevanceSearchFilter,
    RelevanceSelect,
    compile_sql,
    relevance_select,
    search_relevance,
)
from relevance_search.core.database.search.schema import (
    JoinSpec,
    SearchableColumn,
    SearchConfiguration,
    qualify_column,
)
from relevance_search.core.database.search.tokens import (
    SearchRequest,
    escape_like,
    normalize_phrase,
    tokenize,
)

__all__ = [
    "DEFAULT_STRATEGY",
    "PHRASE_TIERS",
    "TOKEN_TIERS",
    "DialectStrategy",
    "JoinSpec",
    "MatchTier",
    "RelevancePlan",
    "RelevanceSearchFilter",
    "RelevanceSearchableMixin",
    "RelevanceSelect",
    "ScoreTerm",
    "SearchConfiguration",
    "SearchRequest",
    "SearchableColumn",
    "ThresholdPlacement",
    "clear_search_configurations",
    "compile_sql",
    "escape_like",
    "get_dialect_strategy",
    "normalize_phrase",
    "qualify_column",
    "register_dialect_strategy",
    "relevance_select",
    "search_relevance",
    "tier_condition",
    "tokenize",
]
