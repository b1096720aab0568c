"""Mixin for adding relevance search to SQLAlchemy models.

Usage:
    class User(Base, RelevanceSearchableMixin):
        __tablename__ = "users"
        __searchable__ = {
            "columns": {
                "first_name": 10,
                "last_name": 10,
                "email": 5,
                "posts.title": 2,
            },
            "joins": {
                "posts": ["users.id", "posts.user_id"],
            },
        }

        id: Mapped[int] = mapped_column(primary_key=True)
        first_name: Mapped[str] = mapped_column(String(100))
        ...

    query = User.relevance_search("john doe", prioritize_full_text=True)
    users = (await session.scalars(query.entities())).all()

``__searchable__`` keys:
- columns: ``{column reference: weight}`` (required); bare names belong to
  the model's own table
- joins: ``{joined table: [local key, foreign key]}``
- group_by: columns grouped instead of the primary key

The configuration is validated on first use, then cached for the lifetime
of the class. Concurrent first calls build it exactly once.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any, ClassVar
import weakref

from sqlalchemy import select

from relevance_search.core.database.search.query import RelevanceSelect, relevance_select
from relevance_search.core.database.search.schema import SearchConfiguration
from relevance_search.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from sqlalchemy import Select

    from relevance_search.core.database.search.query import Restriction
    from relevance_search.core.settings import SearchSettings

logger = logging.getLogger(__name__)

_configurations: weakref.WeakKeyDictionary[type, SearchConfiguration] = (
    weakref.WeakKeyDictionary()
)
_configuration_lock = threading.Lock()


class RelevanceSearchableMixin:
    """Mixin that adds relevance search to a declarative model.

    Subclasses must define:
    - __searchable__: Dict with a "columns" map and optional "joins" / "group_by"
    """

    __allow_unmapped__ = True

    __searchable__: ClassVar[dict[str, Any]] = {}

    @classmethod
    def search_configuration(cls) -> SearchConfiguration:
        """Return the cached, validated search configuration of this model.

        Raises:
            ConfigurationError: If ``__searchable__`` is invalid
        """
        cached = _configurations.get(cls)
        if cached is not None:
            return cached

        with _configuration_lock:
            cached = _configurations.get(cls)
            if cached is None:
                cached = cls._build_search_configuration()
                _configurations[cls] = cached
                logger.debug(
                    "Search configuration built for %s",
                    cls.__name__,
                    extra={"columns": len(cached.columns), "joins": len(cached.joins)},
                )
        return cached

    @classmethod
    def _build_search_configuration(cls) -> SearchConfiguration:
        table = getattr(cls, "__table__", None)
        if table is None:
            raise ConfigurationError(
                "Model is not mapped to a table",
                entity=cls.__name__,
            )

        spec = cls.__searchable__ or {}
        unknown = set(spec) - {"columns", "joins", "group_by"}
        if unknown:
            raise ConfigurationError(
                f"Unknown __searchable__ keys: {', '.join(sorted(unknown))}",
                entity=cls.__name__,
            )

        return SearchConfiguration.from_mapping(
            spec.get("columns") or {},
            spec.get("joins"),
            primary_table=table.name,
            group_by=spec.get("group_by"),
        )

    @classmethod
    def relevance_search(
        cls,
        search: str,
        *,
        threshold: float | None = None,
        prioritize_full_text: bool = False,
        full_text_only: bool = False,
        statement: Select[Any] | None = None,
        dialect: Any = None,
        restriction: Restriction | None = None,
        settings: SearchSettings | None = None,
    ) -> RelevanceSelect:
        """Search this model by relevance.

        Args:
            search: Free-text search string
            threshold: Minimum relevance; None uses the configured default
            prioritize_full_text: Also select the ``full_text_match`` flag column
            full_text_only: Only return rows where a column contains the phrase
            statement: Pre-search statement (defaults to ``select(cls)``)
            dialect: Dialect name, Dialect, Engine or Connection
            restriction: Callable applied to the inner statement
            settings: Search settings override

        Returns:
            Chainable scored query; ``.entities()`` yields model instances
        """
        return relevance_select(
            statement if statement is not None else select(cls),
            cls.search_configuration(),
            cls,
            search,
            model=cls,
            threshold=threshold,
            prioritize_full_text=prioritize_full_text,
            full_text_only=full_text_only,
            dialect=dialect,
            restriction=restriction,
            settings=settings,
        )


def clear_search_configurations() -> None:
    """Drop all cached model configurations (mainly for tests)."""
    with _configuration_lock:
        _configurations.clear()


__all__ = [
    "RelevanceSearchableMixin",
    "clear_search_configurations",
]
