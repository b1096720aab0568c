"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from relevance_search.core.settings.loader import get_search_settings

    settings = get_search_settings()  # First call: loads and validates
    settings = get_search_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the cache to force reload:
    get_search_settings.cache_clear()

    Or pass an explicit instance:
    settings = SearchSettings(threshold_divisor=2)
"""

from __future__ import annotations

from functools import lru_cache

from .logs import LoggingSettings
from .search import SearchSettings


@lru_cache(maxsize=1)
def get_search_settings() -> SearchSettings:
    """Get cached relevance search settings.

    Returns:
        Validated and frozen SearchSettings instance.
    """
    return SearchSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_settings_cache() -> None:
    """Clear all cached settings so the next access reloads them."""
    get_search_settings.cache_clear()
    get_logging_settings.cache_clear()


__all__ = [
    "clear_settings_cache",
    "get_logging_settings",
    "get_search_settings",
]
