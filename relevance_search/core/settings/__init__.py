"""Pydantic Settings v2 configuration.

Settings come from environment variables (or a local ``.env`` file) and are
immutable once loaded:

    from relevance_search.core.settings import get_search_settings

    settings = get_search_settings()
    print(settings.threshold_divisor)

Environment prefixes:
    SEARCH_  relevance search behaviour (SearchSettings)
    LOG_     logging (LoggingSettings)
"""

from __future__ import annotations

from .loader import clear_settings_cache, get_logging_settings, get_search_settings
from .logs import LoggingSettings
from .search import SearchSettings

__all__ = [
    "LoggingSettings",
    "SearchSettings",
    "clear_settings_cache",
    "get_logging_settings",
    "get_search_settings",
]
