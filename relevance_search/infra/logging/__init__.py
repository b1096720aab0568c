"""Logging infrastructure.

Basic usage:
    import logging

    from relevance_search.infra.logging import setup_logging

    setup_logging()  # reads LOG_* settings
    logger = logging.getLogger(__name__)

Lazy evaluation for expensive messages:
    from relevance_search.infra.logging import get_lazy_logger

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug("SQL: %s", lambda: str(stmt.compile()))
"""

from relevance_search.infra.logging.config import (
    build_logging_config,
    configure_logging,
    setup_logging,
)
from relevance_search.infra.logging.formatters import JSONFormatter
from relevance_search.infra.logging.lazy import LazyLoggerAdapter, LazyString, get_lazy_logger

__all__ = [
    "JSONFormatter",
    "LazyLoggerAdapter",
    "LazyString",
    "build_logging_config",
    "configure_logging",
    "get_lazy_logger",
    "setup_logging",
]
