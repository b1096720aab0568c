"""Logging configuration setup.

Library modules only call ``logging.getLogger(__name__)``. Applications
embedding relevance_search either keep their own configuration (records
propagate to it) or call ``setup_logging()`` once at startup, which
installs a single console handler on the root logger through
``logging.config.dictConfig``.
"""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from relevance_search.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False

LIBRARY_LOGGER = "relevance_search"


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **overrides: Any,
) -> None:
    """Configure logging from settings, once per process.

    Args:
        log_settings: Settings to use; loaded via get_logging_settings() if omitted.
        force: Reconfigure even if logging was already set up.
        **overrides: configure_logging() arguments that win over the settings.
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from relevance_search.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    configure_logging(**{**log_settings.to_logging_kwargs(), **overrides})
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    service_name: str = "relevance-search",
    capture_warnings: bool = True,
    include_function_name: bool = False,
    library_level: str | None = None,
    **kwargs: Any,
) -> None:
    """Apply the console logging configuration.

    Args:
        log_level: Root logger level.
        json_logs: Emit JSON Lines instead of plain text.
        service_name: Static ``service`` field of JSON records.
        capture_warnings: Route ``warnings.warn()`` through logging.
        include_function_name: Add the emitting function to each record.
        library_level: Level of the ``relevance_search`` loggers, e.g. DEBUG
            to see generated SQL while the rest of the application stays at INFO.
        **kwargs: Unknown options; logged and ignored.

    Example:
        from relevance_search.core.settings import get_logging_settings

        configure_logging(**get_logging_settings().to_logging_kwargs())
    """
    logging.config.dictConfig(
        build_logging_config(
            log_level=log_level,
            json_logs=json_logs,
            service_name=service_name,
            include_function_name=include_function_name,
            library_level=library_level,
        ),
    )
    logging.captureWarnings(capture_warnings)

    if kwargs:
        logger.debug("Ignoring unknown logging options: %s", ", ".join(sorted(kwargs)))


def build_logging_config(
    log_level: str,
    json_logs: bool,
    service_name: str,
    include_function_name: bool,
    library_level: str | None = None,
) -> dict[str, Any]:
    """Build the ``dictConfig`` mapping used by configure_logging().

    Returns:
        Configuration with one ``default`` formatter, one ``console``
        handler on the root logger and, when ``library_level`` is given,
        a level override for the ``relevance_search`` logger tree.
    """
    if json_logs:
        fmt_keys = {"level": "levelname", "logger": "name", "message": "message"}
        if include_function_name:
            fmt_keys["function"] = "funcName"
        formatter: dict[str, Any] = {
            "()": "relevance_search.infra.logging.formatters.JSONFormatter",
            "fmt_keys": fmt_keys,
            "static": {"service": service_name},
        }
    else:
        fields = ["%(asctime)s", "%(levelname)s", "%(name)s"]
        if include_function_name:
            fields.append("%(funcName)s")
        formatter = {
            "format": " - ".join([*fields, "%(message)s"]),
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": formatter},
        "handlers": {
            "console": {"class": "logging.StreamHandler", "formatter": "default"},
        },
        "root": {"level": log_level.upper(), "handlers": ["console"]},
    }
    if library_level is not None:
        config["loggers"] = {LIBRARY_LOGGER: {"level": library_level.upper()}}
    return config


__all__ = ["LIBRARY_LOGGER", "build_logging_config", "configure_logging", "setup_logging"]
