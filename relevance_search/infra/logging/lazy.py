"""Deferred log arguments.

Rendering a statement to SQL text is expensive and only worth doing when
the record is actually emitted:

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug("SQL: %s", lambda: compile_sql(stmt, dialect))
"""

from __future__ import annotations

from collections.abc import Callable
import logging
from typing import Any


def _resolve(value: Any) -> Any:
    return value() if callable(value) else value


class LazyString:
    """String whose value is computed on every ``str()`` call."""

    __slots__ = ("_func",)

    def __init__(self, func: Callable[[], Any]) -> None:
        self._func = func

    def __str__(self) -> str:
        return str(self._func())

    def __repr__(self) -> str:
        return f"LazyString({self._func!r})"


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Adapter that calls callable messages and arguments only when enabled.

    Context passed to ``get_lazy_logger`` is merged into each record's
    ``extra``; call-site values win on conflicts.
    """

    def log(self, level: int, msg: Any, *args: Any, **kwargs: Any) -> None:
        if not self.isEnabledFor(level):
            return
        super().log(level, _resolve(msg), *(_resolve(arg) for arg in args), **kwargs)

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        if self.extra:
            kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Return a lazy adapter around ``logging.getLogger(name)``.

    Args:
        name: Logger name (usually __name__)
        **context: Fields added to every record
    """
    return LazyLoggerAdapter(logging.getLogger(name), context)


__all__ = ["LazyLoggerAdapter", "LazyString", "get_lazy_logger"]
