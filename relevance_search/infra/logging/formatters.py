"""JSON Lines formatter.

Each record becomes one JSON object. Keys named in ``fmt_keys`` map to
LogRecord attributes, ``static`` fields are added verbatim, and anything
passed through ``extra=`` (token counts, thresholds, dialect names) is
copied as a top-level key.
"""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging
from typing import Any

DEFAULT_FMT_KEYS = {"level": "levelname", "logger": "name", "message": "message"}

# Attributes every LogRecord carries; only the ones set via ``extra=`` remain
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None)),
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Format records as single-line JSON with a UTC ``timestamp``.

    Example output:
        {"level": "DEBUG", "logger": "relevance_search.core.database.search.query",
         "message": "Built relevance search", "timestamp": "2025-01-01T00:00:00.123Z",
         "service": "relevance-search", "tokens": 2, "threshold": 4.5}
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
    ) -> None:
        super().__init__()
        self.fmt_keys = dict(fmt_keys or DEFAULT_FMT_KEYS)
        self.static = dict(static or {})

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        payload = {key: getattr(record, attr, None) for key, attr in self.fmt_keys.items()}
        payload["timestamp"] = _utc_timestamp(record.created)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack_trace"] = self.formatStack(record.stack_info)

        payload.update(self.static)
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and key not in payload
        )
        # json.dumps escapes embedded newlines, so tracebacks stay on one line
        return json.dumps(payload, ensure_ascii=False, default=str)


def _utc_timestamp(created: float) -> str:
    moment = datetime.fromtimestamp(created, tz=UTC)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


__all__ = ["DEFAULT_FMT_KEYS", "JSONFormatter"]
