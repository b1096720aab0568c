"""Logging configuration settings."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Logging configuration used by ``setup_logging()``.

    Environment variables use LOG_ prefix.
    Example: LOG_LEVEL=WARNING, LOG_LIBRARY_LEVEL=DEBUG
    """

    service_name: str = Field(
        default="relevance-search",
        description="Static 'service' field of JSON records",
    )
    level: LogLevel = Field(default="INFO", description="Root logger level")
    library_level: LogLevel | None = Field(
        default=None,
        description="Level of the relevance_search loggers; None inherits the root level",
    )
    json_logs: bool = Field(
        default=True,
        alias="json",
        description="One JSON object per line instead of plain text",
    )
    capture_warnings: bool = Field(
        default=True,
        description="Route warnings.warn() through logging",
    )
    include_function_name: bool = Field(
        default=False,
        description="Add the emitting function to each record",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``configure_logging()``."""
        return {
            "log_level": self.level,
            "library_level": self.library_level,
            "json_logs": self.json_logs,
            "service_name": self.service_name,
            "capture_warnings": self.capture_warnings,
            "include_function_name": self.include_function_name,
        }


__all__ = ["LogLevel", "LoggingSettings"]
