"""Relevance search configuration settings.

Provides centralized search settings that can be loaded from
environment variables with SEARCH_ prefix.

Features controlled:
- Default threshold divisor (threshold = weight sum / divisor)
- Labels of the computed relevance and full-text columns
- LIKE escape character used for token patterns
- Input length limit
- Default dialect strategy and statement logging
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchSettings(BaseSettings):
    """Relevance search configuration settings.

    Can be loaded from environment variables with SEARCH_ prefix.
    """

    # Scoring
    threshold_divisor: float = Field(
        default=4.0,
        gt=0.0,
        description="Default threshold is the configured weight sum divided by this value",
    )

    # Generated column names
    relevance_label: str = Field(
        default="relevance",
        pattern=r"^[a-zA-Z_][a-zA-Z0-9_]*$",
        description="Name of the computed relevance column",
    )
    full_text_label: str = Field(
        default="full_text_match",
        pattern=r"^[a-zA-Z_][a-zA-Z0-9_]*$",
        description="Name of the computed full-phrase match column",
    )

    # Pattern matching
    like_escape_char: str = Field(
        default="/",
        min_length=1,
        max_length=1,
        description="Escape character for LIKE patterns built from search tokens",
    )

    # Input limits
    max_query_length: int = Field(default=500, ge=1, description="Maximum search length")

    # Dialect and diagnostics
    default_dialect: str | None = Field(
        default=None,
        description="Dialect name used when the caller does not pass one",
    )
    log_statements: bool = Field(
        default=False,
        description="Log compiled search SQL at DEBUG level",
    )

    model_config = SettingsConfigDict(
        env_prefix="SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )


__all__ = ["SearchSettings"]
