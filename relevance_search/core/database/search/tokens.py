"""Search string tokenization and per-call search requests.

Tokens are lowercase, whitespace-delimited words. The full lowercased
phrase is kept alongside them for phrase-level scoring.

    request = SearchRequest("  John   Doe ")
    request.tokens   # ('john', 'doe')
    request.phrase   # 'john doe'

Token values never reach SQL as text; they are bound parameters, and
``escape_like`` neutralises ``%`` and ``_`` before a token becomes part
of a LIKE pattern.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


def tokenize(search: str | None) -> tuple[str, ...]:
    """Split a search string into lowercase tokens.

    Args:
        search: Raw search string

    Returns:
        Non-empty tokens in input order (duplicates kept)
    """
    if not search:
        return ()
    return tuple(search.lower().split())


def normalize_phrase(search: str | None) -> str:
    """Return the trimmed, lowercased search phrase."""
    if not search:
        return ""
    return search.strip().lower()


def escape_like(value: str, escape_char: str = "/") -> str:
    """Escape LIKE wildcards so a value only ever matches literally.

    Args:
        value: Raw token value
        escape_char: Escape character used in the ``ESCAPE`` clause

    Returns:
        Escaped value

    Example:
        >>> escape_like("50%_off")
        '50/%/_off'
    """
    return (
        value.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )


def truncate_search(search: str, max_length: int) -> str:
    """Cut an oversized search string down to ``max_length`` characters."""
    if len(search) <= max_length:
        return search
    logger.warning(
        "Search string truncated from %d to %d characters",
        len(search),
        max_length,
    )
    return search[:max_length]


@dataclass(frozen=True, slots=True)
class SearchRequest:
    """Per-call search input.

    Attributes:
        search: Raw search string
        threshold: Minimum relevance; None means "use the default"
            (0 and negative values are honoured as given)
        prioritize_full_text: Also select the ``full_text_match`` flag column
        full_text_only: Drop rows where no column contains the whole phrase
    """

    search: str
    threshold: float | None = None
    prioritize_full_text: bool = False
    full_text_only: bool = False

    @property
    def tokens(self) -> tuple[str, ...]:
        """Lowercase whitespace-delimited tokens."""
        return tokenize(self.search)

    @property
    def phrase(self) -> str:
        """Trimmed, lowercased full phrase."""
        return normalize_phrase(self.search)

    @property
    def is_empty(self) -> bool:
        """True when the search has no tokens (every row scores 0)."""
        return not self.tokens

    def resolve_threshold(self, weight_sum: float, divisor: float = 4.0) -> float:
        """Return the explicit threshold, or ``weight_sum / divisor``.

        Args:
            weight_sum: Sum of the configured column weights
            divisor: Default threshold divisor

        Returns:
            Threshold to compare relevance against
        """
        if self.threshold is not None:
            return self.threshold
        return weight_sum / divisor


__all__ = [
    "SearchRequest",
    "escape_like",
    "normalize_phrase",
    "tokenize",
    "truncate_search",
]
