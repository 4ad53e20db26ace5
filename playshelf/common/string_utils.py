"""String normalization utilities for matching and cache keys."""

import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_string(text: str) -> str:
    """
    Normalize a string for matching by converting to lowercase and stripping whitespace.

    Args:
        text: String to normalize

    Returns:
        Normalized string (lowercase, stripped)

    Example:
        >>> normalize_string("  Half-Life 2  ")
        'half-life 2'
    """
    return text.strip().lower()


def normalize_query(query: str) -> str:
    """
    Normalize a search query for use as a cache key.

    Trims, collapses internal whitespace runs to a single space and
    lowercases, so queries that differ only in casing or spacing share
    a key.

    Example:
        >>> normalize_query("  Foo   Bar  ")
        'foo bar'
    """
    return _WHITESPACE_RE.sub(" ", query.strip()).lower()


def names_equal(a: str, b: str) -> bool:
    """Case-insensitive exact comparison of two names (ends trimmed)."""
    return normalize_string(a) == normalize_string(b)


def name_contains(haystack: str, needle: str) -> bool:
    """
    Case-insensitive containment check.

    Example:
        >>> name_contains("The Witcher 3: Wild Hunt", "witcher 3")
        True
    """
    return normalize_string(needle) in normalize_string(haystack)
