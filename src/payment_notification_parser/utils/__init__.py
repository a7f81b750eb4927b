"""Utility functions for the payment notification parser."""

import re
import unicodedata
from collections.abc import Iterable

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Normalize notification text before extraction.

    NFKC folds full-width forms that payment apps mix freely into ASCII
    ("￥２５．５０" becomes "¥25.50", "：" becomes ":"). Runs of whitespace,
    including newlines from expanded bodies, collapse to one space.

    Args:
        text: Raw notification text.

    Returns:
        Normalized, trimmed text.
    """
    text = unicodedata.normalize("NFKC", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def contains_any(text: str, phrases: Iterable[str]) -> bool:
    """Case-insensitive substring test against a set of phrases."""
    folded = text.casefold()
    return any(p.casefold() in folded for p in phrases)
