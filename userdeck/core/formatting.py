"""String normalisation for names, usernames and search terms."""

from __future__ import annotations

import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
_REMOVED = re.compile(r"['_.\-]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _squash(text: str) -> str:
    return _WHITESPACE.sub(" ", text.strip())


def format_title(title: str) -> str:
    """Trim, collapse whitespace and capitalise the first letter of each word."""
    return " ".join(word[:1].upper() + word[1:] for word in _squash(title).split(" "))


def point_slug(text: str) -> str:
    """Lowercase ASCII slug: "Jóhn O'Doe" → "john-odoe"."""
    ascii_text = (
        unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    )
    cleaned = _REMOVED.sub("", ascii_text.lower())
    return _NON_ALNUM.sub("-", cleaned).strip("-")


def format_search(search: str) -> str:
    """LIKE pattern matching *search* anywhere in the column."""
    return f"%{_squash(search).lower()}%"
