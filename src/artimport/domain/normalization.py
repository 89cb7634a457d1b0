"""Text normalization used as the join key for matching."""

from __future__ import annotations

import re
import unicodedata

_NON_NAME_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_NON_TITLE_CHARS = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_ARTICLES = frozenset({"the", "a", "an"})


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def normalize_artist_name(name: str | None) -> str:
    """Lowercase, strip diacritics and punctuation (except hyphens), collapse whitespace.

    >>> normalize_artist_name("  José   Martínez ")
    'jose martinez'
    >>> normalize_artist_name("O'Connor, Mary-Jane")
    'oconnor mary-jane'

    Characters without an ASCII decomposition are dropped, so the result is always
    ASCII and the function is idempotent.
    """

    if not name:
        return ""
    cleaned = _NON_NAME_CHARS.sub("", strip_diacritics(name).lower())
    return collapse_whitespace(cleaned)


def name_tokens(normalized: str) -> list[str]:
    """Tokens of a normalized name that carry meaning (longer than one character)."""

    return [token for token in normalized.split(" ") if len(token) > 1]


def normalize_title(title: str | None) -> str:
    """Comparison form of an artwork title: no punctuation, no English articles."""

    if not title:
        return ""
    cleaned = collapse_whitespace(_NON_TITLE_CHARS.sub(" ", title.lower()))
    return " ".join(word for word in cleaned.split(" ") if word and word not in _ARTICLES)


def slugify(value: str) -> str:
    return "-".join(normalize_artist_name(value).replace("-", " ").split()) or "untitled"
