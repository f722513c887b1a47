"""Text helpers shared by sorting, filtering and search."""
from __future__ import annotations

import base64
import unicodedata
from typing import Sequence
from urllib.parse import quote, unquote


def _split_leading_article(text: str, prefixes: Sequence[str]) -> tuple[str, str | None]:
    lowered = text.lower()
    for prefix in prefixes:
        if prefix and lowered.startswith(f"{prefix.lower()} "):
            return text[len(prefix) + 1 :], text[: len(prefix)]
    return text, None


def title_ignore_prefix(text: str | None, prefixes: Sequence[str]) -> str:
    """Return ``text`` without its leading article ("The Hobbit" -> "Hobbit")."""

    if not text:
        return ""
    remainder, _ = _split_leading_article(text, prefixes)
    return remainder


def title_prefix_at_end(text: str | None, prefixes: Sequence[str]) -> str:
    """Move a leading article to the end ("The Hobbit" -> "Hobbit, The")."""

    if not text:
        return ""
    remainder, prefix = _split_leading_article(text, prefixes)
    return f"{remainder}, {prefix}" if prefix else text


def clean_for_search(text: str) -> str:
    """Lower-case ``text`` and strip combining accents for substring matching."""

    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def encode_filter_value(value: str) -> str:
    """Encode a filter value the way clients put it in ``filter=group.value``."""

    return quote(base64.b64encode(value.encode("utf-8")).decode("ascii"), safe="")


def decode_filter_value(value: str) -> str:
    """Reverse :func:`encode_filter_value`; invalid input decodes to an empty string."""

    try:
        return base64.b64decode(unquote(value)).decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return ""
