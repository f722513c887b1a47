"""Natural, case- and accent-insensitive ordering (e.g. "Track 2" before "Track 10")."""
from __future__ import annotations

import re
import unicodedata
from numbers import Real
from typing import Any

_DIGIT_RUN = re.compile(r"(\d+)")


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    return stripped.casefold()


def natural_key(value: Any) -> tuple[tuple[int, int | str], ...]:
    """Generate a sort key comparing digit runs by value and text case-insensitively.

    ``None`` ranks as the empty string. Each fragment is tagged so numeric and
    textual fragments never get compared with each other directly.
    """

    text = "" if value is None else _fold(str(value))
    key: list[tuple[int, int | str]] = []
    for fragment in _DIGIT_RUN.split(text):
        if not fragment:
            continue
        if fragment.isdecimal():
            key.append((0, int(fragment)))
        else:
            key.append((1, fragment))
    return tuple(key)


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def compare_natural(left: Any, right: Any) -> int:
    """Return -1, 0 or 1 ordering ``left`` against ``right``.

    Two numbers compare as plain numbers; anything else compares through
    :func:`natural_key`.
    """

    if _is_number(left) and _is_number(right):
        return (left > right) - (left < right)
    left_key = natural_key(left)
    right_key = natural_key(right)
    return (left_key > right_key) - (left_key < right_key)


def natural_sorted(values: list[Any]) -> list[Any]:
    """Return ``values`` in ascending natural order."""

    return sorted(values, key=natural_key)
