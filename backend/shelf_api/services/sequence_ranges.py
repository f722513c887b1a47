"""Compact rendering of series sequence numbers ("1-3, 5, 7-8")."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

_NUMERIC_SEQUENCE = re.compile(r"^(\d+|\d+\.\d*|\d*\.\d+)$")


@dataclass(slots=True)
class SequenceRange:
    start: float | str
    end: float | str
    is_numeric: bool


def is_numeric_sequence(token: str) -> bool:
    """Return whether ``token`` is a plain decimal literal such as "3", "3.5", ".5" or "3."."""

    return bool(_NUMERIC_SEQUENCE.match(token))


def _render(value: float | str) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def collect_ranges(tokens: Iterable[str]) -> list[SequenceRange]:
    """Group ascending sequence tokens into runs of consecutive integers."""

    ranges: list[SequenceRange] = []
    for token in tokens:
        is_numeric = is_numeric_sequence(token)
        value: float | str = float(token) if is_numeric else token
        last = ranges[-1] if ranges else None
        if last is not None and is_numeric and last.is_numeric and last.end + 1 == value:
            last.end = value
        else:
            ranges.append(SequenceRange(start=value, end=value, is_numeric=is_numeric))
    return ranges


def compact_sequence_list(tokens: Iterable[str]) -> str:
    """Render ascending sequence tokens as compact text.

    >>> compact_sequence_list(["1", "2", "3", "5", "7", "8"])
    '1-3, 5, 7-8'
    >>> compact_sequence_list(["1", "1.5", "2"])
    '1, 1.5, 2'
    """

    rendered = []
    for entry in collect_ranges(tokens):
        if entry.start == entry.end:
            rendered.append(_render(entry.start))
        else:
            rendered.append(f"{_render(entry.start)}-{_render(entry.end)}")
    return ", ".join(rendered)
