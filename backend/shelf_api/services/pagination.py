"""Page slicing and ``include`` token parsing shared by the listing endpoints."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class IncludeSet:
    """Normalized set of optional overlay tokens requested by a client."""

    tokens: tuple[str, ...] = ()

    def __contains__(self, token: object) -> bool:
        return isinstance(token, str) and token.lower() in self.tokens

    def joined(self) -> str:
        return ",".join(self.tokens)


def parse_include(raw: str | None) -> IncludeSet:
    """Split ``raw`` on commas, trimming and lower-casing each token."""

    tokens = (token.strip().lower() for token in (raw or "").split(","))
    return IncludeSet(tuple(token for token in tokens if token))


def parse_int(raw: str | None, default: int = 0) -> int:
    """Parse a numeric query value, falling back to ``default`` when invalid."""

    if raw is None or raw == "":
        return default
    try:
        return int(float(raw))
    except (ValueError, OverflowError):
        return default


def paginate(rows: Sequence[T], *, limit: int, page: int) -> list[T]:
    """Return the ``page``-th slice of ``limit`` rows; ``limit == 0`` returns everything."""

    if not limit:
        return list(rows)
    if limit < 0 or page < 0:
        return []
    offset = page * limit
    return list(rows[offset : offset + limit])
