"""Composite natural sorting for library item rows and series summaries.

A sort request is turned into an ordered list of :class:`SortKey` objects by
:func:`build_sort_keys`; :func:`sort_items` then applies them as one
lexicographic order where the first non-equal key wins. Python's sort is
stable, so rows that tie on every key keep their input order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cmp_to_key
from typing import TYPE_CHECKING, Any, Callable, Sequence, TypeVar

from ..domain import LibraryItem, MediaType
from .natural_sort import compare_natural

if TYPE_CHECKING:
    from .series import SeriesSummary

logger = logging.getLogger(__name__)

T = TypeVar("T")
Extractor = Callable[[Any], Any]

TITLE_FIELD = "media.metadata.title"
TITLE_IGNORE_PREFIX_FIELD = "media.metadata.titleIgnorePrefix"
SEQUENCE_FIELD = "sequence"


@dataclass(slots=True, frozen=True)
class SortKey:
    """One step of a composite order."""

    name: str
    extractor: Extractor
    descending: bool = False

    def compare(self, left: Any, right: Any) -> int:
        """Compare two already extracted values in this key's direction."""

        result = compare_natural(left, right)
        return -result if self.descending else result


@dataclass(slots=True, frozen=True)
class SortRequest:
    """Parameters that decide how library item rows are ordered."""

    sort_by: str | None = None
    descending: bool = False
    filter_series: str | None = None
    collapse_series: bool = False
    media_type: MediaType = "book"
    ignore_prefix: bool = False


ITEM_SELECTORS: dict[str, Extractor] = {
    TITLE_FIELD: lambda item: item.metadata.title,
    TITLE_IGNORE_PREFIX_FIELD: lambda item: item.metadata.title_ignore_prefix,
    "media.metadata.subtitle": lambda item: item.metadata.subtitle,
    "media.metadata.authorName": lambda item: item.metadata.author_name,
    "media.metadata.authorNameLF": lambda item: item.metadata.author_name_lf,
    "media.metadata.narratorName": lambda item: item.metadata.narrator_name,
    "media.metadata.seriesName": lambda item: item.metadata.series_name,
    "media.metadata.publishedYear": lambda item: item.metadata.published_year,
    "media.metadata.language": lambda item: item.metadata.language,
    "media.metadata.author": lambda item: item.metadata.author,
    "media.duration": lambda item: item.media.duration,
    "media.size": lambda item: item.media.size,
    "media.numTracks": lambda item: item.media.num_tracks,
    "addedAt": lambda item: item.added_at,
    "updatedAt": lambda item: item.updated_at,
}


def _empty(_: Any) -> str:
    return ""


def resolve_selector(field: str) -> Extractor:
    """Return the accessor for ``field``; unknown selectors resolve to ``""``."""

    extractor = ITEM_SELECTORS.get(field)
    if extractor is None:
        logger.debug("Ignoring unsupported sort selector %r", field)
        return _empty
    return extractor


def series_sequence(series_id: str) -> Extractor:
    """Accessor for the item's sequence token within ``series_id``."""

    def extract(item: LibraryItem) -> str | None:
        membership = item.metadata.get_series(series_id)
        return membership.sequence if membership else None

    return extract


def collapsed_name(ignore_prefix: bool) -> Extractor:
    """Accessor for a collapsed row's series name; plain rows resolve to ``""``."""

    def extract(item: LibraryItem) -> str:
        if item.collapsed_series is None:
            return ""
        if ignore_prefix:
            return item.collapsed_series.name_ignore_prefix
        return item.collapsed_series.name

    return extract


def display_title(ignore_prefix: bool) -> Extractor:
    """Accessor for the collapsed series name, falling back to the item title."""

    def extract(item: LibraryItem) -> str:
        collapsed = item.collapsed_series
        if ignore_prefix:
            if collapsed is not None and collapsed.name_ignore_prefix:
                return collapsed.name_ignore_prefix
            return item.metadata.title_ignore_prefix
        if collapsed is not None and collapsed.name:
            return collapsed.name
        return item.metadata.title

    return extract


def primary_series_sort_title(item: LibraryItem) -> str | None:
    """Sort title of the item's first series, e.g. "Discworld #3"."""

    if not item.metadata.series:
        return None
    return item.metadata.series[0].sort_title


def build_sort_keys(request: SortRequest) -> list[SortKey]:
    """Assemble the ordered comparator chain for ``request``."""

    keys: list[SortKey] = []
    is_book = request.media_type == "book"

    if request.filter_series and not request.sort_by:
        keys.append(SortKey("sequence", series_sequence(request.filter_series)))
        keys.append(SortKey("title", display_title(request.ignore_prefix)))

    if not request.sort_by:
        return keys

    field = request.sort_by
    sort_by_title = field == TITLE_FIELD
    if sort_by_title and request.ignore_prefix:
        field = TITLE_IGNORE_PREFIX_FIELD
    sort_by_sequence = bool(request.filter_series) and field == SEQUENCE_FIELD

    if request.collapse_series and not (sort_by_title or sort_by_sequence):
        keys.append(SortKey("collapsedSeries", collapsed_name(request.ignore_prefix)))

    if is_book and sort_by_sequence:
        primary = series_sequence(request.filter_series)  # type: ignore[arg-type]
    elif is_book and sort_by_title:
        by_title = resolve_selector(field)
        by_collapsed_name = collapsed_name(request.ignore_prefix)

        def primary(item: LibraryItem) -> Any:
            if item.collapsed_series is not None:
                return by_collapsed_name(item)
            return by_title(item)

    else:
        primary = resolve_selector(field)
    keys.append(SortKey(field, primary, descending=request.descending))

    if is_book and "author" in request.sort_by:
        keys.append(SortKey("seriesSortTitle", primary_series_sort_title))

    return keys


def sort_by_keys(rows: Sequence[T], keys: Sequence[SortKey]) -> list[T]:
    """Stable-sort ``rows`` by the composite order described by ``keys``."""

    if not keys:
        return list(rows)

    values = [tuple(key.extractor(row) for key in keys) for row in rows]

    def compare(left: int, right: int) -> int:
        for key, left_value, right_value in zip(keys, values[left], values[right]):
            result = key.compare(left_value, right_value)
            if result:
                return result
        return 0

    order = sorted(range(len(rows)), key=cmp_to_key(compare))
    return [rows[index] for index in order]


def sort_items(items: Sequence[LibraryItem], request: SortRequest) -> list[LibraryItem]:
    """Order library rows for the items listing."""

    return sort_by_keys(items, build_sort_keys(request))


SERIES_SELECTORS: dict[str, Extractor] = {
    "numBooks": lambda summary: len(summary.books),
    "totalDuration": lambda summary: summary.total_duration,
    "addedAt": lambda summary: summary.added_at,
    "lastBookUpdated": lambda summary: max((book.updated_at for book in summary.books), default=0),
    "lastBookAdded": lambda summary: max((book.added_at for book in summary.books), default=0),
}


def build_series_sort_key(sort_by: str | None, descending: bool, ignore_prefix: bool) -> SortKey:
    """Single key ordering series summaries; unknown fields sort by name."""

    extractor = SERIES_SELECTORS.get(sort_by or "")
    if extractor is None:
        if ignore_prefix:
            extractor = lambda summary: summary.name_ignore_prefix_sort  # noqa: E731
        else:
            extractor = lambda summary: summary.name  # noqa: E731
        return SortKey("name", extractor, descending=descending)
    return SortKey(sort_by or "", extractor, descending=descending)


def sort_series(
    summaries: Sequence[SeriesSummary],
    *,
    sort_by: str | None,
    descending: bool,
    ignore_prefix: bool,
) -> list[SeriesSummary]:
    """Order series summaries for the series listing."""

    return sort_by_keys(summaries, [build_series_sort_key(sort_by, descending, ignore_prefix)])
