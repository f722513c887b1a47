"""Series summaries and series collapsing for book libraries."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Sequence

from ..domain import CollapsedSeries, LibraryItem, Series
from ..utils.text import title_ignore_prefix, title_prefix_at_end
from .natural_sort import natural_key

logger = logging.getLogger(__name__)

SeriesLookup = Callable[[str], "Series | None"]


@dataclass(slots=True)
class SeriesSummary:
    """A series as seen through the visible books of one request."""

    id: str
    name: str
    name_ignore_prefix: str
    name_ignore_prefix_sort: str
    series: Series
    books: list[LibraryItem] = field(default_factory=list)
    total_duration: float = 0.0

    @property
    def added_at(self) -> int:
        return self.series.added_at

    def sequence_of(self, item: LibraryItem) -> str | None:
        membership = item.metadata.get_series(self.id)
        return membership.sequence if membership else None

    def to_collapsed(self) -> CollapsedSeries:
        return CollapsedSeries(
            id=self.id,
            name=self.name,
            name_ignore_prefix=self.name_ignore_prefix,
            books=tuple(self.books),
            total_duration=self.total_duration,
            added_at=self.added_at,
        )

    def to_json(self, *, minified: bool) -> dict[str, Any]:
        books = []
        for book in self.books:
            book_json = book.to_json_minified() if minified else book.to_json_expanded()
            book_json["sequence"] = self.sequence_of(book)
            books.append(book_json)
        payload = self.series.to_json()
        payload.update(
            {
                "nameIgnorePrefix": self.name_ignore_prefix,
                "nameIgnorePrefixSort": self.name_ignore_prefix_sort,
                "type": "series",
                "books": books,
                "totalDuration": self.total_duration,
            }
        )
        return payload


def build_series_summaries(
    items: Sequence[LibraryItem],
    lookup_series: SeriesLookup,
    *,
    prefixes: Sequence[str],
    hide_single_book_series: bool = False,
) -> list[SeriesSummary]:
    """Group books by series in first-seen order, books ordered by sequence."""

    summaries: dict[str, SeriesSummary] = {}
    for item in items:
        if item.media_type != "book":
            continue
        for membership in item.metadata.series:
            summary = summaries.get(membership.id)
            if summary is None:
                series = lookup_series(membership.id)
                if series is None:
                    logger.debug(
                        "Skipping unknown series %s referenced by item %s", membership.id, item.id
                    )
                    continue
                summary = SeriesSummary(
                    id=series.id,
                    name=series.name,
                    name_ignore_prefix=title_prefix_at_end(series.name, prefixes),
                    name_ignore_prefix_sort=title_ignore_prefix(series.name, prefixes),
                    series=series,
                )
                summaries[membership.id] = summary
            summary.books.append(item)
            summary.total_duration += item.media.duration or 0.0

    results = []
    for summary in summaries.values():
        summary.books.sort(key=lambda book, s=summary: natural_key(s.sequence_of(book)))
        if hide_single_book_series and len(summary.books) <= 1:
            continue
        results.append(summary)
    return results


def collapse_book_series(
    items: Sequence[LibraryItem],
    lookup_series: SeriesLookup,
    *,
    prefixes: Sequence[str],
    filter_series: str | None = None,
    hide_single_book_series: bool = False,
) -> list[LibraryItem]:
    """Replace the books of each series with one collapsed row.

    The filter series itself is never collapsed; books only in that series
    (or in no collapsible series) stay as plain rows. The collapsed row is a
    copy of the series' first book carrying a :class:`CollapsedSeries`.
    """

    collapsible = {
        summary.id: summary
        for summary in build_series_summaries(
            items,
            lookup_series,
            prefixes=prefixes,
            hide_single_book_series=hide_single_book_series,
        )
        if summary.id != filter_series
    }

    rows: list[LibraryItem] = []
    emitted: set[str] = set()
    for item in items:
        groups = [
            collapsible[membership.id]
            for membership in item.metadata.series
            if membership.id in collapsible
        ]
        if not groups:
            rows.append(item)
            continue
        for summary in groups:
            if summary.id in emitted:
                continue
            emitted.add(summary.id)
            rows.append(replace(summary.books[0], collapsed_series=summary.to_collapsed()))
    return rows
