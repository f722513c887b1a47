"""Shaping of listing rows into client JSON, with optional overlays."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ..domain import Feed, LibraryItem, MediaType, ProgressIndex
from .natural_sort import natural_sorted
from .pagination import IncludeSet
from .sequence_ranges import compact_sequence_list

FeedLookup = Callable[[str], "Feed | None"]


def _no_feed(entity_id: str) -> Feed | None:
    return None


@dataclass(slots=True)
class ProjectionContext:
    """Per-request flags and collaborators used while projecting rows.

    Overlay collaborators are only called for rows whose overlay token is in
    ``include``.
    """

    minified: bool = False
    include: IncludeSet = field(default_factory=IncludeSet)
    media_type: MediaType = "book"
    filter_series: str | None = None
    find_feed: FeedLookup = _no_feed
    progress: ProgressIndex = field(default_factory=dict)


def feed_json(feed: Feed | None) -> dict[str, Any] | None:
    return feed.to_json_minified() if feed else None


def count_incomplete_episodes(item: LibraryItem, progress: ProgressIndex) -> int:
    """Number of podcast episodes the user has not finished."""

    count = 0
    for episode in item.media.episodes:
        entry = progress.get((item.id, episode.id))
        if entry is None or not entry.is_finished:
            count += 1
    return count


def series_sequence_list(item: LibraryItem, series_id: str) -> str:
    """Compact list of the filter-series sequences a collapsed row stands for."""

    collapsed = item.collapsed_series
    if collapsed is None:
        return ""
    sequences = []
    for book in collapsed.books:
        membership = book.metadata.get_series(series_id)
        if membership is not None and membership.sequence:
            sequences.append(membership.sequence)
    return compact_sequence_list(natural_sorted(sequences))


def project_item(item: LibraryItem, context: ProjectionContext) -> dict[str, Any]:
    """Return the JSON row for ``item`` honoring the minified flag and includes."""

    payload = item.to_json_minified() if context.minified else item.to_json()

    collapsed = item.collapsed_series
    if collapsed is not None:
        payload["collapsedSeries"] = {
            "id": collapsed.id,
            "name": collapsed.name,
            "nameIgnorePrefix": collapsed.name_ignore_prefix,
            "libraryItemIds": [book.id for book in collapsed.books],
            "numBooks": len(collapsed.books),
        }
        if context.filter_series:
            payload["collapsedSeries"]["seriesSequenceList"] = series_sequence_list(
                item, context.filter_series
            )
        return payload

    if "rssfeed" in context.include:
        payload["rssFeed"] = feed_json(context.find_feed(item.id))

    if context.media_type == "podcast" and "numepisodesincomplete" in context.include:
        payload["numEpisodesIncomplete"] = count_incomplete_episodes(item, context.progress)

    if context.filter_series:
        membership = item.metadata.get_series(context.filter_series)
        payload["media"]["metadata"]["series"] = membership.to_json() if membership else None

    return payload
