"""Decoding and application of ``filter=<group>.<encoded value>`` requests."""
from __future__ import annotations

import logging
from typing import Callable, Collection, Sequence

from ..domain import LibraryItem, MediaType, ProgressIndex
from ..utils.text import decode_filter_value

logger = logging.getLogger(__name__)

NO_SERIES = "no-series"


def split_filter(filter_by: str) -> tuple[str, str]:
    """Return ``(group, decoded value)`` for a filter string."""

    group, _, encoded = filter_by.partition(".")
    return group, decode_filter_value(encoded) if encoded else ""


def filter_series_for(filter_by: str | None, media_type: MediaType) -> str | None:
    """Return the series id a book listing is being filtered by, if any."""

    if not filter_by or media_type != "book" or not filter_by.startswith("series."):
        return None
    _, series_id = split_filter(filter_by)
    if not series_id or series_id == NO_SERIES:
        return None
    return series_id


def _progress_matcher(value: str, progress: ProgressIndex) -> Callable[[LibraryItem], bool]:
    def finished(item: LibraryItem) -> bool:
        entry = progress.get((item.id, None))
        return entry is not None and entry.is_finished

    def in_progress(item: LibraryItem) -> bool:
        entry = progress.get((item.id, None))
        return entry is not None and entry.in_progress

    def not_started(item: LibraryItem) -> bool:
        entry = progress.get((item.id, None))
        return entry is None or (not entry.is_finished and not entry.in_progress)

    matchers = {"finished": finished, "in-progress": in_progress, "not-started": not_started}
    return matchers.get(value, lambda item: True)


_GROUP_PREDICATES: dict[str, Callable[[LibraryItem, str], bool]] = {
    "genres": lambda item, value: value in item.metadata.genres,
    "tags": lambda item, value: value in item.media.tags,
    "authors": lambda item, value: any(author.id == value for author in item.metadata.authors),
    "narrators": lambda item, value: value in item.metadata.narrators,
    "languages": lambda item, value: item.metadata.language == value,
    "issues": lambda item, value: item.has_issues,
}


def _series_predicate(item: LibraryItem, value: str) -> bool:
    if value == NO_SERIES:
        return not item.metadata.series
    return item.metadata.has_series(value)


def filter_items(
    items: Sequence[LibraryItem],
    filter_by: str | None,
    *,
    progress: ProgressIndex | None = None,
    open_feed_ids: Collection[str] = (),
) -> list[LibraryItem]:
    """Return the items matching ``filter_by``; unknown groups filter nothing."""

    if not filter_by:
        return list(items)

    group, value = split_filter(filter_by)
    if group == "progress":
        matcher = _progress_matcher(value, progress or {})
        return [item for item in items if matcher(item)]
    if group == "feed-open":
        return [item for item in items if item.id in open_feed_ids]
    if group == "series":
        return [item for item in items if _series_predicate(item, value)]

    predicate = _GROUP_PREDICATES.get(group)
    if predicate is None:
        logger.debug("Ignoring unsupported filter group %r", group)
        return list(items)
    return [item for item in items if predicate(item, value)]
