"""Free-text search across items, series, authors, tags and narrators.

Each facet is an insertion-ordered dict keyed by entity id (series, authors)
or by the literal string value (tags, narrators). Results are truncated to
the first ``limit`` entries of each facet in the order they were first seen
during the scan; they are deliberately not re-sorted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, Sequence

from ..domain import Author, LibraryItem, MediaType, Series
from .errors import BadRequestError, MalformedFieldError

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 12


class EntityCatalog(Protocol):
    """Canonical author and series lookup by id."""

    def get_author(self, author_id: str) -> Author | None: ...

    def get_series(self, series_id: str) -> Series | None: ...


@dataclass(slots=True)
class ItemMatch:
    item: LibraryItem
    match_key: str
    match_text: str | None

    def to_json(self) -> dict[str, Any]:
        return {
            "libraryItem": self.item.to_json_expanded(),
            "matchKey": self.match_key,
            "matchText": self.match_text,
        }


@dataclass(slots=True)
class SeriesAggregate:
    series: Series
    books: list[LibraryItem] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {"series": self.series.to_json(), "books": [book.to_json() for book in self.books]}


@dataclass(slots=True)
class AuthorAggregate:
    author: Author
    num_books: int = 0

    def to_json(self) -> dict[str, Any]:
        payload = self.author.to_json()
        payload["numBooks"] = self.num_books
        return payload


@dataclass(slots=True)
class NamedAggregate:
    """Tag or narrator group keyed by its literal, case-sensitive value."""

    name: str
    books: list[LibraryItem] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {"name": self.name, "books": [book.to_json() for book in self.books]}


@dataclass(slots=True)
class SearchResults:
    media_type: MediaType
    items: list[ItemMatch] = field(default_factory=list)
    series: dict[str, SeriesAggregate] = field(default_factory=dict)
    authors: dict[str, AuthorAggregate] = field(default_factory=dict)
    tags: dict[str, NamedAggregate] = field(default_factory=dict)
    narrators: dict[str, NamedAggregate] = field(default_factory=dict)

    def to_json(self, limit: int) -> dict[str, list[dict[str, Any]]]:
        """Return the search envelope with every facet capped at ``limit``."""

        def first(entries: Sequence[Any]) -> list[dict[str, Any]]:
            return [entry.to_json() for entry in entries[:limit]]

        return {
            self.media_type: first(self.items),
            "tags": first(list(self.tags.values())),
            "authors": first(list(self.authors.values())),
            "series": first(list(self.series.values())),
            "narrators": first(list(self.narrators.values())),
        }


def literal_key(field_name: str, value: Any, item: LibraryItem) -> str:
    if not isinstance(value, str):
        raise MalformedFieldError(field_name, value, item.metadata.title)
    return value


class SearchAggregator:
    """Accumulates per-item matches into facet aggregates."""

    def __init__(self, catalog: EntityCatalog, media_type: MediaType) -> None:
        self._catalog = catalog
        self.results = SearchResults(media_type=media_type)

    def add(self, item: LibraryItem, query: str) -> None:
        match = item.search_query(query)
        if match.match_key:
            self.results.items.append(ItemMatch(item, match.match_key, match.match_text))

        for series_ref in match.series:
            self._add_series(series_ref.id, item)
        for author_ref in match.authors:
            self._add_author(author_ref.id)
        for tag in match.tags:
            self._add_named(self.results.tags, "tag", tag, item)
        for narrator in match.narrators:
            self._add_named(self.results.narrators, "narrator", narrator, item)

    def _add_series(self, series_id: str, item: LibraryItem) -> None:
        aggregate = self.results.series.get(series_id)
        if aggregate is None:
            series = self._catalog.get_series(series_id)
            if series is None:
                logger.debug("Search skipped unknown series %s", series_id)
                return
            aggregate = self.results.series[series_id] = SeriesAggregate(series)
        aggregate.books.append(item)

    def _add_author(self, author_id: str) -> None:
        aggregate = self.results.authors.get(author_id)
        if aggregate is None:
            author = self._catalog.get_author(author_id)
            if author is None:
                logger.debug("Search skipped unknown author %s", author_id)
                return
            aggregate = self.results.authors[author_id] = AuthorAggregate(author)
        aggregate.num_books += 1

    def _add_named(
        self,
        facet: dict[str, NamedAggregate],
        field_name: str,
        value: Any,
        item: LibraryItem,
    ) -> None:
        try:
            key = literal_key(field_name, value, item)
        except MalformedFieldError as exc:
            logger.error("Search skipped malformed value: %s", exc)
            return
        aggregate = facet.get(key)
        if aggregate is None:
            aggregate = facet[key] = NamedAggregate(key)
        aggregate.books.append(item)


def search_items(
    items: Sequence[LibraryItem],
    query: str | None,
    *,
    media_type: MediaType,
    catalog: EntityCatalog,
    limit: int = DEFAULT_SEARCH_LIMIT,
) -> dict[str, list[dict[str, Any]]]:
    """Search ``items`` for ``query`` and return the capped search envelope.

    Raises:
        BadRequestError: If ``query`` is missing or empty.
    """

    if not query:
        raise BadRequestError("No query string")

    aggregator = SearchAggregator(catalog, media_type)
    for item in items:
        aggregator.add(item, query)
    return aggregator.results.to_json(limit)
