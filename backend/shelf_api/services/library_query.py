"""Per-endpoint orchestration of the filter, collapse, sort, page and project stages."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ..domain import LibraryItem, ProgressIndex
from ..schemas import (
    AuthorListModel,
    LibraryItemPage,
    LibraryModel,
    NarratorListModel,
    NarratorModel,
    SeriesPage,
)
from ..stores.catalog_store import CatalogStore
from ..stores.config_store import ConfigStore
from ..stores.feed_store import FeedStore
from ..stores.library_store import LibraryStore
from ..stores.progress_store import ProgressStore
from ..utils.text import encode_filter_value
from .errors import MalformedFieldError
from .filters import filter_items, filter_series_for, split_filter
from .natural_sort import natural_key
from .pagination import IncludeSet, paginate, parse_include, parse_int
from .projection import ProjectionContext, feed_json, project_item
from .search import AuthorAggregate, literal_key, search_items
from .series import build_series_summaries, collapse_book_series
from .sorting import SortRequest, sort_items, sort_series

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ListingQuery:
    """Normalized listing parameters shared by the items and series endpoints."""

    limit: int = 0
    page: int = 0
    sort_by: str | None = None
    sort_desc: bool = False
    filter_by: str | None = None
    minified: bool = False
    collapse_series: bool = False
    include: IncludeSet = field(default_factory=IncludeSet)

    @classmethod
    def from_params(
        cls,
        *,
        limit: str | None = None,
        page: str | None = None,
        sort: str | None = None,
        desc: str | None = None,
        filter_by: str | None = None,
        minified: str | None = None,
        collapseseries: str | None = None,
        include: str | None = None,
    ) -> ListingQuery:
        """Build a query from raw query-string values ("1" means true)."""

        return cls(
            limit=parse_int(limit),
            page=parse_int(page),
            sort_by=sort or None,
            sort_desc=desc == "1",
            filter_by=filter_by or None,
            minified=minified == "1",
            collapse_series=collapseseries == "1",
            include=parse_include(include),
        )


@dataclass(slots=True)
class LibraryQueryService:
    """Runs library queries against per-request snapshots of the stores."""

    config_store: ConfigStore
    library_store: LibraryStore
    catalog_store: CatalogStore
    feed_store: FeedStore
    progress_store: ProgressStore

    def _open_feed_ids(self, filter_by: str | None) -> set[str]:
        if filter_by and split_filter(filter_by)[0] == "feed-open":
            return set(self.feed_store.snapshot())
        return set()

    def _progress_for(self, user_id: str, needed: bool) -> ProgressIndex:
        return self.progress_store.for_user(user_id) if needed else {}

    def _filtered(
        self, items: list[LibraryItem], query: ListingQuery, progress: ProgressIndex
    ) -> list[LibraryItem]:
        return filter_items(
            items,
            query.filter_by,
            progress=progress,
            open_feed_ids=self._open_feed_ids(query.filter_by),
        )

    def list_items(self, library: LibraryModel, query: ListingQuery, *, user_id: str) -> LibraryItemPage:
        """Return one page of filtered, optionally collapsed and sorted items."""

        config = self.config_store.read()
        prefixes = config.sorting_prefixes
        items = self.library_store.snapshot(library.id, prefixes=prefixes)
        media_type = library.media_type

        needs_progress = (
            bool(query.filter_by) and split_filter(query.filter_by)[0] == "progress"
        ) or (media_type == "podcast" and "numepisodesincomplete" in query.include)
        progress = self._progress_for(user_id, needs_progress)

        total = len(items)
        filter_series = None
        if query.filter_by:
            items = self._filtered(items, query, progress)
            total = len(items)
            filter_series = filter_series_for(query.filter_by, media_type)

        if query.collapse_series:
            catalog = self.catalog_store.snapshot()
            collapsed = collapse_book_series(
                items,
                catalog.get_series,
                prefixes=prefixes,
                filter_series=filter_series,
                hide_single_book_series=library.hide_single_book_series,
            )
            # A listing that would be a single collapsed row is shown uncollapsed.
            if not (len(collapsed) == 1 and collapsed[0].collapsed_series is not None):
                items = collapsed
                total = len(items)

        ordered = sort_items(
            items,
            SortRequest(
                sort_by=query.sort_by,
                descending=query.sort_desc,
                filter_series=filter_series,
                collapse_series=query.collapse_series,
                media_type=media_type,
                ignore_prefix=config.sorting_ignore_prefix,
            ),
        )
        rows = paginate(ordered, limit=query.limit, page=query.page)

        feeds = self.feed_store.snapshot() if "rssfeed" in query.include else {}
        context = ProjectionContext(
            minified=query.minified,
            include=query.include,
            media_type=media_type,
            filter_series=filter_series,
            find_feed=feeds.get,
            progress=progress,
        )
        results = [project_item(row, context) for row in rows]

        logger.info(
            "Listed %d of %d items for library %s (sort=%s, filter=%s)",
            len(results),
            total,
            library.id,
            query.sort_by,
            query.filter_by,
        )
        return LibraryItemPage(
            results=results,
            total=total,
            limit=query.limit,
            page=query.page,
            sort_by=query.sort_by,
            sort_desc=query.sort_desc,
            filter_by=query.filter_by,
            media_type=media_type,
            minified=query.minified,
            collapseseries=query.collapse_series,
            include=query.include.joined(),
        )

    def list_series(self, library: LibraryModel, query: ListingQuery, *, user_id: str) -> SeriesPage:
        """Return one page of series summaries built from the visible books."""

        config = self.config_store.read()
        items = self.library_store.snapshot(library.id, prefixes=config.sorting_prefixes)
        if query.filter_by:
            needs_progress = split_filter(query.filter_by)[0] == "progress"
            items = self._filtered(items, query, self._progress_for(user_id, needs_progress))

        catalog = self.catalog_store.snapshot()
        summaries = build_series_summaries(
            items,
            catalog.get_series,
            prefixes=config.sorting_prefixes,
            hide_single_book_series=library.hide_single_book_series,
        )
        summaries = sort_series(
            summaries,
            sort_by=query.sort_by,
            descending=query.sort_desc,
            ignore_prefix=config.sorting_ignore_prefix,
        )
        total = len(summaries)
        rows = paginate(summaries, limit=query.limit, page=query.page)

        results = [summary.to_json(minified=query.minified) for summary in rows]
        if "rssfeed" in query.include:
            feeds = self.feed_store.snapshot()
            for payload in results:
                payload["rssFeed"] = feed_json(feeds.get(payload["id"]))

        logger.info("Listed %d of %d series for library %s", len(results), total, library.id)
        return SeriesPage(
            results=results,
            total=total,
            limit=query.limit,
            page=query.page,
            sort_by=query.sort_by,
            sort_desc=query.sort_desc,
            filter_by=query.filter_by,
            minified=query.minified,
            include=query.include.joined(),
        )

    def get_series(
        self, library: LibraryModel, series_id: str, include: IncludeSet, *, user_id: str
    ) -> dict[str, Any] | None:
        """Return a canonical series with optional progress and feed overlays."""

        series = self.catalog_store.get_series(series_id)
        if series is None:
            return None

        payload = series.to_json()
        if "progress" in include:
            config = self.config_store.read()
            items = self.library_store.snapshot(library.id, prefixes=config.sorting_prefixes)
            in_series = [item.id for item in items if item.metadata.has_series(series_id)]
            progress = self.progress_store.for_user(user_id)
            finished = []
            for item_id in in_series:
                entry = progress.get((item_id, None))
                if entry is not None and entry.is_finished:
                    finished.append(item_id)
            payload["progress"] = {
                "libraryItemIds": in_series,
                "libraryItemIdsFinished": finished,
                "isFinished": len(finished) >= len(in_series),
            }
        if "rssfeed" in include:
            payload["rssFeed"] = feed_json(self.feed_store.find_for_entity(series.id))
        return payload

    def list_authors(self, library: LibraryModel) -> AuthorListModel:
        """Return canonical authors of the library's books with book counts."""

        items = self.library_store.snapshot(library.id, prefixes=self.config_store.read().sorting_prefixes)
        catalog = self.catalog_store.snapshot()
        authors: dict[str, AuthorAggregate] = {}
        for item in items:
            for author_ref in item.metadata.authors:
                aggregate = authors.get(author_ref.id)
                if aggregate is None:
                    author = catalog.get_author(author_ref.id)
                    if author is None:
                        logger.debug("Skipping unknown author %s on item %s", author_ref.id, item.id)
                        continue
                    aggregate = authors[author_ref.id] = AuthorAggregate(author)
                aggregate.num_books += 1

        ordered = sorted(authors.values(), key=lambda aggregate: natural_key(aggregate.author.name))
        return AuthorListModel(authors=[aggregate.to_json() for aggregate in ordered])

    def list_narrators(self, library: LibraryModel) -> NarratorListModel:
        """Return narrator names of the library's books with book counts."""

        items = self.library_store.snapshot(library.id, prefixes=self.config_store.read().sorting_prefixes)
        counts: dict[str, int] = {}
        for item in items:
            for narrator in item.metadata.narrators:
                try:
                    name = literal_key("narrator", narrator, item)
                except MalformedFieldError as exc:
                    logger.error("Skipping narrator: %s", exc)
                    continue
                counts[name] = counts.get(name, 0) + 1

        narrators = [
            NarratorModel(id=encode_filter_value(name), name=name, num_books=count)
            for name, count in counts.items()
        ]
        narrators.sort(key=lambda narrator: natural_key(narrator.name))
        return NarratorListModel(narrators=narrators)

    def search(
        self, library: LibraryModel, query: str | None, *, limit: int
    ) -> dict[str, list[dict[str, Any]]]:
        """Search the library; raises ``BadRequestError`` for an empty query."""

        items = self.library_store.snapshot(library.id, prefixes=self.config_store.read().sorting_prefixes)
        results = search_items(
            items,
            query,
            media_type=library.media_type,
            catalog=self.catalog_store.snapshot(),
            limit=limit,
        )
        logger.info(
            "Search in library %s returned %d item matches", library.id, len(results[library.media_type])
        )
        return results
