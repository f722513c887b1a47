"""Domain objects consumed by the library query pipeline.

Instances are built from a persistence snapshot for a single request and are
never mutated while a query runs; series collapsing produces copies through
:func:`dataclasses.replace` instead of touching the originals.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from .utils.text import clean_for_search

MediaType = Literal["book", "podcast"]


@dataclass(slots=True, frozen=True)
class AuthorRef:
    """Reference from a book to a canonical author."""

    id: str
    name: str

    @property
    def name_lf(self) -> str:
        """Return the name as "Last, First" when it has more than one word."""

        parts = self.name.strip().rsplit(" ", 1)
        if len(parts) == 1:
            return self.name
        return f"{parts[1]}, {parts[0]}"

    def to_json(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


@dataclass(slots=True, frozen=True)
class SeriesRef:
    """Membership of a book in a series, with its raw sequence token."""

    id: str
    name: str
    sequence: str | None = None

    @property
    def sort_title(self) -> str:
        if not self.sequence:
            return self.name
        return f"{self.name} #{self.sequence}"

    def to_json(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "sequence": self.sequence}


@dataclass(slots=True, frozen=True)
class PodcastEpisode:
    id: str
    title: str
    published_at: int | None = None
    duration: float = 0.0

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "publishedAt": self.published_at,
            "duration": self.duration,
        }


@dataclass(slots=True, frozen=True)
class MediaMetadata:
    """Descriptive metadata for books and podcasts.

    ``narrators`` and ``tags`` come straight from persisted JSON and may hold
    values of unexpected types; consumers check before using them as strings.
    """

    title: str = ""
    title_ignore_prefix: str = ""
    subtitle: str | None = None
    authors: tuple[AuthorRef, ...] = ()
    narrators: tuple[Any, ...] = ()
    series: tuple[SeriesRef, ...] = ()
    genres: tuple[str, ...] = ()
    published_year: str | None = None
    language: str | None = None
    isbn: str | None = None
    asin: str | None = None
    author: str | None = None

    @property
    def author_name(self) -> str:
        return ", ".join(author.name for author in self.authors)

    @property
    def author_name_lf(self) -> str:
        return ", ".join(author.name_lf for author in self.authors)

    @property
    def narrator_name(self) -> str:
        return ", ".join(name for name in self.narrators if isinstance(name, str))

    @property
    def series_name(self) -> str:
        return ", ".join(
            f"{series.name} #{series.sequence}" if series.sequence else series.name
            for series in self.series
        )

    def get_series(self, series_id: str) -> SeriesRef | None:
        for series in self.series:
            if series.id == series_id:
                return series
        return None

    def has_series(self, series_id: str) -> bool:
        return self.get_series(series_id) is not None

    def to_json(self, media_type: MediaType) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "titleIgnorePrefix": self.title_ignore_prefix,
            "genres": list(self.genres),
            "language": self.language,
        }
        if media_type == "podcast":
            payload["author"] = self.author
            return payload
        payload.update(
            {
                "subtitle": self.subtitle,
                "authors": [author.to_json() for author in self.authors],
                "narrators": list(self.narrators),
                "series": [series.to_json() for series in self.series],
                "publishedYear": self.published_year,
                "isbn": self.isbn,
                "asin": self.asin,
            }
        )
        return payload

    def to_json_minified(self, media_type: MediaType) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "title": self.title,
            "titleIgnorePrefix": self.title_ignore_prefix,
            "genres": list(self.genres),
            "language": self.language,
        }
        if media_type == "podcast":
            payload["author"] = self.author
            return payload
        payload.update(
            {
                "subtitle": self.subtitle,
                "authorName": self.author_name,
                "authorNameLF": self.author_name_lf,
                "narratorName": self.narrator_name,
                "seriesName": self.series_name,
                "publishedYear": self.published_year,
            }
        )
        return payload

    def to_json_expanded(self, media_type: MediaType) -> dict[str, Any]:
        payload = self.to_json(media_type)
        if media_type == "book":
            payload.update(
                {
                    "authorName": self.author_name,
                    "authorNameLF": self.author_name_lf,
                    "narratorName": self.narrator_name,
                    "seriesName": self.series_name,
                }
            )
        return payload


@dataclass(slots=True, frozen=True)
class Media:
    metadata: MediaMetadata = field(default_factory=MediaMetadata)
    tags: tuple[Any, ...] = ()
    duration: float = 0.0
    size: int = 0
    num_tracks: int = 0
    episodes: tuple[PodcastEpisode, ...] = ()


@dataclass(slots=True, frozen=True)
class SearchMatch:
    """Result of matching one item against one search query."""

    match_key: str | None = None
    match_text: str | None = None
    series: tuple[SeriesRef, ...] = ()
    authors: tuple[AuthorRef, ...] = ()
    narrators: tuple[Any, ...] = ()
    tags: tuple[Any, ...] = ()


@dataclass(slots=True, frozen=True)
class CollapsedSeries:
    """A synthetic row standing in for every book of one series."""

    id: str
    name: str
    name_ignore_prefix: str
    books: tuple[LibraryItem, ...]
    total_duration: float = 0.0
    added_at: int | None = None


@dataclass(slots=True, frozen=True)
class LibraryItem:
    id: str
    library_id: str
    media_type: MediaType
    media: Media = field(default_factory=Media)
    added_at: int = 0
    updated_at: int = 0
    has_issues: bool = False
    collapsed_series: CollapsedSeries | None = None

    @property
    def metadata(self) -> MediaMetadata:
        return self.media.metadata

    def _base_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "libraryId": self.library_id,
            "mediaType": self.media_type,
            "addedAt": self.added_at,
            "updatedAt": self.updated_at,
            "hasIssues": self.has_issues,
        }

    def _media_json(self, metadata: dict[str, Any]) -> dict[str, Any]:
        return {
            "metadata": metadata,
            "tags": list(self.media.tags),
            "duration": self.media.duration,
            "size": self.media.size,
            "numTracks": self.media.num_tracks,
        }

    def to_json(self) -> dict[str, Any]:
        payload = self._base_json()
        payload["media"] = self._media_json(self.metadata.to_json(self.media_type))
        if self.media_type == "podcast":
            payload["media"]["episodes"] = [episode.to_json() for episode in self.media.episodes]
        return payload

    def to_json_minified(self) -> dict[str, Any]:
        payload = self._base_json()
        payload["media"] = self._media_json(self.metadata.to_json_minified(self.media_type))
        if self.media_type == "podcast":
            payload["media"]["numEpisodes"] = len(self.media.episodes)
        return payload

    def to_json_expanded(self) -> dict[str, Any]:
        payload = self._base_json()
        payload["media"] = self._media_json(self.metadata.to_json_expanded(self.media_type))
        if self.media_type == "podcast":
            payload["media"]["episodes"] = [episode.to_json() for episode in self.media.episodes]
        return payload

    def search_query(self, query: str) -> SearchMatch:
        """Match ``query`` against this item's metadata, tags and people."""

        needle = clean_for_search(query)
        metadata = self.metadata

        def matches(value: Any) -> bool:
            return value is not None and needle in clean_for_search(str(value))

        tags = tuple(tag for tag in self.media.tags if matches(tag))
        if self.media_type == "podcast":
            keys = ("title", "author")
            authors: tuple[AuthorRef, ...] = ()
            series: tuple[SeriesRef, ...] = ()
            narrators: tuple[Any, ...] = ()
        else:
            keys = ("title", "subtitle", "asin", "isbn")
            authors = tuple(author for author in metadata.authors if matches(author.name))
            series = tuple(entry for entry in metadata.series if matches(entry.name))
            narrators = tuple(name for name in metadata.narrators if matches(name))

        match_key: str | None = None
        match_text: str | None = None
        for key in keys:
            value = getattr(metadata, key)
            if matches(value):
                match_key, match_text = key, value
                break
        else:
            if authors:
                match_key, match_text = "authors", metadata.author_name
            elif series:
                match_key, match_text = "series", metadata.series_name
            elif tags:
                match_key, match_text = "tags", ", ".join(str(tag) for tag in self.media.tags)
            elif narrators:
                match_key, match_text = "narrators", metadata.narrator_name

        return SearchMatch(
            match_key=match_key,
            match_text=match_text,
            series=series,
            authors=authors,
            narrators=narrators,
            tags=tags,
        )


@dataclass(slots=True, frozen=True)
class Author:
    """Canonical author entity."""

    id: str
    name: str
    description: str | None = None
    image_path: str | None = None
    added_at: int = 0
    updated_at: int = 0

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "imagePath": self.image_path,
            "addedAt": self.added_at,
            "updatedAt": self.updated_at,
        }


@dataclass(slots=True, frozen=True)
class Series:
    """Canonical series entity."""

    id: str
    name: str
    description: str | None = None
    added_at: int = 0
    updated_at: int = 0

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "addedAt": self.added_at,
            "updatedAt": self.updated_at,
        }


@dataclass(slots=True, frozen=True)
class MediaProgress:
    """Listening progress of one user for one item (or podcast episode)."""

    library_item_id: str
    episode_id: str | None = None
    progress: float = 0.0
    is_finished: bool = False

    @property
    def in_progress(self) -> bool:
        return not self.is_finished and self.progress > 0


@dataclass(slots=True, frozen=True)
class Feed:
    """An open RSS feed published for an item, series or collection."""

    id: str
    entity_type: str
    entity_id: str
    slug: str
    feed_url: str

    def to_json_minified(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "entityType": self.entity_type,
            "entityId": self.entity_id,
            "slug": self.slug,
            "feedUrl": self.feed_url,
        }


ProgressIndex = Mapping[tuple[str, "str | None"], MediaProgress]
"""Progress entries of one user keyed by ``(library item id, episode id)``."""
