"""Library store exposing read access to persisted libraries and items."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlmodel import Session

from ..domain import AuthorRef, LibraryItem, Media, MediaMetadata, PodcastEpisode, SeriesRef
from ..models import LibraryItemRecord, LibraryRecord
from ..schemas import LibraryModel
from ..utils.text import title_prefix_at_end

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LibraryStore:
    """Read-oriented accessor for libraries and their items."""

    engine: Engine

    def list_libraries(self) -> list[LibraryModel]:
        """Return every library ordered by display order."""

        statement = select(LibraryRecord).order_by(LibraryRecord.display_order, LibraryRecord.name)
        with Session(self.engine) as session:
            records: Sequence[LibraryRecord] = session.exec(statement).scalars().all()
            return [_to_library_model(record) for record in records]

    def get_library(self, library_id: str) -> LibraryModel | None:
        """Return a single library if present."""

        with Session(self.engine) as session:
            record = session.get(LibraryRecord, library_id)
            return _to_library_model(record) if record else None

    def snapshot(self, library_id: str, *, prefixes: Sequence[str]) -> list[LibraryItem]:
        """Return the library's items as immutable domain objects.

        Items come back in insertion order of their ``added_at`` timestamp and
        id, which is the base order every listing starts from.
        """

        statement = (
            select(LibraryItemRecord)
            .where(LibraryItemRecord.library_id == library_id)
            .order_by(LibraryItemRecord.added_at, LibraryItemRecord.id)
        )
        with Session(self.engine) as session:
            records: Sequence[LibraryItemRecord] = session.exec(statement).scalars().all()
            return [_to_item(record, prefixes) for record in records]


def _to_library_model(record: LibraryRecord) -> LibraryModel:
    return LibraryModel(
        id=record.id,
        name=record.name,
        media_type=record.media_type,
        display_order=record.display_order,
        hide_single_book_series=record.hide_single_book_series,
    )


def _valid_entries(entries: Any, item_id: str, label: str) -> list[dict[str, Any]]:
    """Return the dict entries carrying an id, logging and skipping the rest."""

    valid = []
    for entry in entries or []:
        if not isinstance(entry, dict) or not entry.get("id"):
            logger.warning("Skipping invalid %s %r on item %s", label, entry, item_id)
            continue
        valid.append(entry)
    return valid


def _author_refs(entries: Any, item_id: str) -> tuple[AuthorRef, ...]:
    return tuple(
        AuthorRef(id=str(entry["id"]), name=str(entry.get("name") or ""))
        for entry in _valid_entries(entries, item_id, "author")
    )


def _series_refs(entries: Any, item_id: str) -> tuple[SeriesRef, ...]:
    refs = []
    for entry in _valid_entries(entries, item_id, "series"):
        sequence = entry.get("sequence")
        refs.append(
            SeriesRef(
                id=str(entry["id"]),
                name=str(entry.get("name") or ""),
                sequence=str(sequence) if sequence not in (None, "") else None,
            )
        )
    return tuple(refs)


def _episodes(entries: Any, item_id: str) -> tuple[PodcastEpisode, ...]:
    return tuple(
        PodcastEpisode(
            id=str(entry["id"]),
            title=str(entry.get("title") or ""),
            published_at=entry.get("publishedAt"),
            duration=float(entry.get("duration") or 0.0),
        )
        for entry in _valid_entries(entries, item_id, "episode")
    )


def _to_item(record: LibraryItemRecord, prefixes: Sequence[str]) -> LibraryItem:
    """Convert a library item record into a domain object."""

    media = record.media or {}
    metadata = media.get("metadata") or {}
    title = str(metadata.get("title") or "")
    published_year = metadata.get("publishedYear")

    return LibraryItem(
        id=record.id,
        library_id=record.library_id,
        media_type="podcast" if record.media_type == "podcast" else "book",
        media=Media(
            metadata=MediaMetadata(
                title=title,
                title_ignore_prefix=title_prefix_at_end(title, prefixes),
                subtitle=metadata.get("subtitle"),
                authors=_author_refs(metadata.get("authors"), record.id),
                narrators=tuple(metadata.get("narrators") or ()),
                series=_series_refs(metadata.get("series"), record.id),
                genres=tuple(metadata.get("genres") or ()),
                published_year=str(published_year) if published_year is not None else None,
                language=metadata.get("language"),
                isbn=metadata.get("isbn"),
                asin=metadata.get("asin"),
                author=metadata.get("author"),
            ),
            tags=tuple(media.get("tags") or ()),
            duration=float(media.get("duration") or 0.0),
            size=int(media.get("size") or 0),
            num_tracks=int(media.get("numTracks") or 0),
            episodes=_episodes(media.get("episodes"), record.id),
        ),
        added_at=record.added_at,
        updated_at=record.updated_at,
        has_issues=record.has_issues,
    )
