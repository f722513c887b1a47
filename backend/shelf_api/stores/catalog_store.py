"""Canonical author and series lookup."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlmodel import Session

from ..domain import Author, Series
from ..models import AuthorRecord, SeriesRecord


@dataclass(slots=True, frozen=True)
class EntityTable:
    """Immutable snapshot of the canonical entity tables for one request."""

    authors: dict[str, Author] = field(default_factory=dict)
    series: dict[str, Series] = field(default_factory=dict)

    def get_author(self, author_id: str) -> Author | None:
        return self.authors.get(author_id)

    def get_series(self, series_id: str) -> Series | None:
        return self.series.get(series_id)


@dataclass(slots=True)
class CatalogStore:
    """Read-oriented accessor for canonical authors and series."""

    engine: Engine

    def snapshot(self) -> EntityTable:
        """Load every author and series into an :class:`EntityTable`."""

        with Session(self.engine) as session:
            author_records: Sequence[AuthorRecord] = session.exec(select(AuthorRecord)).scalars().all()
            series_records: Sequence[SeriesRecord] = session.exec(select(SeriesRecord)).scalars().all()
            return EntityTable(
                authors={record.id: _to_author(record) for record in author_records},
                series={record.id: _to_series(record) for record in series_records},
            )

    def get_series(self, series_id: str) -> Series | None:
        """Return a single canonical series if present."""

        with Session(self.engine) as session:
            record = session.get(SeriesRecord, series_id)
            return _to_series(record) if record else None


def _to_author(record: AuthorRecord) -> Author:
    return Author(
        id=record.id,
        name=record.name,
        description=record.description,
        image_path=record.image_path,
        added_at=record.added_at,
        updated_at=record.updated_at,
    )


def _to_series(record: SeriesRecord) -> Series:
    return Series(
        id=record.id,
        name=record.name,
        description=record.description,
        added_at=record.added_at,
        updated_at=record.updated_at,
    )
