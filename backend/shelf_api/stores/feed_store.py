"""Lookup of open RSS feeds by the entity they publish."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlmodel import Session

from ..domain import Feed
from ..models import FeedRecord


@dataclass(slots=True)
class FeedStore:
    """Read-oriented accessor for open feeds."""

    engine: Engine

    def snapshot(self) -> dict[str, Feed]:
        """Return open feeds keyed by entity id."""

        with Session(self.engine) as session:
            records: Sequence[FeedRecord] = session.exec(
                select(FeedRecord).order_by(FeedRecord.created_at)
            ).scalars().all()
            return {record.entity_id: _to_feed(record) for record in records}

    def find_for_entity(self, entity_id: str) -> Feed | None:
        """Return the open feed for an item or series if one exists."""

        with Session(self.engine) as session:
            record = session.exec(
                select(FeedRecord).where(FeedRecord.entity_id == entity_id)
            ).scalars().first()
            return _to_feed(record) if record else None


def _to_feed(record: FeedRecord) -> Feed:
    return Feed(
        id=record.id,
        entity_type=record.entity_type,
        entity_id=record.entity_id,
        slug=record.slug,
        feed_url=record.feed_url,
    )
