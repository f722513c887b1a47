"""Per-user listening progress."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlmodel import Session

from ..domain import MediaProgress, ProgressIndex
from ..models import MediaProgressRecord


@dataclass(slots=True)
class ProgressStore:
    engine: Engine

    def for_user(self, user_id: str) -> ProgressIndex:
        """Return the user's progress keyed by ``(library item id, episode id)``."""

        statement = select(MediaProgressRecord).where(MediaProgressRecord.user_id == user_id)
        with Session(self.engine) as session:
            records: Sequence[MediaProgressRecord] = session.exec(statement).scalars().all()
            return {
                (record.library_item_id, record.episode_id): MediaProgress(
                    library_item_id=record.library_item_id,
                    episode_id=record.episode_id,
                    progress=record.progress,
                    is_finished=record.is_finished,
                )
                for record in records
            }
