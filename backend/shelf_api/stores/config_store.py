"""Database-backed server configuration store."""
from __future__ import annotations

from datetime import datetime
from threading import Lock
from typing import Any

from sqlmodel import Session, select

from ..db import read_server_config
from ..models import ServerConfigRecord
from ..schemas import ServerConfigModel, ServerConfigUpdate


class ConfigStore:
    """Thread-safe interface over the persisted server configuration."""

    def __init__(self, engine) -> None:
        self._engine = engine
        self._lock = Lock()

    def read(self) -> ServerConfigModel:
        """Return the current server configuration."""

        with Session(self._engine) as session:
            return read_server_config(session)

    def update(self, update: ServerConfigUpdate) -> ServerConfigModel:
        """Apply updates to the stored configuration."""

        update_payload = _extract_update(update)
        with self._lock, Session(self._engine) as session:
            record = session.exec(
                select(ServerConfigRecord).where(ServerConfigRecord.id == 1)
            ).one_or_none()
            if record is None:
                raise RuntimeError("Server configuration record missing from database")
            for key, value in update_payload.items():
                setattr(record, key, value)
            record.updated_at = datetime.utcnow()
            session.add(record)
            session.commit()
            session.refresh(record)
            return ServerConfigModel(
                sorting_ignore_prefix=record.sorting_ignore_prefix,
                sorting_prefixes=list(record.sorting_prefixes),
            )


def _extract_update(update: ServerConfigUpdate) -> dict[str, Any]:
    """Extract a payload suitable for record updates."""

    payload = update.model_dump(exclude_unset=True, exclude_none=True)
    if "sorting_prefixes" in payload:
        payload["sorting_prefixes"] = [
            prefix.strip().lower() for prefix in payload["sorting_prefixes"] if prefix.strip()
        ]
    return payload
