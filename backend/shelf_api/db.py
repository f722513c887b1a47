"""Database helpers for the library query service."""
from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from .models import ServerConfigRecord
from .schemas import ServerConfigModel
from .settings import ShelfSettings
from .utils.paths import ensure_sqlite_parent


def create_engine_from_settings(settings: ShelfSettings) -> Engine:
    """Create a SQLModel engine using service settings."""

    ensure_sqlite_parent(settings.database_url)
    connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}
    return create_engine(settings.database_url, echo=settings.database_echo, connect_args=connect_args)


def init_database(engine: Engine, settings: ShelfSettings) -> None:
    """Create tables and seed the default server configuration."""

    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        record = session.get(ServerConfigRecord, 1)
        if record is None:
            session.add(
                ServerConfigRecord(
                    id=1,
                    sorting_ignore_prefix=settings.default_sorting_ignore_prefix,
                    sorting_prefixes=list(settings.default_sorting_prefixes),
                )
            )
            session.commit()


def read_server_config(session: Session) -> ServerConfigModel:
    """Fetch the persisted server configuration as a Pydantic model."""

    record = session.get(ServerConfigRecord, 1)
    if record is None:
        raise RuntimeError("Server configuration record missing from database")
    return ServerConfigModel(
        sorting_ignore_prefix=record.sorting_ignore_prefix,
        sorting_prefixes=list(record.sorting_prefixes),
    )
