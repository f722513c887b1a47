"""Shared state container for the library query API."""
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import Engine

from .db import create_engine_from_settings, init_database
from .services.library_query import LibraryQueryService
from .settings import ShelfSettings
from .stores.catalog_store import CatalogStore
from .stores.config_store import ConfigStore
from .stores.feed_store import FeedStore
from .stores.library_store import LibraryStore
from .stores.progress_store import ProgressStore


@dataclass(slots=True)
class AppState:
    """Encapsulates application state shared across routers."""

    settings: ShelfSettings
    engine: Engine
    config_store: ConfigStore
    library_store: LibraryStore
    query_service: LibraryQueryService

    def __init__(self, settings: ShelfSettings) -> None:
        self.settings = settings
        self.engine = create_engine_from_settings(settings)
        init_database(self.engine, settings)
        self.config_store = ConfigStore(self.engine)
        self.library_store = LibraryStore(self.engine)
        self.query_service = LibraryQueryService(
            config_store=self.config_store,
            library_store=self.library_store,
            catalog_store=CatalogStore(self.engine),
            feed_store=FeedStore(self.engine),
            progress_store=ProgressStore(self.engine),
        )
