"""FastAPI dependencies for the library query API."""
from fastapi import Depends, Header, HTTPException, Request

from .schemas import LibraryModel
from .services.library_query import LibraryQueryService
from .settings import ShelfSettings
from .state import AppState
from .stores.config_store import ConfigStore
from .stores.library_store import LibraryStore

DEFAULT_USER_ID = "root"


def get_app_state(request: Request) -> AppState:
    """Resolve the shared application state from the FastAPI request."""
    return request.app.state.app_state


def get_settings(app_state: AppState = Depends(get_app_state)) -> ShelfSettings:
    """Return the service settings."""
    return app_state.settings


def get_config_store(app_state: AppState = Depends(get_app_state)) -> ConfigStore:
    """Return the server configuration store dependency."""
    return app_state.config_store


def get_library_store(app_state: AppState = Depends(get_app_state)) -> LibraryStore:
    """Return the library store dependency."""
    return app_state.library_store


def get_query_service(app_state: AppState = Depends(get_app_state)) -> LibraryQueryService:
    """Return the library query service dependency."""
    return app_state.query_service


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Identify the requesting user; access control happens upstream."""
    return x_user_id or DEFAULT_USER_ID


def get_library(library_id: str, store: LibraryStore = Depends(get_library_store)) -> LibraryModel:
    """Resolve the library addressed by the path, raising 404 when missing."""

    library = store.get_library(library_id)
    if library is None:
        raise HTTPException(status_code=404, detail="Library not found")
    return library
