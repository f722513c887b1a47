"""Server configuration endpoints."""
from fastapi import APIRouter, Depends

from ..dependencies import get_config_store
from ..schemas import ServerConfigModel, ServerConfigUpdate
from ..stores.config_store import ConfigStore

router = APIRouter(prefix="/config", tags=["config"])


@router.get("", response_model=ServerConfigModel)
def read_config(store: ConfigStore = Depends(get_config_store)) -> ServerConfigModel:
    """Return the current server configuration."""
    return store.read()


@router.put("", response_model=ServerConfigModel)
def update_config(
    update: ServerConfigUpdate,
    store: ConfigStore = Depends(get_config_store),
) -> ServerConfigModel:
    """Update and return the server configuration."""

    return store.update(update)
