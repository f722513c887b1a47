"""Runtime configuration for the Shelfarr library API."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.paths import default_database_url


class ShelfSettings(BaseSettings):
    """Environment-aware settings for the library query service."""

    database_url: str = Field(
        default_factory=default_database_url,
        description="Connection URL for the library SQLite database.",
    )
    database_echo: bool = Field(
        default=False, description="Enable SQL echo for debugging queries."
    )
    default_sorting_ignore_prefix: bool = Field(
        default=False,
        description="Whether leading articles are ignored when alphabetizing by default.",
    )
    default_sorting_prefixes: list[str] = Field(
        default_factory=lambda: ["the", "a"],
        description="Leading articles stripped from titles and series names when sorting.",
    )
    search_default_limit: int = Field(
        default=12,
        ge=1,
        description="Number of entries returned per search facet when no limit is given.",
    )
    log_level: str = Field(default="INFO", description="Root logging level for the service.")
    host: str = Field(default="0.0.0.0", description="Interface the development server binds to.")
    port: int = Field(default=8000, description="Port the development server listens on.")

    model_config = SettingsConfigDict(
        env_prefix="SHELFARR_",
        env_file=".env",
        env_file_encoding="utf-8",
    )
