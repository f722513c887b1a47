"""Pydantic models exposed by the library query API."""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(BaseModel):
    """Service health payload."""

    status: Literal["ok"] = Field(default="ok")
    version: str = Field(default="0.1.0", description="Semantic version of the API service.")


class ServerConfigModel(BaseModel):
    """Server-wide settings that influence ordering."""

    sorting_ignore_prefix: bool = Field(
        default=False,
        description="Ignore leading articles such as 'The' when alphabetizing titles and series.",
    )
    sorting_prefixes: list[str] = Field(
        default_factory=lambda: ["the", "a"],
        description="Leading articles ignored when sorting_ignore_prefix is enabled.",
    )


class ServerConfigUpdate(BaseModel):
    """Subset of server settings allowed to be updated at runtime."""

    sorting_ignore_prefix: bool | None = Field(default=None)
    sorting_prefixes: list[str] | None = Field(default=None)


class _ClientModel(BaseModel):
    """Base for payloads serialized with the camelCase keys web clients expect."""

    model_config = ConfigDict(populate_by_name=True)


class LibraryModel(_ClientModel):
    """Library summary exposed to clients."""

    id: str
    name: str
    media_type: Literal["book", "podcast"] = Field(alias="mediaType")
    display_order: int = Field(default=0, alias="displayOrder")
    hide_single_book_series: bool = Field(default=False, alias="hideSingleBookSeries")


class LibraryListModel(_ClientModel):
    libraries: list[LibraryModel]


class LibraryItemPage(_ClientModel):
    """Paginated envelope returned by the items listing."""

    results: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    limit: int = 0
    page: int = 0
    sort_by: str | None = Field(default=None, alias="sortBy")
    sort_desc: bool = Field(default=False, alias="sortDesc")
    filter_by: str | None = Field(default=None, alias="filterBy")
    media_type: Literal["book", "podcast"] = Field(default="book", alias="mediaType")
    minified: bool = False
    collapseseries: bool = False
    include: str = ""


class SeriesPage(_ClientModel):
    """Paginated envelope returned by the series listing."""

    results: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0
    limit: int = 0
    page: int = 0
    sort_by: str | None = Field(default=None, alias="sortBy")
    sort_desc: bool = Field(default=False, alias="sortDesc")
    filter_by: str | None = Field(default=None, alias="filterBy")
    minified: bool = False
    include: str = ""


class AuthorListModel(_ClientModel):
    authors: list[dict[str, Any]] = Field(default_factory=list)


class NarratorModel(_ClientModel):
    id: str = Field(description="URL-encoded base64 of the narrator name.")
    name: str
    num_books: int = Field(alias="numBooks")


class NarratorListModel(_ClientModel):
    narrators: list[NarratorModel] = Field(default_factory=list)
