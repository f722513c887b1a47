"""Database models for the library query service."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


class ServerConfigRecord(SQLModel, table=True):
    """Persisted server-wide settings row."""

    __tablename__ = "server_config"

    id: int | None = Field(default=None, primary_key=True)
    sorting_ignore_prefix: bool = Field(default=False)
    sorting_prefixes: list[str] = Field(
        default_factory=lambda: ["the", "a"], sa_column=Column(JSON, nullable=False)
    )
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class LibraryRecord(SQLModel, table=True):
    """A library grouping items of one media type."""

    __tablename__ = "libraries"

    id: str = Field(primary_key=True, index=True)
    name: str
    media_type: str = Field(default="book", index=True)
    display_order: int = Field(default=0, index=True)
    hide_single_book_series: bool = Field(default=False)


class LibraryItemRecord(SQLModel, table=True):
    """Persisted library item; the media payload is stored as JSON."""

    __tablename__ = "library_items"

    id: str = Field(primary_key=True, index=True)
    library_id: str = Field(index=True)
    media_type: str = Field(default="book", index=True)
    media: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    has_issues: bool = Field(default=False, index=True)
    added_at: int = Field(default=0, index=True)
    updated_at: int = Field(default=0)


class AuthorRecord(SQLModel, table=True):
    """Canonical author entity."""

    __tablename__ = "authors"

    id: str = Field(primary_key=True, index=True)
    name: str = Field(index=True)
    description: str | None = Field(default=None)
    image_path: str | None = Field(default=None)
    added_at: int = Field(default=0)
    updated_at: int = Field(default=0)


class SeriesRecord(SQLModel, table=True):
    """Canonical series entity."""

    __tablename__ = "series"

    id: str = Field(primary_key=True, index=True)
    name: str = Field(index=True)
    description: str | None = Field(default=None)
    added_at: int = Field(default=0)
    updated_at: int = Field(default=0)


class FeedRecord(SQLModel, table=True):
    """An open RSS feed for an item or series."""

    __tablename__ = "feeds"

    id: str = Field(primary_key=True, index=True)
    entity_type: str = Field(index=True)
    entity_id: str = Field(index=True)
    slug: str
    feed_url: str
    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)


class MediaProgressRecord(SQLModel, table=True):
    """Listening progress for one user and one item or podcast episode."""

    __tablename__ = "media_progress"

    id: int | None = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    library_item_id: str = Field(index=True)
    episode_id: str | None = Field(default=None, index=True)
    progress: float = Field(default=0.0)
    is_finished: bool = Field(default=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
