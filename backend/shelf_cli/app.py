"""Command line interface for the Shelfarr library API."""
from __future__ import annotations

import base64
import json
from typing import List, Optional
from urllib.parse import quote

import typer

from .client import create_client


DEFAULT_API_BASE = "http://localhost:8000"

app = typer.Typer(help="Interact with the Shelfarr library API service.")
config_app = typer.Typer(help="Manage server sorting configuration.")
app.add_typer(config_app, name="config")
libraries_app = typer.Typer(help="Browse, sort and search library items.")
app.add_typer(libraries_app, name="libraries")


def _api_base_option() -> typer.Option:
    return typer.Option(
        DEFAULT_API_BASE,
        "--api-base",
        help="Base URL for the library API service.",
        show_default=True,
        envvar="SHELFARR_API_BASE",
    )


def _user_option() -> typer.Option:
    return typer.Option(
        None,
        "--user",
        help="User id sent as X-User-Id for progress-aware filters and overlays.",
        envvar="SHELFARR_USER",
    )


def _encode_filter(raw: str) -> str:
    """Turn "group:value" into the "group.<url-encoded base64>" form the API expects."""

    group, separator, value = raw.partition(":")
    if not separator:
        return group
    encoded = base64.b64encode(value.encode("utf-8")).decode("ascii")
    return f"{group}.{quote(encoded, safe='')}"


@app.command()
def health(api_base: str = _api_base_option()) -> None:
    """Call the /health endpoint and pretty-print the response."""

    with create_client(api_base) as client:
        response = client.get("/health")
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@config_app.command("show")
def show_config(api_base: str = _api_base_option()) -> None:
    """Display the persisted server configuration."""

    with create_client(api_base) as client:
        response = client.get("/config")
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@config_app.command("update")
def update_config(
    ignore_prefix: Optional[bool] = typer.Option(
        None,
        "--ignore-prefix/--no-ignore-prefix",
        help="Ignore leading articles when alphabetizing.",
        show_default=False,
    ),
    prefixes: Optional[List[str]] = typer.Option(
        None,
        "--prefix",
        "-p",
        help="Leading article to ignore (repeat the flag to set several).",
    ),
    api_base: str = _api_base_option(),
) -> None:
    """Update server configuration fields with the provided values."""

    payload: dict[str, object] = {}
    if ignore_prefix is not None:
        payload["sorting_ignore_prefix"] = ignore_prefix
    if prefixes:
        payload["sorting_prefixes"] = prefixes

    if not payload:
        typer.echo("No updates supplied.")
        raise typer.Exit(code=1)

    with create_client(api_base) as client:
        response = client.put("/config", json=payload)
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@libraries_app.command("list")
def list_libraries(api_base: str = _api_base_option()) -> None:
    """Display every library in display order."""

    with create_client(api_base) as client:
        response = client.get("/libraries")
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@libraries_app.command("items")
def list_items(
    library_id: str = typer.Argument(..., help="Library identifier."),
    limit: int = typer.Option(0, min=0, help="Page size; 0 returns every item."),
    page: int = typer.Option(0, min=0, help="Zero-based page index."),
    sort: Optional[str] = typer.Option(
        None, help="Sort selector such as media.metadata.title or addedAt."
    ),
    desc: bool = typer.Option(False, "--desc/--asc", help="Sort direction.", show_default=False),
    filter_by: Optional[str] = typer.Option(
        None,
        "--filter",
        help="Filter as group:value, e.g. series:<series id> or progress:finished.",
    ),
    minified: bool = typer.Option(False, "--minified", help="Request minified rows."),
    collapse_series: bool = typer.Option(
        False, "--collapse-series", help="Collapse books of a series into one row."
    ),
    include: Optional[List[str]] = typer.Option(
        None, "--include", "-i", help="Overlay to include (repeat the flag)."
    ),
    user: Optional[str] = _user_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display one page of sorted library items."""

    params: dict[str, object] = {"limit": limit, "page": page}
    if sort:
        params["sort"] = sort
    if desc:
        params["desc"] = 1
    if filter_by:
        params["filter"] = _encode_filter(filter_by)
    if minified:
        params["minified"] = 1
    if collapse_series:
        params["collapseseries"] = 1
    if include:
        params["include"] = ",".join(include)

    with create_client(api_base, user_id=user) as client:
        response = client.get(f"/libraries/{library_id}/items", params=params)
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@libraries_app.command("series")
def list_series(
    library_id: str = typer.Argument(..., help="Library identifier."),
    limit: int = typer.Option(0, min=0, help="Page size; 0 returns every series."),
    page: int = typer.Option(0, min=0, help="Zero-based page index."),
    sort: Optional[str] = typer.Option(
        None,
        help="numBooks, totalDuration, addedAt, lastBookUpdated, lastBookAdded; name otherwise.",
    ),
    desc: bool = typer.Option(False, "--desc/--asc", help="Sort direction.", show_default=False),
    minified: bool = typer.Option(False, "--minified", help="Request minified books."),
    include: Optional[List[str]] = typer.Option(
        None, "--include", "-i", help="Overlay to include (repeat the flag)."
    ),
    user: Optional[str] = _user_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display one page of series summaries."""

    params: dict[str, object] = {"limit": limit, "page": page}
    if sort:
        params["sort"] = sort
    if desc:
        params["desc"] = 1
    if minified:
        params["minified"] = 1
    if include:
        params["include"] = ",".join(include)

    with create_client(api_base, user_id=user) as client:
        response = client.get(f"/libraries/{library_id}/series", params=params)
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@libraries_app.command("series-detail")
def show_series(
    library_id: str = typer.Argument(..., help="Library identifier."),
    series_id: str = typer.Argument(..., help="Series identifier."),
    include: Optional[List[str]] = typer.Option(
        None, "--include", "-i", help="progress and/or rssfeed (repeat the flag)."
    ),
    user: Optional[str] = _user_option(),
    api_base: str = _api_base_option(),
) -> None:
    """Display a single series."""

    params: dict[str, object] = {}
    if include:
        params["include"] = ",".join(include)

    with create_client(api_base, user_id=user) as client:
        response = client.get(f"/libraries/{library_id}/series/{series_id}", params=params)
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@libraries_app.command("authors")
def list_authors(
    library_id: str = typer.Argument(..., help="Library identifier."),
    api_base: str = _api_base_option(),
) -> None:
    """Display the library's authors with book counts."""

    with create_client(api_base) as client:
        response = client.get(f"/libraries/{library_id}/authors")
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@libraries_app.command("narrators")
def list_narrators(
    library_id: str = typer.Argument(..., help="Library identifier."),
    api_base: str = _api_base_option(),
) -> None:
    """Display the library's narrators with book counts."""

    with create_client(api_base) as client:
        response = client.get(f"/libraries/{library_id}/narrators")
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))


@libraries_app.command("search")
def search(
    library_id: str = typer.Argument(..., help="Library identifier."),
    query: str = typer.Argument(..., help="Free-text search query."),
    limit: Optional[int] = typer.Option(None, min=0, help="Maximum entries per result facet."),
    api_base: str = _api_base_option(),
) -> None:
    """Search items, tags, authors, series and narrators."""

    params: dict[str, object] = {"q": query}
    if limit is not None:
        params["limit"] = limit

    with create_client(api_base) as client:
        response = client.get(f"/libraries/{library_id}/search", params=params)
        response.raise_for_status()
        typer.echo(json.dumps(response.json(), indent=2, ensure_ascii=False))
