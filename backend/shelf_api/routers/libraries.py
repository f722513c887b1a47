"""Library endpoints for listing, grouping and searching library items."""
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_library, get_library_store, get_query_service, get_settings, get_user_id
from ..schemas import (
    AuthorListModel,
    LibraryItemPage,
    LibraryListModel,
    LibraryModel,
    NarratorListModel,
    SeriesPage,
)
from ..services.errors import BadRequestError
from ..services.library_query import LibraryQueryService, ListingQuery
from ..services.pagination import parse_include, parse_int
from ..settings import ShelfSettings
from ..stores.library_store import LibraryStore

router = APIRouter(prefix="/libraries", tags=["libraries"])


def listing_query(
    limit: str | None = Query(default=None, description="Page size; 0 or missing returns every row."),
    page: str | None = Query(default=None, description="Zero-based page index."),
    sort: str | None = Query(default=None, description="Sort selector, e.g. media.metadata.title."),
    desc: str | None = Query(default=None, description="Set to 1 for descending order."),
    filter_by: str | None = Query(
        default=None,
        alias="filter",
        description="Filter as <group>.<url-encoded base64 value>, e.g. series.<id>.",
    ),
    minified: str | None = Query(default=None, description="Set to 1 for minified rows."),
    collapseseries: str | None = Query(
        default=None, description="Set to 1 to collapse books of a series into one row."
    ),
    include: str | None = Query(
        default=None, description="Comma separated overlays such as rssfeed or numEpisodesIncomplete."
    ),
) -> ListingQuery:
    """Parse listing query parameters the way web clients send them."""

    return ListingQuery.from_params(
        limit=limit,
        page=page,
        sort=sort,
        desc=desc,
        filter_by=filter_by,
        minified=minified,
        collapseseries=collapseseries,
        include=include,
    )


@router.get("", response_model=LibraryListModel)
def list_libraries(store: LibraryStore = Depends(get_library_store)) -> LibraryListModel:
    """Return every library in display order."""

    return LibraryListModel(libraries=store.list_libraries())


@router.get("/{library_id}", response_model=LibraryModel)
def read_library(library: LibraryModel = Depends(get_library)) -> LibraryModel:
    """Return a single library, raising when missing."""

    return library


@router.get("/{library_id}/items", response_model=LibraryItemPage)
def list_library_items(
    query: ListingQuery = Depends(listing_query),
    library: LibraryModel = Depends(get_library),
    service: LibraryQueryService = Depends(get_query_service),
    user_id: str = Depends(get_user_id),
) -> LibraryItemPage:
    """Return filtered, optionally collapsed, sorted and paginated items."""

    return service.list_items(library, query, user_id=user_id)


@router.get("/{library_id}/series", response_model=SeriesPage)
def list_library_series(
    query: ListingQuery = Depends(listing_query),
    library: LibraryModel = Depends(get_library),
    service: LibraryQueryService = Depends(get_query_service),
    user_id: str = Depends(get_user_id),
) -> SeriesPage:
    """Return sorted and paginated series summaries for the library."""

    return service.list_series(library, query, user_id=user_id)


@router.get("/{library_id}/series/{series_id}")
def get_library_series(
    series_id: str,
    include: str | None = Query(default=None, description="Comma separated: progress, rssfeed."),
    library: LibraryModel = Depends(get_library),
    service: LibraryQueryService = Depends(get_query_service),
    user_id: str = Depends(get_user_id),
) -> dict[str, Any]:
    """Return a single series, raising when missing."""

    series = service.get_series(library, series_id, parse_include(include), user_id=user_id)
    if series is None:
        raise HTTPException(status_code=404, detail="Series not found")
    return series


@router.get("/{library_id}/authors", response_model=AuthorListModel)
def list_library_authors(
    library: LibraryModel = Depends(get_library),
    service: LibraryQueryService = Depends(get_query_service),
) -> AuthorListModel:
    """Return the library's authors with book counts in natural name order."""

    return service.list_authors(library)


@router.get("/{library_id}/narrators", response_model=NarratorListModel)
def list_library_narrators(
    library: LibraryModel = Depends(get_library),
    service: LibraryQueryService = Depends(get_query_service),
) -> NarratorListModel:
    """Return the library's narrators with book counts in natural name order."""

    return service.list_narrators(library)


@router.get("/{library_id}/search")
def search_library(
    q: str | None = Query(default=None, description="Free-text search query."),
    limit: str | None = Query(default=None, description="Maximum entries per result facet."),
    library: LibraryModel = Depends(get_library),
    service: LibraryQueryService = Depends(get_query_service),
    settings: ShelfSettings = Depends(get_settings),
) -> dict[str, list[dict[str, Any]]]:
    """Search items, tags, authors, series and narrators of the library."""

    max_results = max(parse_int(limit, default=settings.search_default_limit), 0)
    try:
        return service.search(library, q, limit=max_results)
    except BadRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
