"""Library query pipeline: filtering, collapsing, sorting, paging, projection and search."""

from .errors import BadRequestError, LibraryQueryError, MalformedFieldError
from .library_query import LibraryQueryService, ListingQuery

__all__ = [
    "BadRequestError",
    "LibraryQueryError",
    "LibraryQueryService",
    "ListingQuery",
    "MalformedFieldError",
]
