"""Errors raised by the library query pipeline."""
from __future__ import annotations


class LibraryQueryError(RuntimeError):
    """Base class for query pipeline failures."""


class BadRequestError(LibraryQueryError):
    """Raised when a request is missing required input such as search text."""


class MalformedFieldError(LibraryQueryError):
    """Raised when a narrator or tag value is not a string."""

    def __init__(self, field_name: str, value: object, item_title: str) -> None:
        super().__init__(f'Invalid {field_name} "{value!r}" on item "{item_title}"')
        self.field_name = field_name
        self.value = value
        self.item_title = item_title
