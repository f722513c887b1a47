"""CLI entry point for launching the library API with Uvicorn."""
import logging

import uvicorn

from .app import create_app
from .settings import ShelfSettings


def main() -> None:
    """Start a development server for the library API."""

    settings = ShelfSettings()
    logging.basicConfig(level=settings.log_level.upper())
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
