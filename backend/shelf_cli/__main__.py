"""Console entry point for the Shelfarr CLI (``python -m backend.shelf_cli``)."""
from __future__ import annotations

from .app import app


def main() -> None:
    """Execute the Typer application under the installed script name."""

    app(prog_name="shelfarr")


if __name__ == "__main__":
    main()
