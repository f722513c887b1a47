"""Typer command line client for the Shelfarr library API."""
