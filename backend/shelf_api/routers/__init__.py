"""Router exports for the library query API."""
from . import config, health, libraries

__all__ = ["config", "health", "libraries"]
