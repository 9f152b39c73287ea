"""Integration clients for external services."""

from .openlist import OpenListClient
from .tmdb import TMDBClient

__all__ = ["OpenListClient", "TMDBClient"]
