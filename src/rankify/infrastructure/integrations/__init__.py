"""Integrations with external services."""

from rankify.infrastructure.integrations.spotify_client import (
    CatalogTokenCache,
    SpotifyCatalogClient,
)

__all__ = ["CatalogTokenCache", "SpotifyCatalogClient"]
