"""Catalog proxy endpoints (Spotify search and browse)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from rankify.api.dependencies import get_catalog_client, get_current_user_id
from rankify.api.schemas.catalog import CatalogSearchResponse, from_domain_item
from rankify.domain.entities import CatalogItem
from rankify.infrastructure.integrations import SpotifyCatalogClient

router = APIRouter(prefix="/catalog", tags=["Catalog"])


def _response(items: list[CatalogItem]) -> CatalogSearchResponse:
    return CatalogSearchResponse(items=[from_domain_item(i) for i in items], total=len(items))


@router.get("/search", response_model=CatalogSearchResponse)
async def search_catalog(
    _user_id: Annotated[str, Depends(get_current_user_id)],
    client: Annotated[SpotifyCatalogClient, Depends(get_catalog_client)],
    q: Annotated[str, Query(description="Search text")] = "",
    type: Annotated[str, Query(description="Comma separated: artist,album,track")] = "album",
    limit: Annotated[int, Query()] = 10,
) -> CatalogSearchResponse:
    types = [t.strip() for t in type.split(",") if t.strip()]
    return _response(await client.search(q, types=types, limit=limit))


@router.get("/artists/{artist_id}/albums", response_model=CatalogSearchResponse)
async def artist_albums(
    artist_id: str,
    _user_id: Annotated[str, Depends(get_current_user_id)],
    client: Annotated[SpotifyCatalogClient, Depends(get_catalog_client)],
) -> CatalogSearchResponse:
    return _response(list(await client.get_artist_albums(artist_id)))


@router.get("/artists/{artist_id}/top-tracks", response_model=CatalogSearchResponse)
async def artist_top_tracks(
    artist_id: str,
    _user_id: Annotated[str, Depends(get_current_user_id)],
    client: Annotated[SpotifyCatalogClient, Depends(get_catalog_client)],
) -> CatalogSearchResponse:
    return _response(list(await client.get_artist_top_tracks(artist_id)))


@router.get("/albums/{album_id}/tracks", response_model=CatalogSearchResponse)
async def album_tracks(
    album_id: str,
    _user_id: Annotated[str, Depends(get_current_user_id)],
    client: Annotated[SpotifyCatalogClient, Depends(get_catalog_client)],
) -> CatalogSearchResponse:
    return _response(list(await client.get_album_tracks(album_id)))
