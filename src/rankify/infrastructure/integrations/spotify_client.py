"""Spotify Web API catalog client (client-credentials flow).

Hey future me - this is an APP token, not a user token. Nobody logs in to
Spotify here: we trade client id + secret for a short-lived bearer token and
share it across all requests in the process via CatalogTokenCache.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx

from rankify.config.settings import SpotifySettings
from rankify.domain.entities import (
    ArtistRef,
    CatalogAlbum,
    CatalogArtist,
    CatalogItem,
    CatalogItemKind,
    CatalogTrack,
)
from rankify.domain.exceptions import (
    ConfigurationError,
    ExternalServiceError,
    ValidationException,
)

logger = logging.getLogger(__name__)

SEARCH_TYPES = {kind.value for kind in CatalogItemKind}
MAX_SEARCH_LIMIT = 50


class CatalogTokenCache:
    """App-token cache with expiry and single-flight refresh.

    `fetch` returns (access_token, expires_in_seconds). The token is treated as
    expired `margin_seconds` before the provider says so. Concurrent callers
    that find the cache empty wait on one lock, so only one fetch happens.
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[tuple[str, int]]],
        margin_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetch = fetch
        self._margin = margin_seconds
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0
        self._lock = asyncio.Lock()
        self.refresh_count = 0

    @property
    def is_valid(self) -> bool:
        return self._token is not None and self._clock() < self._expires_at

    async def get_token(self) -> str:
        if self.is_valid:
            return self._token  # type: ignore[return-value]

        async with self._lock:
            # someone else may have refreshed while we waited for the lock
            if self.is_valid:
                return self._token  # type: ignore[return-value]

            token, expires_in = await self._fetch()
            self._token = token
            self._expires_at = self._clock() + max(expires_in - self._margin, 0)
            self.refresh_count += 1
            logger.info("Obtained Spotify app token (expires in %ss)", expires_in)
            return token

    def invalidate(self, stale_token: str | None = None) -> None:
        """Drop the cached token.

        With stale_token, only drop it if it is still the cached one; a token
        refreshed by a concurrent 401 handler survives.
        """
        if stale_token is None or stale_token == self._token:
            self._token = None
            self._expires_at = 0.0


def _image_url(data: dict[str, Any]) -> str | None:
    images = data.get("images") or []
    return images[0].get("url") if images else None


def _spotify_url(data: dict[str, Any]) -> str | None:
    return (data.get("external_urls") or {}).get("spotify")


def _artist_refs(data: dict[str, Any]) -> list[ArtistRef]:
    return [
        ArtistRef(id=a["id"], name=a.get("name", ""), spotify_url=_spotify_url(a))
        for a in data.get("artists") or []
        if a.get("id")
    ]


def artist_from_payload(data: dict[str, Any]) -> CatalogArtist:
    return CatalogArtist(
        id=data["id"],
        name=data.get("name", ""),
        image_url=_image_url(data),
        genres=list(data.get("genres") or []),
        popularity=data.get("popularity"),
        spotify_url=_spotify_url(data),
    )


def album_from_payload(data: dict[str, Any]) -> CatalogAlbum:
    return CatalogAlbum(
        id=data["id"],
        name=data.get("name", ""),
        artists=_artist_refs(data),
        image_url=_image_url(data),
        release_date=data.get("release_date"),
        total_tracks=data.get("total_tracks"),
        spotify_url=_spotify_url(data),
    )


def track_from_payload(data: dict[str, Any], album: CatalogAlbum | None = None) -> CatalogTrack:
    """Convert a track object. Album-tracks listings omit `album`, pass it in."""
    if album is None and data.get("album"):
        album = album_from_payload(data["album"])
    return CatalogTrack(
        id=data["id"],
        name=data.get("name", ""),
        artists=_artist_refs(data),
        album=album,
        duration_ms=data.get("duration_ms"),
        track_number=data.get("track_number"),
        image_url=album.image_url if album else None,
        spotify_url=_spotify_url(data),
    )


_CONVERTERS: dict[str, Callable[[dict[str, Any]], CatalogItem]] = {
    "artist": artist_from_payload,
    "album": album_from_payload,
    "track": track_from_payload,
}


class SpotifyCatalogClient:
    """Search and browse the Spotify catalog, returning tagged catalog items."""

    def __init__(
        self,
        settings: SpotifySettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.token_cache = CatalogTokenCache(
            self._fetch_token, margin_seconds=settings.token_expiry_margin_seconds
        )

    # Created lazily so construction doesn't need a running event loop.
    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.timeout_seconds, transport=self._transport
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "SpotifyCatalogClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _fetch_token(self) -> tuple[str, int]:
        if not self.settings.is_configured:
            raise ConfigurationError("Spotify credentials not configured")

        client = await self._get_client()
        try:
            response = await client.post(
                self.settings.token_url,
                data={"grant_type": "client_credentials"},
                auth=(self.settings.client_id, self.settings.client_secret),
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Spotify token request failed: {e}") from e

        if response.status_code != 200:
            logger.error(
                "Spotify token request failed: %d %s", response.status_code, response.text
            )
            raise ExternalServiceError(
                "Failed to get Spotify access token", status_code=response.status_code
            )

        data = response.json()
        token = data.get("access_token")
        if not token:
            raise ExternalServiceError("No access token received from Spotify")
        return token, int(data.get("expires_in", 3600))

    async def _send(self, path: str, params: dict[str, Any] | None) -> httpx.Response:
        client = await self._get_client()
        token = await self.token_cache.get_token()
        url = f"{self.settings.api_base_url}{path}"
        try:
            response = await client.get(
                url, params=params, headers={"Authorization": f"Bearer {token}"}
            )
            if response.status_code == 401:
                # Token revoked or expired early: drop it and retry exactly once.
                logger.info("Spotify returned 401 for %s, refreshing token and retrying", path)
                self.token_cache.invalidate(token)
                token = await self.token_cache.get_token()
                response = await client.get(
                    url, params=params, headers={"Authorization": f"Bearer {token}"}
                )
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Spotify request failed: {e}") from e
        return response

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = await self._send(path, params)
        if response.status_code == 404:
            raise ExternalServiceError("Catalog item not found", status_code=404)
        if not response.is_success:
            logger.error(
                "Spotify API request failed: %s → %d %s",
                path,
                response.status_code,
                response.text[:500],
            )
            raise ExternalServiceError(
                "Spotify API request failed", status_code=response.status_code
            )
        return response.json()  # type: ignore[no-any-return]

    async def search(
        self, query: str, types: Sequence[str] = ("album",), limit: int = 10
    ) -> list[CatalogItem]:
        """Search the catalog. Results are grouped per type in request order."""
        if not query or not query.strip():
            raise ValidationException("Query parameter is required")
        unknown = [t for t in types if t not in SEARCH_TYPES]
        if not types or unknown:
            raise ValidationException(f"Invalid search type(s): {', '.join(unknown) or '-'}")
        if not 1 <= limit <= MAX_SEARCH_LIMIT:
            raise ValidationException(f"limit must be between 1 and {MAX_SEARCH_LIMIT}")

        data = await self._get(
            "/search",
            {
                "q": query.strip(),
                "type": ",".join(types),
                "limit": limit,
                "market": self.settings.market,
            },
        )
        items: list[CatalogItem] = []
        for search_type in types:
            # Spotify pads result lists with null entries now and then
            for raw in (data.get(f"{search_type}s") or {}).get("items") or []:
                if raw and raw.get("id"):
                    items.append(_CONVERTERS[search_type](raw))
        return items

    async def get_artist_albums(self, artist_id: str) -> list[CatalogAlbum]:
        """Albums and singles of an artist (fixed-pool source for album rankings)."""
        data = await self._get(
            f"/artists/{artist_id}/albums",
            {"include_groups": "album,single", "market": self.settings.market, "limit": 50},
        )
        return [album_from_payload(raw) for raw in data.get("items") or [] if raw]

    async def get_artist_top_tracks(self, artist_id: str) -> list[CatalogTrack]:
        data = await self._get(
            f"/artists/{artist_id}/top-tracks", {"market": self.settings.market}
        )
        return [track_from_payload(raw) for raw in data.get("tracks") or [] if raw]

    async def get_album_tracks(self, album_id: str) -> list[CatalogTrack]:
        """Tracklist of an album, each track carrying the album (for its cover art)."""
        data = await self._get(f"/albums/{album_id}", {"market": self.settings.market})
        album = album_from_payload(data)
        return [
            track_from_payload(raw, album=album)
            for raw in (data.get("tracks") or {}).get("items") or []
            if raw
        ]
