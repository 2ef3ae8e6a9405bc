"""Denormalized catalog cache.

Whenever a ranking (or its pool) references catalog items, their metadata is
upserted into the local artists/albums/tracks tables so detail views can
render without calling the catalog provider. This is enrichment only: a
failure is logged and the ranking save goes on without it.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from rankify.application.services.side_effects import run_best_effort
from rankify.domain.entities import (
    ArtistRef,
    CatalogAlbum,
    CatalogArtist,
    CatalogItem,
    CatalogItemKind,
    CatalogTrack,
)
from rankify.infrastructure.persistence.repositories import CatalogRepository

logger = logging.getLogger(__name__)


@dataclass
class CatalogBatch:
    """Deduplicated catalog rows extracted from a set of items."""

    artists: dict[str, CatalogArtist] = field(default_factory=dict)
    # Artists only known through an album/track credit (no image, no genres).
    artist_refs: dict[str, CatalogArtist] = field(default_factory=dict)
    albums: dict[str, CatalogAlbum] = field(default_factory=dict)
    tracks: dict[str, CatalogTrack] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.artists or self.artist_refs or self.albums or self.tracks)

    def _add_refs(self, refs: Iterable[ArtistRef]) -> None:
        for ref in refs:
            if ref.id and ref.id not in self.artists:
                self.artist_refs.setdefault(
                    ref.id, CatalogArtist(id=ref.id, name=ref.name, spotify_url=ref.spotify_url)
                )

    def add(self, item: CatalogItem) -> None:
        if item.kind is CatalogItemKind.ARTIST:
            self.artists[item.id] = item  # type: ignore[assignment]
            self.artist_refs.pop(item.id, None)
        elif item.kind is CatalogItemKind.ALBUM:
            self.albums[item.id] = item  # type: ignore[assignment]
            self._add_refs(item.artists)  # type: ignore[union-attr]
        else:
            self.tracks[item.id] = item  # type: ignore[assignment]
            self._add_refs(item.artists)  # type: ignore[union-attr]
            album = item.album  # type: ignore[union-attr]
            if album is not None:
                self.albums.setdefault(album.id, album)
                self._add_refs(album.artists)


def collect_catalog_rows(items: Iterable[CatalogItem]) -> CatalogBatch:
    batch = CatalogBatch()
    for item in items:
        batch.add(item)
    return batch


class CatalogCacheService:
    """Upserts referenced catalog items into the local cache."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.catalog_repository = CatalogRepository(session)

    async def _write(self, batch: CatalogBatch) -> None:
        await self.catalog_repository.upsert_artists(list(batch.artists.values()))
        # stub artists never overwrite a fully cached artist row
        await self.catalog_repository.upsert_artists(
            list(batch.artist_refs.values()), overwrite=False
        )
        await self.catalog_repository.upsert_albums(list(batch.albums.values()))
        await self.catalog_repository.upsert_tracks(list(batch.tracks.values()))

    async def cache_items(self, items: Iterable[CatalogItem]) -> bool:
        """Best-effort upsert of items (and their embedded artists/albums).

        Returns True if the cache was written, False if it failed (already logged).
        """
        batch = collect_catalog_rows(items)
        if batch.is_empty:
            return True

        async def write() -> bool:
            await self._write(batch)
            return True

        written = await run_best_effort(self.session, "Catalog cache upsert", write)
        if written:
            logger.debug(
                "Cached %d artists, %d albums, %d tracks",
                len(batch.artists) + len(batch.artist_refs),
                len(batch.albums),
                len(batch.tracks),
            )
        return bool(written)
