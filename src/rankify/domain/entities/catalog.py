"""Catalog items: the things a ranking orders.

Hey future me - this is an explicit TAGGED UNION! Every item carries a `kind`
discriminant (artist / album / track). Never figure out what an item is by
sniffing for fields like duration_ms or total_tracks - switch on `kind`.
"""

from dataclasses import dataclass, field
from enum import Enum


class CatalogItemKind(str, Enum):
    """Discriminant for catalog items."""

    ARTIST = "artist"
    ALBUM = "album"
    TRACK = "track"


@dataclass(frozen=True)
class ArtistRef:
    """Minimal artist reference embedded in albums and tracks."""

    id: str
    name: str
    spotify_url: str | None = None


@dataclass
class CatalogArtist:
    """An artist as returned by the catalog provider."""

    id: str
    name: str
    image_url: str | None = None
    genres: list[str] = field(default_factory=list)
    popularity: int | None = None
    spotify_url: str | None = None
    kind: CatalogItemKind = field(default=CatalogItemKind.ARTIST, init=False)


@dataclass
class CatalogAlbum:
    """An album as returned by the catalog provider."""

    id: str
    name: str
    artists: list[ArtistRef] = field(default_factory=list)
    image_url: str | None = None
    release_date: str | None = None
    total_tracks: int | None = None
    spotify_url: str | None = None
    kind: CatalogItemKind = field(default=CatalogItemKind.ALBUM, init=False)

    @property
    def primary_artist(self) -> ArtistRef | None:
        """First credited artist (used as the album's parent reference)."""
        return self.artists[0] if self.artists else None


@dataclass
class CatalogTrack:
    """A track as returned by the catalog provider."""

    id: str
    name: str
    artists: list[ArtistRef] = field(default_factory=list)
    album: CatalogAlbum | None = None
    duration_ms: int | None = None
    track_number: int | None = None
    image_url: str | None = None
    spotify_url: str | None = None
    kind: CatalogItemKind = field(default=CatalogItemKind.TRACK, init=False)


CatalogItem = CatalogArtist | CatalogAlbum | CatalogTrack
