"""API schemas for catalog items (tagged union on `kind`)."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from rankify.domain.entities import (
    ArtistRef,
    CatalogAlbum,
    CatalogArtist,
    CatalogItem,
    CatalogItemKind,
    CatalogTrack,
)


class ArtistRefSchema(BaseModel):
    """Artist credit embedded in albums and tracks."""

    id: str = Field(..., min_length=1)
    name: str = ""
    spotify_url: str | None = None


class ArtistItem(BaseModel):
    kind: Literal["artist"] = "artist"
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    image_url: str | None = None
    genres: list[str] = Field(default_factory=list)
    popularity: int | None = None
    spotify_url: str | None = None


class AlbumItem(BaseModel):
    kind: Literal["album"] = "album"
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    artists: list[ArtistRefSchema] = Field(default_factory=list)
    image_url: str | None = None
    release_date: str | None = None
    total_tracks: int | None = None
    spotify_url: str | None = None


class TrackItem(BaseModel):
    kind: Literal["track"] = "track"
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    artists: list[ArtistRefSchema] = Field(default_factory=list)
    album: AlbumItem | None = None
    duration_ms: int | None = None
    track_number: int | None = None
    image_url: str | None = None
    spotify_url: str | None = None


# Hey future me - pydantic picks the model by the `kind` field. No field-presence sniffing!
CatalogItemSchema = Annotated[ArtistItem | AlbumItem | TrackItem, Field(discriminator="kind")]


def _refs_to_domain(refs: list[ArtistRefSchema]) -> list[ArtistRef]:
    return [ArtistRef(id=r.id, name=r.name, spotify_url=r.spotify_url) for r in refs]


def _refs_from_domain(refs: list[ArtistRef]) -> list[ArtistRefSchema]:
    return [ArtistRefSchema(id=r.id, name=r.name, spotify_url=r.spotify_url) for r in refs]


def _album_to_domain(item: AlbumItem) -> CatalogAlbum:
    return CatalogAlbum(
        id=item.id,
        name=item.name,
        artists=_refs_to_domain(item.artists),
        image_url=item.image_url,
        release_date=item.release_date,
        total_tracks=item.total_tracks,
        spotify_url=item.spotify_url,
    )


def _album_from_domain(album: CatalogAlbum) -> AlbumItem:
    return AlbumItem(
        id=album.id,
        name=album.name,
        artists=_refs_from_domain(album.artists),
        image_url=album.image_url,
        release_date=album.release_date,
        total_tracks=album.total_tracks,
        spotify_url=album.spotify_url,
    )


def to_domain_item(item: ArtistItem | AlbumItem | TrackItem) -> CatalogItem:
    """Schema → domain catalog item."""
    if isinstance(item, ArtistItem):
        return CatalogArtist(
            id=item.id,
            name=item.name,
            image_url=item.image_url,
            genres=list(item.genres),
            popularity=item.popularity,
            spotify_url=item.spotify_url,
        )
    if isinstance(item, AlbumItem):
        return _album_to_domain(item)
    album = _album_to_domain(item.album) if item.album else None
    return CatalogTrack(
        id=item.id,
        name=item.name,
        artists=_refs_to_domain(item.artists),
        album=album,
        duration_ms=item.duration_ms,
        track_number=item.track_number,
        image_url=item.image_url or (album.image_url if album else None),
        spotify_url=item.spotify_url,
    )


def from_domain_item(item: CatalogItem) -> ArtistItem | AlbumItem | TrackItem:
    """Domain catalog item → schema."""
    if item.kind is CatalogItemKind.ARTIST:
        return ArtistItem(
            id=item.id,
            name=item.name,
            image_url=item.image_url,
            genres=list(item.genres),  # type: ignore[union-attr]
            popularity=item.popularity,  # type: ignore[union-attr]
            spotify_url=item.spotify_url,
        )
    if item.kind is CatalogItemKind.ALBUM:
        return _album_from_domain(item)  # type: ignore[arg-type]
    track: CatalogTrack = item  # type: ignore[assignment]
    return TrackItem(
        id=track.id,
        name=track.name,
        artists=_refs_from_domain(track.artists),
        album=_album_from_domain(track.album) if track.album else None,
        duration_ms=track.duration_ms,
        track_number=track.track_number,
        image_url=track.image_url,
        spotify_url=track.spotify_url,
    )


class CatalogSearchResponse(BaseModel):
    """Search/browse results."""

    items: list[CatalogItemSchema]
    total: int
