"""Tests for the catalog item schemas (tagged union on `kind`)."""

from typing import Any

import pytest
from pydantic import TypeAdapter, ValidationError

from rankify.api.schemas.catalog import CatalogItemSchema, from_domain_item, to_domain_item
from rankify.domain.entities import CatalogAlbum, CatalogItem, CatalogItemKind, CatalogTrack

adapter: TypeAdapter = TypeAdapter(CatalogItemSchema)


def _parse(data: dict[str, Any]) -> CatalogItem:
    return to_domain_item(adapter.validate_python(data))


def test_track_with_embedded_album() -> None:
    item = _parse(
        {
            "kind": "track",
            "id": "t1",
            "name": "Airbag",
            "artists": [{"id": "ar1", "name": "Radiohead"}],
            "album": {"id": "al1", "name": "OK Computer", "image_url": "cover.jpg"},
            "duration_ms": 284000,
        }
    )

    assert isinstance(item, CatalogTrack)
    assert item.kind is CatalogItemKind.TRACK
    assert isinstance(item.album, CatalogAlbum)
    assert item.album.id == "al1"
    # no own image: falls back to the album cover
    assert item.image_url == "cover.jpg"
    assert item.artists[0].name == "Radiohead"


def test_switches_on_kind_not_fields() -> None:
    # duration_ms on an "album" is ignored, it is still an album
    item = _parse({"kind": "album", "id": "al1", "name": "OK Computer", "duration_ms": 1})
    assert isinstance(item, CatalogAlbum)


@pytest.mark.parametrize(
    "data",
    [
        {"id": "x", "name": "No kind"},
        {"kind": "playlist", "id": "x", "name": "Wrong kind"},
        {"kind": "artist", "name": "No id"},
        {"kind": "artist", "id": "x"},
        {"kind": "album", "id": "", "name": "Blank id"},
    ],
)
def test_invalid_input_is_rejected(data: dict[str, Any]) -> None:
    with pytest.raises(ValidationError):
        adapter.validate_python(data)


def test_domain_item_round_trips_through_schema() -> None:
    track = _parse(
        {
            "kind": "track",
            "id": "t1",
            "name": "Airbag",
            "album": {"id": "al1", "name": "OK Computer"},
            "track_number": 1,
        }
    )

    dumped = from_domain_item(track).model_dump()

    assert dumped["kind"] == "track"
    assert dumped["album"]["kind"] == "album"
    assert dumped["track_number"] == 1
