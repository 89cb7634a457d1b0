"""Importer for OpenStreetMap GeoJSON exports (Overpass ``out geom`` → GeoJSON)."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, cast

from pydantic import ValidationError

from artimport.domain.errors import RecordMappingError
from artimport.domain.model import CanonicalRecord, Location, TagValue
from artimport.domain.normalization import slugify

from .loading import as_records, mapping_error, read_json
from .schema import OsmFeature

if TYPE_CHECKING:
    from pathlib import Path

    from artimport.domain.ports import RawRecord

log = getLogger(__name__)

OSM_SOURCE = "openstreetmap"
# OSM node positions are often a facade or entrance rather than the artwork itself.
OSM_DUPLICATE_RADIUS = 100.0
UNNAMED_TITLE = "Unnamed Artwork"

TITLE_KEYS = ("name", "title", "name:en", "official_name")
ARTIST_KEYS = ("artist_name", "artist", "artist:name")
YEAR_KEYS = ("start_date", "year", "date")
PHOTO_KEYS = ("image", "image:0", "photo")
ARTWORK_HISTORIC_VALUES = frozenset({"memorial", "monument"})
_HTTP_SCHEMES = ("http://", "https://")

_YEAR = re.compile(r"\b(?:19|20)\d{2}\b")
_ARTIST_SEPARATORS = re.compile(r"\s*(?:;|,|&|\band\b)\s*")


def is_artwork_feature(properties: Mapping[str, object]) -> bool:
    return (
        properties.get("tourism") == "artwork"
        or bool(properties.get("artwork_type"))
        or properties.get("historic") in ARTWORK_HISTORIC_VALUES
    )


def split_artist_names(value: str) -> list[str]:
    return [name for name in _ARTIST_SEPARATORS.split(value.strip()) if name]


def extract_year(properties: Mapping[str, object]) -> str | None:
    for key in YEAR_KEYS:
        value = properties.get(key)
        if value is None:
            continue
        if match := _YEAR.search(str(value)):
            return match.group(0)
    return None


def _text(properties: Mapping[str, object], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = properties.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _feature_id(raw: RawRecord) -> str | None:
    identifier = raw.get("id")
    if identifier is None:
        properties = raw.get("properties")
        if isinstance(properties, Mapping):
            identifier = cast(Mapping[str, object], properties).get("@id")
    if identifier is None or not str(identifier).strip():
        return None
    return str(identifier).strip().replace("/", "-")


@dataclass(slots=True)
class OsmImporter:
    name: str = "osm"
    description: str = "OpenStreetMap GeoJSON FeatureCollection of artwork points"
    default_config: Mapping[str, object] = field(
        default_factory=lambda: {"duplicate_radius": OSM_DUPLICATE_RADIUS}
    )

    def load(self, path: Path) -> list[RawRecord]:
        features = as_records(read_json(path), path=path, container_keys=("features",))
        selected = [
            feature
            for feature in features
            if not isinstance(feature.get("properties"), Mapping)
            or is_artwork_feature(cast(Mapping[str, object], feature["properties"]))
        ]
        if len(selected) != len(features):
            log.info(
                "Skipped %s non-artwork feature(s) in %s", len(features) - len(selected), path
            )
        return selected

    def record_id(self, raw: RawRecord, index: int) -> str:
        feature_id = _feature_id(raw)
        return f"osm-{feature_id}" if feature_id else f"osm-feature-{index + 1}"

    def map_record(self, raw: RawRecord, *, source: str | None = None) -> CanonicalRecord:
        try:
            feature = OsmFeature.model_validate(raw)
        except ValidationError as exc:
            raise mapping_error(exc, record_id=self.record_id(raw, 0)) from exc

        properties = feature.properties
        lon, lat = feature.geometry.coordinates
        title = _text(properties, TITLE_KEYS) or UNNAMED_TITLE
        feature_id = _feature_id(raw)
        external_id = (
            f"osm-{feature_id}" if feature_id else f"osm-{slugify(title)}-{lat:.6f}-{lon:.6f}"
        )

        artist_text = _text(properties, ARTIST_KEYS)
        tags: dict[str, TagValue] = {
            key: value
            for key, value in properties.items()
            if isinstance(value, str | int | float | bool) and value != ""
        }
        if feature_id:
            tags["osm_id"] = feature_id
        if year := extract_year(properties):
            tags["year"] = year

        photos = tuple(
            url
            for key in PHOTO_KEYS
            if isinstance(url := properties.get(key), str) and url.startswith(_HTTP_SCHEMES)
        )

        try:
            location = Location(lat=lat, lon=lon)
        except ValueError as exc:
            message = f"Record {external_id} has invalid coordinates: {exc}"
            raise RecordMappingError(message) from exc

        return CanonicalRecord(
            external_id=external_id,
            location=location,
            title=title,
            source=source or OSM_SOURCE,
            artists=tuple(split_artist_names(artist_text)) if artist_text else (),
            tags=tags,
            photos=photos,
            description=_text(properties, ("description", "inscription")),
        )
