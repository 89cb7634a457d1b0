"""Importer for the City of Vancouver public art open-data export."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from artimport.domain.model import CanonicalRecord, Location, SourceArtist, TagValue

from .loading import as_records, first_present, mapping_error, read_json
from .schema import VancouverArtworkPayload

if TYPE_CHECKING:
    from pathlib import Path

    from artimport.domain.ports import RawRecord

log = getLogger(__name__)

VANCOUVER_SOURCE = "vancouver-opendata"
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000

MATERIAL_MAP: Mapping[str, str] = {
    "bronze": "bronze",
    "steel": "steel",
    "stainless steel": "steel",
    "aluminum": "aluminium",
    "aluminium": "aluminium",
    "concrete": "concrete",
    "stone": "stone",
    "granite": "granite",
    "marble": "marble",
    "wood": "wood",
    "cedar": "wood",
    "glass": "glass",
    "ceramic": "ceramic",
    "paint": "paint",
    "acrylic": "paint",
    "mixed media": "mixed",
}

ARTWORK_TYPE_MAP: Mapping[str, str] = {
    "sculpture": "sculpture",
    "mural": "mural",
    "installation": "installation",
    "monument": "monument",
    "mosaic": "mosaic",
    "painting": "mural",
    "fountain": "sculpture",
    "statue": "statue",
    "relief": "sculpture",
    "memorial": "monument",
}
DEFAULT_ARTWORK_TYPE = "sculpture"

CONDITION_MAP: Mapping[str, str] = {
    "in place": "good",
    "installed": "good",
    "active": "good",
    "relocated": "good",
    "restored": "excellent",
    "removed": "poor",
    "damaged": "poor",
    "missing": "poor",
}
DEFAULT_CONDITION = "unknown"

_STATEMENT_ARTIST = re.compile(r"Artist:?\s*([^,\n]+)")


def _lookup(mapping: Mapping[str, str], value: str) -> str | None:
    """Exact key first, then the first key contained in (or containing) the value."""

    normalized = " ".join(value.lower().split())
    if normalized in mapping:
        return mapping[normalized]
    for key, mapped in mapping.items():
        if key in normalized or normalized in key:
            return mapped
    return None


def map_material(value: str) -> str:
    return _lookup(MATERIAL_MAP, value) or " ".join(value.lower().split())


def map_artwork_type(value: str) -> str:
    return _lookup(ARTWORK_TYPE_MAP, value) or DEFAULT_ARTWORK_TYPE


def map_condition(status: str) -> str:
    return CONDITION_MAP.get(" ".join(status.lower().split()), DEFAULT_CONDITION)


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _statement(text: str) -> str:
    statement = text.strip()
    if len(statement) > 1 and statement.startswith('"') and statement.endswith('"'):
        statement = statement[1:-1].strip()
    return statement


@dataclass(slots=True)
class VancouverImporter:
    """Maps Vancouver open-data rows onto canonical records.

    The export lists artists as numeric ids. When ``artist_lookup`` is set (from
    the companion artists file) the ids are resolved to names; otherwise names are
    taken from an ``Artist:`` line in the project statement when present.
    """

    name: str = "vancouver"
    description: str = "City of Vancouver public art open-data JSON export"
    default_config: Mapping[str, object] = field(default_factory=dict[str, object])
    artist_lookup: Mapping[str, SourceArtist] = field(default_factory=dict[str, SourceArtist])

    def load(self, path: Path) -> list[RawRecord]:
        return as_records(read_json(path), path=path, container_keys=("results", "records"))

    def record_id(self, raw: RawRecord, index: int) -> str:
        return first_present(raw, ("registryid",)) or f"vancouver-record-{index + 1}"

    def map_record(self, raw: RawRecord, *, source: str | None = None) -> CanonicalRecord:
        try:
            payload = VancouverArtworkPayload.model_validate(raw)
        except ValidationError as exc:
            record_id = first_present(raw, ("registryid",)) or "(no registryid)"
            raise mapping_error(exc, record_id=record_id) from exc

        registry_id = str(payload.registryid).strip()
        title = truncate(payload.title_of_work or f"Artwork #{registry_id}", MAX_TITLE_LENGTH)
        photos = (payload.photourl.url,) if payload.photourl and payload.photourl.url else ()

        return CanonicalRecord(
            external_id=registry_id,
            location=Location(lat=payload.geo_point_2d.lat, lon=payload.geo_point_2d.lon),
            title=title,
            source=source or VANCOUVER_SOURCE,
            artists=tuple(self._artist_names(payload)),
            tags=self._tags(payload),
            photos=photos,
            description=self._description(payload),
        )

    def _artist_names(self, payload: VancouverArtworkPayload) -> list[str]:
        if self.artist_lookup:
            names: list[str] = []
            for artist_id in payload.artists:
                artist = self.artist_lookup.get(artist_id)
                if artist is None or not artist.full_name:
                    log.warning(
                        "Artist id %s of record %s not found in artist data",
                        artist_id,
                        payload.registryid,
                    )
                    continue
                names.append(artist.full_name)
            return names
        if payload.artistprojectstatement:
            match = _STATEMENT_ARTIST.search(payload.artistprojectstatement)
            if match and match.group(1).strip():
                return [match.group(1).strip()]
        return []

    @staticmethod
    def _description(payload: VancouverArtworkPayload) -> str | None:
        parts: list[str] = []
        if payload.descriptionofwork:
            parts.append(payload.descriptionofwork)
        if payload.artistprojectstatement:
            statement = _statement(payload.artistprojectstatement)
            if statement and statement != payload.descriptionofwork:
                parts.append(f"Artist Statement: {statement}")
        if not parts:
            return None
        return truncate("\n\n".join(parts), MAX_DESCRIPTION_LENGTH)

    @staticmethod
    def _tags(payload: VancouverArtworkPayload) -> dict[str, TagValue]:
        tags: dict[str, TagValue] = {
            "tourism": "artwork",
            "registry_id": str(payload.registryid),
        }
        if payload.primarymaterial:
            tags["material"] = map_material(payload.primarymaterial)
        if payload.type:
            tags["artwork_type"] = map_artwork_type(payload.type)
        if payload.yearofinstallation:
            tags["start_date"] = payload.yearofinstallation
        if payload.ownership:
            tags["operator"] = payload.ownership
        if payload.locationonsite:
            tags["location"] = payload.locationonsite
        if neighbourhood := payload.neighbourhood or payload.geo_local_area:
            tags["neighbourhood"] = neighbourhood
        if payload.status:
            tags["condition"] = map_condition(payload.status)
        if payload.sitename:
            tags["site"] = payload.sitename
        if payload.siteaddress:
            tags["address"] = payload.siteaddress
        if payload.photocredits:
            tags["photo_credit"] = payload.photocredits
        if payload.url:
            tags["website"] = payload.url
        if payload.artists:
            tags["artist_ids"] = ",".join(payload.artists)
        return tags
