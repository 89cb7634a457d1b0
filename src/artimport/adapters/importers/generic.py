"""Importer for files already in the canonical record shape."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import ValidationError

from artimport.domain.model import CanonicalRecord, Location

from .loading import as_records, first_present, mapping_error, read_json
from .schema import GenericRecordPayload

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from artimport.domain.ports import RawRecord

GENERIC_SOURCE = "mass-import"
RECORD_ID_KEYS = ("id", "registryid", "external_id", "uuid")


def generic_record_id(raw: RawRecord, index: int) -> str:
    return first_present(raw, RECORD_ID_KEYS) or f"record-{index + 1}"


@dataclass(slots=True)
class GenericImporter:
    name: str = "generic"
    description: str = "JSON array of records with id, lat, lon, title, artists, tags and photos"
    default_source: str = GENERIC_SOURCE
    default_config: Mapping[str, object] = field(default_factory=dict[str, object])

    def load(self, path: Path) -> list[RawRecord]:
        return as_records(read_json(path), path=path, container_keys=("records", "data"))

    def record_id(self, raw: RawRecord, index: int) -> str:
        return generic_record_id(raw, index)

    def map_record(self, raw: RawRecord, *, source: str | None = None) -> CanonicalRecord:
        try:
            payload = GenericRecordPayload.model_validate(raw)
        except ValidationError as exc:
            record_id = first_present(raw, RECORD_ID_KEYS) or "(no id)"
            raise mapping_error(exc, record_id=record_id) from exc

        return CanonicalRecord(
            external_id=payload.external_id,
            location=Location(lat=payload.lat, lon=payload.lon),
            title=payload.title,
            source=source or payload.source or self.default_source,
            artists=tuple(payload.artists),
            tags=payload.tags,
            photos=tuple(payload.photos),
            description=payload.description,
        )
