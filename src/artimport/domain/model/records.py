"""Canonical artwork records and their view of the existing store."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

type TagValue = str | int | float | bool
type Tags = Mapping[str, TagValue]


def _frozen_tags(tags: Mapping[str, TagValue] | None) -> Tags:
    return MappingProxyType(dict(tags or {}))


@dataclass(slots=True, frozen=True)
class Location:
    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.lat <= 90.0:
            raise ValueError(f"Latitude out of range: {self.lat}")
        if not -180.0 <= self.lon <= 180.0:
            raise ValueError(f"Longitude out of range: {self.lon}")

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(slots=True, frozen=True)
class CanonicalRecord:
    """Importer-neutral shape of one candidate artwork."""

    external_id: str
    location: Location
    title: str
    source: str
    artists: tuple[str, ...] = ()
    tags: Tags = field(default_factory=lambda: _frozen_tags(None))
    photos: tuple[str, ...] = ()
    description: str | None = None

    def __post_init__(self) -> None:
        if not self.external_id.strip():
            raise ValueError("Record is missing an external id")
        if not self.title.strip():
            raise ValueError(f"Record {self.external_id} is missing a title")
        object.__setattr__(self, "tags", _frozen_tags(self.tags))

    @property
    def lat(self) -> float:
        return self.location.lat

    @property
    def lon(self) -> float:
        return self.location.lon


@dataclass(slots=True, frozen=True)
class ExistingArtwork:
    """An artwork already held by the remote store."""

    id: str
    location: Location
    title: str | None = None
    tags: Tags = field(default_factory=lambda: _frozen_tags(None))

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", _frozen_tags(self.tags))


@dataclass(slots=True, frozen=True)
class SubmissionReceipt:
    artwork_id: str
    status: str | None = None
    message: str | None = None
