"""Pydantic models for the supported input file formats."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _as_string_list(value: object) -> object:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class ImportBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# Generic canonical format


class GenericRecordPayload(ImportBaseModel):
    """One record of the importer-neutral JSON array format."""

    external_id: str = Field(min_length=1)
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    title: str = Field(min_length=1)
    artists: list[str] = Field(default_factory=list[str])
    tags: dict[str, str | int | float | bool] = Field(
        default_factory=dict[str, str | int | float | bool]
    )
    photos: list[str] = Field(default_factory=list[str])
    description: str | None = None
    source: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, value: object) -> object:
        if not isinstance(value, Mapping):
            return value
        data = dict(cast(Mapping[str, object], value))
        if "external_id" not in data:
            for key in ("id", "registryid", "uuid"):
                if data.get(key) is not None:
                    data["external_id"] = str(data[key])
                    break
        elif data["external_id"] is not None:
            data["external_id"] = str(data["external_id"])
        if "artists" not in data and "artist" in data:
            data["artists"] = data["artist"]
        if "lon" not in data and "lng" in data:
            data["lon"] = data["lng"]
        return data

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("title must not be blank")
        return stripped

    @field_validator("artists", mode="before")
    @classmethod
    def _split_artists(cls, value: object) -> object:
        value = _as_string_list(value)
        if isinstance(value, list):
            names = cast(list[object], value)
            return [name.strip() for name in names if isinstance(name, str) and name.strip()]
        return value

    @field_validator("photos", mode="before")
    @classmethod
    def _photo_urls(cls, value: object) -> object:
        value = _as_string_list(value)
        if isinstance(value, list):
            urls: list[object] = []
            for item in cast(list[object], value):
                if isinstance(item, Mapping):
                    urls.append(cast(Mapping[str, object], item).get("url"))
                else:
                    urls.append(item)
            return urls
        return value

    _normalize_description = field_validator("description", "source", mode="before")(
        _blank_to_none
    )


# OpenStreetMap GeoJSON


class PointGeometry(ImportBaseModel):
    type: Literal["Point"]
    coordinates: tuple[float, float] = Field(description="[lon, lat]")

    @field_validator("coordinates", mode="before")
    @classmethod
    def _first_two(cls, value: object) -> object:
        if isinstance(value, list | tuple) and len(cast(list[object], value)) > 2:
            return list(cast(list[object], value))[:2]
        return value


class OsmFeature(ImportBaseModel):
    type: Literal["Feature"] = "Feature"
    id: str | int | None = None
    geometry: PointGeometry
    properties: dict[str, object] = Field(default_factory=dict[str, object])

    @field_validator("properties", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return {} if value is None else value


# City of Vancouver public art open data


class GeoPoint(ImportBaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class VancouverPhoto(ImportBaseModel):
    url: str | None = None
    filename: str | None = None


class VancouverArtworkPayload(ImportBaseModel):
    registryid: int | str
    title_of_work: str | None = None
    geo_point_2d: GeoPoint
    descriptionofwork: str | None = None
    artistprojectstatement: str | None = None
    primarymaterial: str | None = None
    type: str | None = None
    yearofinstallation: str | None = None
    ownership: str | None = None
    locationonsite: str | None = None
    neighbourhood: str | None = None
    geo_local_area: str | None = None
    sitename: str | None = None
    siteaddress: str | None = None
    photourl: VancouverPhoto | None = None
    photocredits: str | None = None
    url: str | None = None
    status: str | None = None
    artists: list[str] = Field(default_factory=list[str])

    @field_validator("yearofinstallation", mode="before")
    @classmethod
    def _year_to_text(cls, value: object) -> object:
        if isinstance(value, int):
            return str(value)
        return _blank_to_none(value)

    @field_validator("artists", mode="before")
    @classmethod
    def _artist_ids(cls, value: object) -> object:
        value = _as_string_list(value)
        if isinstance(value, list):
            return [str(item) for item in cast(list[object], value) if item not in (None, "")]
        return value

    _normalize_text = field_validator(
        "title_of_work",
        "descriptionofwork",
        "artistprojectstatement",
        "primarymaterial",
        "type",
        "ownership",
        "locationonsite",
        "neighbourhood",
        "geo_local_area",
        "sitename",
        "siteaddress",
        "photocredits",
        "url",
        "status",
        mode="before",
    )(_blank_to_none)


class VancouverArtistPayload(ImportBaseModel):
    artistid: int | str
    firstname: str | None = None
    lastname: str | None = None
    artisturl: str | None = None
    biography: str | None = None
    country: str | None = None
    photo: str | None = None
    website: str | None = None

    _normalize_text = field_validator(
        "firstname",
        "lastname",
        "artisturl",
        "biography",
        "country",
        "photo",
        "website",
        mode="before",
    )(_blank_to_none)
