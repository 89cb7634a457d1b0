"""Pydantic models describing Public Art API payloads."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _parse_tags(value: object) -> object:
    if value is None or value == "":
        return {}
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return {}
    return value


class ApiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorEnvelope(ApiBaseModel):
    success: bool | None = None
    error: str | None = None
    message: str | None = None

    def describe(self) -> str:
        return self.message or self.error or "unknown error"


class ArtworkPayload(ApiBaseModel):
    id: str
    lat: float
    lon: float
    title: str | None = None
    tags: dict[str, object] = Field(default_factory=dict[str, object], alias="tags_parsed")

    @model_validator(mode="before")
    @classmethod
    def _fallback_raw_tags(cls, value: object) -> object:
        if isinstance(value, Mapping):
            data = dict(cast(Mapping[str, object], value))
            if data.get("tags_parsed") is None and "tags" in data:
                data["tags_parsed"] = data["tags"]
            return data
        return value

    _normalize_tags = field_validator("tags", mode="before")(_parse_tags)


class NearbyArtworksData(ApiBaseModel):
    artworks: list[ArtworkPayload] = Field(default_factory=list[ArtworkPayload])


class NearbyArtworksResponse(ApiBaseModel):
    """``/api/artworks/nearby`` answers with ``artworks`` at the top or under ``data``."""

    artworks: list[ArtworkPayload] | None = None
    data: NearbyArtworksData | None = None

    @property
    def items(self) -> list[ArtworkPayload]:
        if self.artworks is not None:
            return self.artworks
        if self.data is not None:
            return self.data.artworks
        return []


class ArtistPayload(ApiBaseModel):
    id: str
    name: str
    tags: dict[str, object] = Field(default_factory=dict[str, object], alias="tags_parsed")

    _normalize_tags = field_validator("tags", mode="before")(_parse_tags)


class ArtistListData(ApiBaseModel):
    items: list[ArtistPayload] = Field(default_factory=list[ArtistPayload])
    total_items: int | None = Field(default=None, alias="totalItems")


class ArtistListResponse(ApiBaseModel):
    success: bool = True
    data: ArtistListData = Field(default_factory=ArtistListData)


class CreatedArtistResponse(ApiBaseModel):
    success: bool
    data: ArtistPayload | None = None
    message: str | None = None


class MassImportData(ApiBaseModel):
    artwork_id: str
    status: str | None = None
    message: str | None = None


class MassImportResponse(ApiBaseModel):
    success: bool
    data: MassImportData | None = None
    message: str | None = None
    error: str | None = None


class PendingSubmissionPayload(ApiBaseModel):
    id: str
    tags: dict[str, object] | str | None = None
    user_token: str | None = None


class ReviewQueueData(ApiBaseModel):
    submissions: list[PendingSubmissionPayload] = Field(
        default_factory=list[PendingSubmissionPayload]
    )


class ReviewQueueResponse(ApiBaseModel):
    success: bool = True
    data: ReviewQueueData = Field(default_factory=ReviewQueueData)


class BatchItemError(ApiBaseModel):
    submission_id: str
    error: str


class BatchReviewResults(ApiBaseModel):
    approved: int = 0
    rejected: int = 0
    errors: list[BatchItemError] = Field(default_factory=list[BatchItemError])


class BatchReviewResponse(ApiBaseModel):
    success: bool = True
    results: BatchReviewResults = Field(default_factory=BatchReviewResults)


class HealthResponse(ApiBaseModel):
    status: str | None = None
    version: str | None = None
    environment: str | None = None
