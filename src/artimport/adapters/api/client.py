"""HTTP client for the Public Art API."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ValidationError

from artimport.adapters.http_resilience import ResilientClient
from artimport.config.api import HEALTH_TIMEOUT_SECONDS
from artimport.config.errors import MissingConfigurationError
from artimport.domain.errors import ApiError
from artimport.domain.model import (
    ApprovalError,
    ChunkOutcome,
    ExistingArtist,
    ExistingArtwork,
    Location,
    PendingSubmission,
    SubmissionReceipt,
)
from artimport.domain.normalization import name_tokens, normalize_artist_name

from .schema import (
    ArtistListResponse,
    BatchReviewResponse,
    CreatedArtistResponse,
    ErrorEnvelope,
    HealthResponse,
    MassImportResponse,
    NearbyArtworksResponse,
    ReviewQueueResponse,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from artimport.config.api import ApiConfig
    from artimport.config.http_resilience import ResilienceConfig
    from artimport.domain.model import CanonicalRecord, NewArtist

log = getLogger(__name__)

NEARBY_LIMIT = 50
ARTIST_SEARCH_LIMIT = 50
TRANSIENT_STATUS_CODES = frozenset({429})


def _is_transient_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in TRANSIENT_STATUS_CODES


def _error_message(response: httpx.Response) -> str:
    try:
        envelope = ErrorEnvelope.model_validate(response.json())
    except (ValueError, ValidationError):
        return response.text[:200] or response.reason_phrase
    return envelope.describe()


class PublicArtApiClient:
    """Adapter for the remote store: lookups, submissions and the review queue.

    Use as an async context manager; one HTTP connection pool serves the whole run.
    """

    def __init__(
        self,
        *,
        config: ApiConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._client: ResilientClient | None = None

    async def __aenter__(self) -> PublicArtApiClient:
        self._client = self._client_factory(self._config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # Lookups

    async def nearby(self, location: Location, radius_meters: float) -> list[ExistingArtwork]:
        payload = await self._request_model(
            "GET",
            "/api/artworks/nearby",
            NearbyArtworksResponse,
            params={
                "lat": location.lat,
                "lon": location.lon,
                "radius": radius_meters,
                "limit": NEARBY_LIMIT,
            },
        )
        return [
            ExistingArtwork(
                id=item.id,
                location=Location(lat=item.lat, lon=item.lon),
                title=item.title,
                tags={key: value for key, value in item.tags.items() if _is_scalar(value)},
            )
            for item in payload.items
        ]

    async def find_by_normalized_name(self, normalized: str) -> list[ExistingArtist]:
        tokens = name_tokens(normalized) or [normalized]
        candidates = await self._search_artists(max(tokens, key=len))
        return [
            artist for artist in candidates if normalize_artist_name(artist.name) == normalized
        ]

    async def find_by_tokens(self, tokens: Sequence[str]) -> list[ExistingArtist]:
        found: dict[str, ExistingArtist] = {}
        for token in tokens:
            for artist in await self._search_artists(token):
                found.setdefault(artist.id, artist)
        return list(found.values())

    async def health(self) -> HealthResponse:
        return await self._request_model(
            "GET", "/health", HealthResponse, timeout=HEALTH_TIMEOUT_SECONDS
        )

    # Writes

    async def create_artist(self, artist: NewArtist) -> str:
        tags: dict[str, str] = {
            **artist.tags,
            "source": artist.source,
            "source_external_id": artist.source_data.get("external_id", ""),
            "original_name": artist.source_data.get("original_name", artist.name),
        }
        payload = await self._request_model(
            "POST",
            "/api/artists",
            CreatedArtistResponse,
            json={
                "name": artist.name,
                "description": artist.description,
                "tags": tags,
                "status": "active",
            },
            headers=self._auth_headers(),
        )
        if not payload.success or payload.data is None:
            raise ApiError(f"Artist creation rejected: {payload.message or 'no artist returned'}")
        return payload.data.id

    async def submit(
        self, record: CanonicalRecord, *, artist_ids: Sequence[str] = ()
    ) -> SubmissionReceipt:
        payload = await self._request_model(
            "POST",
            "/api/mass-import",
            MassImportResponse,
            json=self._submission_body(record, artist_ids),
            headers=self._auth_headers(),
        )
        if not payload.success or payload.data is None:
            message = payload.message or payload.error or "submission rejected"
            raise ApiError(f"Submission of {record.external_id} rejected: {message}")
        log.debug("Submitted %s as artwork %s", record.external_id, payload.data.artwork_id)
        return SubmissionReceipt(
            artwork_id=payload.data.artwork_id,
            status=payload.data.status,
            message=payload.data.message,
        )

    # Review queue

    async def fetch_pending(self, *, limit: int) -> list[PendingSubmission]:
        # Read-only, so the import token is accepted when no admin token is configured.
        payload = await self._request_model(
            "GET",
            "/api/review/queue",
            ReviewQueueResponse,
            params={"status": "pending", "limit": limit},
            headers=self._auth_headers(admin=bool(self._config.admin_token)),
        )
        return [
            PendingSubmission(id=item.id, tags=item.tags, user_token=item.user_token)
            for item in payload.data.submissions
        ]

    async def approve(self, submission_ids: Sequence[str]) -> ChunkOutcome:
        payload = await self._request_model(
            "PUT",
            "/api/review/batch",
            BatchReviewResponse,
            json={
                "submissions": [
                    {"id": submission_id, "action": "approve"} for submission_id in submission_ids
                ]
            },
            headers=self._auth_headers(admin=True),
        )
        results = payload.results
        return ChunkOutcome(
            approved=results.approved,
            rejected=results.rejected,
            errors=tuple(
                ApprovalError(submission_id=item.submission_id, error=item.error)
                for item in results.errors
            ),
        )

    # Internals

    def _http(self) -> ResilientClient:
        if self._client is None:
            raise RuntimeError("PublicArtApiClient must be used inside 'async with'")
        return self._client

    def _auth_headers(self, *, admin: bool = False) -> dict[str, str]:
        if not admin:
            return {"Authorization": f"Bearer {self._config.token}"}
        if not self._config.admin_token:
            raise MissingConfigurationError("An admin token is required for review endpoints")
        return {"Authorization": f"Bearer {self._config.admin_token}"}

    def _submission_body(
        self, record: CanonicalRecord, artist_ids: Sequence[str]
    ) -> dict[str, object]:
        artwork: dict[str, object] = {
            "title": record.title,
            "lat": record.lat,
            "lon": record.lon,
            "photos": [{"url": url} for url in record.photos],
        }
        if record.description:
            artwork["description"] = record.description
        if record.artists:
            artwork["created_by"] = ", ".join(record.artists)
        if artist_ids:
            artwork["artist_ids"] = list(artist_ids)

        tags = [{"label": key, "value": value} for key, value in record.tags.items()]
        tags.append({"label": "external_id", "value": record.external_id})
        tags.append({"label": "source", "value": record.source})
        return {
            "user_uuid": self._config.token,
            "artwork": artwork,
            "logbook": [
                {
                    "note": f"Imported from {record.source}",
                    "timestamp": datetime.now(UTC).isoformat(),
                    "tags": tags,
                }
            ],
        }

    async def _search_artists(self, query: str) -> list[ExistingArtist]:
        payload = await self._request_model(
            "GET",
            "/api/artists",
            ArtistListResponse,
            params={"search": query, "limit": ARTIST_SEARCH_LIMIT},
        )
        return [
            ExistingArtist(
                id=item.id,
                name=item.name,
                tags={key: value for key, value in item.tags.items() if _is_scalar(value)},
            )
            for item in payload.data.items
        ]

    async def _request_model[M: BaseModel](
        self,
        method: str,
        path: str,
        model: type[M],
        **kwargs: Any,
    ) -> M:
        try:
            response = await self._http().request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise ApiError(f"{method} {path} failed: {exc}", transient=True) from exc

        if response.is_error:
            raise ApiError(
                f"{method} {path} returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
                transient=_is_transient_status(response.status_code),
            )

        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            raise ApiError(
                f"{method} {path} returned a non-JSON body", status_code=response.status_code
            ) from exc
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ApiError(
                f"Unexpected {method} {path} payload: {exc.error_count()} validation error(s)",
                status_code=response.status_code,
            ) from exc


def _is_scalar(value: object) -> bool:
    return isinstance(value, str | int | float | bool)
