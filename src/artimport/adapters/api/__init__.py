"""Public interface for the Public Art API adapter."""

from __future__ import annotations

from .client import PublicArtApiClient
from .schema import (
    ArtworkPayload,
    BatchReviewResponse,
    HealthResponse,
    MassImportResponse,
    NearbyArtworksResponse,
    ReviewQueueResponse,
)

__all__ = [
    "ArtworkPayload",
    "BatchReviewResponse",
    "HealthResponse",
    "MassImportResponse",
    "NearbyArtworksResponse",
    "PublicArtApiClient",
    "ReviewQueueResponse",
]
