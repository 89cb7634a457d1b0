"""Duplicate detection against existing artworks (geospatial + title similarity)."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from rapidfuzz import fuzz
from rapidfuzz.distance import Levenshtein

from artimport.config.errors import ConfigurationError
from artimport.domain.geo import haversine_distance
from artimport.domain.model import DuplicateCandidate, DuplicateVerdict
from artimport.domain.normalization import normalize_title

if TYPE_CHECKING:
    from artimport.domain.model import CanonicalRecord, ExistingArtwork
    from artimport.domain.ports import ArtworkDirectory

log = getLogger(__name__)

VERY_CLOSE_METERS = 10.0
CLOSE_METERS = 50.0
DISTANCE_WEIGHT = 0.4
TITLE_WEIGHT = 0.6


def title_similarity(left: str | None, right: str | None) -> float:
    """Similarity of two artwork titles in ``[0, 1]``.

    Titles equal after trimming and lowercasing score 1.0. Otherwise the score is the
    better of normalized Levenshtein similarity and token-sort ratio over the
    normalized titles, so reordered words still score high.
    """

    if not left or not right:
        return 0.0
    if left.strip().lower() == right.strip().lower():
        return 1.0
    normalized_left = normalize_title(left)
    normalized_right = normalize_title(right)
    if not normalized_left or not normalized_right:
        return 0.0
    if normalized_left == normalized_right:
        return 1.0
    return max(
        Levenshtein.normalized_similarity(normalized_left, normalized_right),
        fuzz.token_sort_ratio(normalized_left, normalized_right) / 100,
    )


def _describe_distance(distance: float) -> str:
    if distance < VERY_CLOSE_METERS:
        return f"Very close proximity ({round(distance)}m)"
    if distance < CLOSE_METERS:
        return f"Close proximity ({round(distance)}m)"
    return f"Within detection radius ({round(distance)}m)"


def _describe_title(similarity: float) -> str | None:
    percent = round(similarity * 100)
    if similarity > 0.8:
        return f"Very similar title ({percent}% match)"
    if similarity > 0.6:
        return f"Similar title ({percent}% match)"
    if similarity > 0.3:
        return f"Somewhat similar title ({percent}% match)"
    return None


def _same_external_id(record: CanonicalRecord, artwork: ExistingArtwork) -> bool:
    existing_id = artwork.tags.get("external_id")
    existing_source = artwork.tags.get("source")
    return (
        existing_id is not None
        and str(existing_id) == record.external_id
        and existing_source is not None
        and str(existing_source) == record.source
    )


def _titles_blank_or_identical(record: CanonicalRecord, artwork: ExistingArtwork) -> bool:
    existing = normalize_title(artwork.title)
    if not existing:
        return True
    return existing == normalize_title(record.title)


@dataclass(slots=True)
class DuplicateDetector:
    """Scores existing nearby artworks against a new record.

    Detection only reads from ``artworks``. The verdict is advisory: the batch
    processor decides whether a duplicate is skipped or only flagged.
    """

    artworks: ArtworkDirectory
    radius_meters: float
    similarity_threshold: float

    def __post_init__(self) -> None:
        _validate(self.radius_meters, self.similarity_threshold)

    async def detect(
        self,
        record: CanonicalRecord,
        *,
        radius: float | None = None,
        threshold: float | None = None,
    ) -> DuplicateVerdict:
        radius = self.radius_meters if radius is None else radius
        threshold = self.similarity_threshold if threshold is None else threshold
        _validate(radius, threshold)

        existing = await self.artworks.nearby(record.location, radius)
        candidates = sorted(
            (
                candidate
                for artwork in existing
                if (candidate := self._score(record, artwork, radius)) is not None
            ),
            key=lambda item: (not item.exact_id_match, -item.confidence, item.distance_meters),
        )

        for candidate in candidates:
            reason = self._fired_signals(record, candidate, threshold)
            if reason is not None:
                log.debug(
                    "Record %s duplicates artwork %s: %s",
                    record.external_id,
                    candidate.artwork_id,
                    reason,
                )
                return DuplicateVerdict(
                    is_duplicate=True,
                    candidates=tuple(candidates),
                    best_match=candidate,
                    reason=reason,
                )

        return DuplicateVerdict(is_duplicate=False, candidates=tuple(candidates))

    def _score(
        self, record: CanonicalRecord, artwork: ExistingArtwork, radius: float
    ) -> DuplicateCandidate | None:
        distance = haversine_distance(record.location, artwork.location)
        similarity = title_similarity(record.title, artwork.title)

        if _same_external_id(record, artwork):
            return DuplicateCandidate(
                artwork=artwork,
                distance_meters=distance,
                title_similarity=similarity,
                confidence=1.0,
                reason=f"Exact match by external ID: {record.external_id}",
                exact_id_match=True,
            )
        if distance > radius:
            return None

        parts = [_describe_distance(distance)]
        if (title_part := _describe_title(similarity)) is not None:
            parts.append(title_part)
        confidence = (
            DISTANCE_WEIGHT * max(0.0, 1 - distance / radius) + TITLE_WEIGHT * similarity
        )
        return DuplicateCandidate(
            artwork=artwork,
            distance_meters=distance,
            title_similarity=similarity,
            confidence=confidence,
            reason=", ".join(parts),
        )

    @staticmethod
    def _fired_signals(
        record: CanonicalRecord, candidate: DuplicateCandidate, threshold: float
    ) -> str | None:
        if candidate.exact_id_match:
            return candidate.reason

        by_title = candidate.title_similarity >= threshold
        by_distance = candidate.distance_meters <= VERY_CLOSE_METERS and (
            _titles_blank_or_identical(record, candidate.artwork)
        )
        if by_title and by_distance:
            return f"distance and title: {candidate.reason}"
        if by_title:
            return f"title: {candidate.reason}"
        if by_distance:
            return f"distance: {candidate.reason}"
        return None


def _validate(radius: float, threshold: float) -> None:
    if radius <= 0:
        raise ConfigurationError(f"Duplicate detection radius must be positive, got {radius}")
    if not 0.0 <= threshold <= 1.0:
        raise ConfigurationError(f"Title similarity threshold must be in [0, 1], got {threshold}")
