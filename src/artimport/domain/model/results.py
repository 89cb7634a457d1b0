"""Outcome types produced by the batch processor."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .artists import ArtistResolution
    from .records import ExistingArtwork, Location, Tags


class RecordStatus(StrEnum):
    CREATED = "created"
    VALIDATED = "validated"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    MAPPING_FAILED = "mapping_failed"
    LOOKUP_FAILED = "lookup_failed"
    SUBMISSION_FAILED = "submission_failed"

    @property
    def is_success(self) -> bool:
        return self in {RecordStatus.CREATED, RecordStatus.VALIDATED}

    @property
    def is_failure(self) -> bool:
        return self in {
            RecordStatus.MAPPING_FAILED,
            RecordStatus.LOOKUP_FAILED,
            RecordStatus.SUBMISSION_FAILED,
        }


class SessionState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(slots=True, frozen=True)
class DuplicateCandidate:
    """An existing artwork near a new record, scored against it."""

    artwork: ExistingArtwork
    distance_meters: float
    title_similarity: float
    confidence: float
    reason: str
    exact_id_match: bool = False

    @property
    def artwork_id(self) -> str:
        return self.artwork.id


@dataclass(slots=True, frozen=True)
class DuplicateVerdict:
    is_duplicate: bool
    candidates: tuple[DuplicateCandidate, ...] = ()
    best_match: DuplicateCandidate | None = None
    reason: str | None = None


@dataclass(slots=True, frozen=True)
class BatchResult:
    """One record's outcome. Never mutated after creation."""

    status: RecordStatus
    external_id: str
    title: str | None = None
    submission_id: str | None = None
    error: str | None = None
    duplicate: DuplicateVerdict | None = None
    location: Location | None = None
    tags: Tags | None = None
    photos: tuple[str, ...] = ()
    artists: tuple[ArtistResolution, ...] = ()
    attempts: int = 0
    duplicate_flagged: bool = False

    @property
    def success(self) -> bool:
        return self.status.is_success


@dataclass(slots=True, frozen=True)
class BatchSummary:
    total: int
    successful: int
    failed: int
    duplicates: int


@dataclass(slots=True)
class Batch:
    id: str
    index: int
    results: list[BatchResult] = field(default_factory=list[BatchResult])

    def summary(self) -> BatchSummary:
        return BatchSummary(
            total=len(self.results),
            successful=sum(1 for item in self.results if item.success),
            failed=sum(1 for item in self.results if item.status.is_failure),
            duplicates=sum(
                1 for item in self.results if item.status is RecordStatus.SKIPPED_DUPLICATE
            ),
        )


@dataclass(slots=True)
class SessionSummary:
    total_records: int = 0
    successful_imports: int = 0
    failed_imports: int = 0
    skipped_duplicates: int = 0
    total_photos: int = 0
    successful_photos: int = 0
    failed_photos: int = 0

    def add(self, result: BatchResult, *, photos_attempted: int, photos_ok: int) -> None:
        self.total_records += 1
        if result.success:
            self.successful_imports += 1
        elif result.status is RecordStatus.SKIPPED_DUPLICATE:
            self.skipped_duplicates += 1
        else:
            self.failed_imports += 1
        self.total_photos += photos_attempted
        self.successful_photos += photos_ok
        self.failed_photos += photos_attempted - photos_ok

    @property
    def success_rate(self) -> float:
        if self.total_records == 0:
            return 0.0
        return self.successful_imports / self.total_records * 100


@dataclass(slots=True)
class ProcessingSession:
    """Accumulator owned by the batch processor for one ``process_data`` call."""

    id: str
    started_at: datetime
    dry_run: bool
    total_available: int = 0
    state: SessionState = SessionState.IDLE
    batches: list[Batch] = field(default_factory=list[Batch])
    summary: SessionSummary = field(default_factory=SessionSummary)
    ended_at: datetime | None = None
    halted: bool = False

    def results(self) -> list[BatchResult]:
        return [result for batch in self.batches for result in batch.results]

    def submission_ids(self) -> list[str]:
        return [
            result.submission_id
            for result in self.results()
            if result.status is RecordStatus.CREATED and result.submission_id
        ]

    @property
    def duration_seconds(self) -> float | None:
        if self.ended_at is None:
            return None
        return (self.ended_at - self.started_at).total_seconds()
