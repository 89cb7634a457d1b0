"""Batch orchestration: map, dedupe, resolve artists, submit, aggregate."""

from __future__ import annotations

import asyncio
import math
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from artimport.config.errors import ConfigurationError
from artimport.domain.cancellation import CancellationToken
from artimport.domain.errors import ApiError, OperationCancelled
from artimport.domain.events import ProcessingEvent, ProcessingEventKind, emit
from artimport.domain.model import (
    ArtistLinkStatus,
    Batch,
    BatchResult,
    ProcessingSession,
    RecordStatus,
    SessionState,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from artimport.config.importing import ImportConfig
    from artimport.domain.artist_matching import ArtistMatcher
    from artimport.domain.duplicate_detection import DuplicateDetector
    from artimport.domain.events import EventListener
    from artimport.domain.model import (
        ArtistResolution,
        CanonicalRecord,
        DuplicateVerdict,
        SourceArtist,
        SubmissionReceipt,
    )
    from artimport.domain.ports import ImporterAdapter, RawRecord, SubmissionGateway

log = getLogger(__name__)

type Sleep = Callable[[float], Awaitable[None]]


class DuplicatePolicy(StrEnum):
    SKIP = "skip"
    FLAG = "flag"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def new_session_id(now: datetime) -> str:
    return f"session_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:8]}"


def window_records[T](
    records: Sequence[T], *, offset: int = 0, limit: int | None = None
) -> list[T]:
    """Slice ``records`` to the ``offset``/``limit`` window before batching.

    An offset at or past the end yields an empty list; that is not an error.
    """

    if offset < 0:
        raise ValueError(f"Offset must be non-negative, got {offset}")
    if limit is not None and limit < 0:
        raise ValueError(f"Limit must be non-negative, got {limit}")

    if offset and offset >= len(records):
        log.warning(
            "Offset %s is beyond the input (%s records); nothing to process",
            offset,
            len(records),
        )
        return []

    end = len(records) if limit is None else min(len(records), offset + limit)
    window = list(records[offset:end])
    if offset or limit is not None:
        log.info(
            "Processing records %s-%s of %s (%s selected)",
            offset + 1 if window else offset,
            offset + len(window),
            len(records),
            len(window),
        )
    return window


def is_valid_photo_url(url: str) -> bool:
    parsed = urlparse(url.strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


@dataclass(slots=True)
class BatchProcessor:
    """Runs one importer's records through the pipeline, strictly in input order.

    Records are grouped into chunks of ``config.batch_size``; each chunk finishes
    before the next starts. Per-record failures are captured as results. Reads are
    abandoned when ``cancellation`` fires; submissions and artist creation are not.
    """

    adapter: ImporterAdapter
    config: ImportConfig
    detector: DuplicateDetector
    artists: ArtistMatcher
    gateway: SubmissionGateway | None = None
    source_artists: Sequence[SourceArtist] = ()
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.SKIP
    listeners: Sequence[EventListener] = ()
    sleep: Sleep = asyncio.sleep
    clock: Callable[[], datetime] = _utcnow

    async def process_data(
        self,
        raw_records: Sequence[RawRecord],
        *,
        source: str | None = None,
        offset: int = 0,
        limit: int | None = None,
        continue_on_error: bool = True,
        cancellation: CancellationToken | None = None,
    ) -> ProcessingSession:
        if not self.config.dry_run and self.gateway is None:
            raise ConfigurationError("A submission gateway is required unless running dry")

        token = cancellation or CancellationToken()
        started_at = self.clock()
        session = ProcessingSession(
            id=new_session_id(started_at),
            started_at=started_at,
            dry_run=self.config.dry_run,
            total_available=len(raw_records),
        )
        records = window_records(raw_records, offset=offset, limit=limit)
        size = self.config.batch_size
        batch_count = math.ceil(len(records) / size)

        session.state = SessionState.RUNNING
        log.info(
            "Starting session %s: importer=%s, records=%s, batches=%s, dry_run=%s",
            session.id,
            self.adapter.name,
            len(records),
            batch_count,
            self.config.dry_run,
        )
        self._emit(
            ProcessingEvent(
                kind=ProcessingEventKind.SESSION_STARTED, session=session, batch_count=batch_count
            )
        )

        try:
            for batch_index, start in enumerate(range(0, len(records), size)):
                if token.cancelled:
                    break
                batch = Batch(id=f"{session.id}_batch_{batch_index + 1}", index=batch_index)
                session.batches.append(batch)
                self._emit(
                    ProcessingEvent(
                        kind=ProcessingEventKind.BATCH_STARTED,
                        session=session,
                        batch_index=batch_index,
                        batch_count=batch_count,
                    )
                )
                await self._process_batch(
                    records[start : start + size],
                    first_index=offset + start,
                    batch=batch,
                    session=session,
                    source=source,
                    continue_on_error=continue_on_error,
                    token=token,
                )
                self._emit(
                    ProcessingEvent(
                        kind=ProcessingEventKind.BATCH_COMPLETED,
                        session=session,
                        batch_index=batch_index,
                        batch_count=batch_count,
                    )
                )
                if session.halted:
                    break
        except OperationCancelled:
            log.info("Session %s interrupted during a lookup; in-flight record dropped", session.id)
        finally:
            session.ended_at = self.clock()
            if session.state is SessionState.RUNNING:
                session.state = (
                    SessionState.CANCELLED if token.cancelled else SessionState.COMPLETED
                )

        summary = session.summary
        log.info(
            "Finished session %s (%s): successful=%s, failed=%s, duplicates=%s",
            session.id,
            session.state,
            summary.successful_imports,
            summary.failed_imports,
            summary.skipped_duplicates,
        )
        self._emit(ProcessingEvent(kind=ProcessingEventKind.SESSION_FINISHED, session=session))
        return session

    async def _process_batch(
        self,
        records: Sequence[RawRecord],
        *,
        first_index: int,
        batch: Batch,
        session: ProcessingSession,
        source: str | None,
        continue_on_error: bool,
        token: CancellationToken,
    ) -> None:
        for position, raw in enumerate(records):
            if token.cancelled:
                return
            index = first_index + position
            external_id = self.adapter.record_id(raw, index)
            self._emit(
                ProcessingEvent(
                    kind=ProcessingEventKind.RECORD_STARTED,
                    session=session,
                    batch_index=batch.index,
                    record_index=index,
                    external_id=external_id,
                )
            )

            result = await self._process_record(
                raw,
                external_id=external_id,
                index=index,
                source=source,
                session=session,
                token=token,
            )
            batch.results.append(result)
            attempted, succeeded = self._photo_counts(result)
            session.summary.add(result, photos_attempted=attempted, photos_ok=succeeded)
            self._emit(
                ProcessingEvent(
                    kind=ProcessingEventKind.RECORD_COMPLETED,
                    session=session,
                    batch_index=batch.index,
                    record_index=index,
                    external_id=result.external_id,
                    result=result,
                )
            )

            if result.status.is_failure and not continue_on_error:
                log.warning("Stopping after failed record %s: %s", result.external_id, result.error)
                session.halted = True
                return

    async def _process_record(
        self,
        raw: RawRecord,
        *,
        external_id: str,
        index: int,
        source: str | None,
        session: ProcessingSession,
        token: CancellationToken,
    ) -> BatchResult:
        try:
            record = self.adapter.map_record(raw, source=source)
        except ValueError as exc:
            log.debug("Mapping failed for record %s: %s", external_id, exc)
            return BatchResult(
                status=RecordStatus.MAPPING_FAILED, external_id=external_id, error=str(exc)
            )

        try:
            verdict = await token.guard(self.detector.detect(record))
            if verdict.is_duplicate and self.duplicate_policy is DuplicatePolicy.SKIP:
                return self._result(record, RecordStatus.SKIPPED_DUPLICATE, verdict=verdict)
            resolutions = await self._resolve_artists(record, token)
        except ApiError as exc:
            return self._result(record, RecordStatus.LOOKUP_FAILED, error=str(exc))

        if self.config.dry_run:
            return self._result(
                record, RecordStatus.VALIDATED, verdict=verdict, artists=resolutions
            )

        artist_ids = [
            resolution.artist_id
            for resolution in resolutions
            if resolution.artist_id
            and resolution.status in {ArtistLinkStatus.LINKED, ArtistLinkStatus.CREATED}
        ]
        receipt, attempts, error = await self._submit_with_retry(
            record, artist_ids, index=index, session=session
        )
        if receipt is None:
            return self._result(
                record,
                RecordStatus.SUBMISSION_FAILED,
                verdict=verdict,
                artists=resolutions,
                error=error,
                attempts=attempts,
            )
        return self._result(
            record,
            RecordStatus.CREATED,
            verdict=verdict,
            artists=resolutions,
            submission_id=receipt.artwork_id,
            attempts=attempts,
        )

    async def _resolve_artists(
        self, record: CanonicalRecord, token: CancellationToken
    ) -> tuple[ArtistResolution, ...]:
        resolutions: list[ArtistResolution] = []
        for name in record.artists:
            if not name.strip():
                continue
            resolution = await self.artists.resolve(
                name,
                source=record.source,
                source_dataset=self.source_artists,
                dry_run=self.config.dry_run,
                cancellation=token,
            )
            if resolution.status in {ArtistLinkStatus.AMBIGUOUS, ArtistLinkStatus.UNRESOLVED}:
                log.info(
                    "Artist %r on record %s is %s; review at %s",
                    name,
                    record.external_id,
                    resolution.status,
                    resolution.search_url,
                )
            resolutions.append(resolution)
        return tuple(resolutions)

    async def _submit_with_retry(
        self,
        record: CanonicalRecord,
        artist_ids: Sequence[str],
        *,
        index: int,
        session: ProcessingSession,
    ) -> tuple[SubmissionReceipt | None, int, str | None]:
        gateway = self.gateway
        if gateway is None:
            raise ConfigurationError("A submission gateway is required unless running dry")

        max_attempts = self.config.max_retries + 1
        last_error: str | None = None
        for attempt in range(1, max_attempts + 1):
            try:
                return await gateway.submit(record, artist_ids=artist_ids), attempt, None
            except ApiError as exc:
                last_error = str(exc)
                if not exc.transient or attempt == max_attempts:
                    log.warning(
                        "Submission of %s failed after %s attempt(s): %s",
                        record.external_id,
                        attempt,
                        exc,
                    )
                    return None, attempt, last_error

            self._emit(
                ProcessingEvent(
                    kind=ProcessingEventKind.RECORD_RETRIED,
                    session=session,
                    record_index=index,
                    external_id=record.external_id,
                    attempt=attempt,
                    error=last_error,
                )
            )
            await self.sleep(self.config.retry_delay_seconds)

        return None, max_attempts, last_error

    def _result(
        self,
        record: CanonicalRecord,
        status: RecordStatus,
        *,
        verdict: DuplicateVerdict | None = None,
        artists: tuple[ArtistResolution, ...] = (),
        error: str | None = None,
        submission_id: str | None = None,
        attempts: int = 0,
    ) -> BatchResult:
        return BatchResult(
            status=status,
            external_id=record.external_id,
            title=record.title,
            submission_id=submission_id,
            error=error,
            duplicate=verdict,
            location=record.location,
            tags=record.tags,
            photos=record.photos,
            artists=artists,
            attempts=attempts,
            duplicate_flagged=bool(
                verdict is not None and verdict.is_duplicate and status.is_success
            ),
        )

    def _photo_counts(self, result: BatchResult) -> tuple[int, int]:
        if result.status is RecordStatus.CREATED:
            return len(result.photos), len(result.photos)
        if result.status is RecordStatus.VALIDATED:
            valid = sum(1 for url in result.photos if is_valid_photo_url(url))
            return len(result.photos), valid
        return 0, 0

    def _emit(self, event: ProcessingEvent) -> None:
        emit(self.listeners, event)
