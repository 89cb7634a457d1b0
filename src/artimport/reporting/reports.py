"""Machine-readable audit files written at the end of a run."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from artimport.domain.batch_processor import is_valid_photo_url
from artimport.domain.model import RecordStatus

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from artimport.config.importing import ImportConfig
    from artimport.domain.model import (
        ArtistResolution,
        BatchResult,
        DuplicateCandidate,
        DuplicateVerdict,
        ProcessingSession,
    )

log = getLogger(__name__)

NO_NEW_ARTWORK_LINE = "# No new artwork submissions created"


def _utcnow() -> datetime:
    return datetime.now(UTC)


def epoch_millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def default_report_path(kind: str, *, now: datetime | None = None) -> Path:
    """``<kind>-report-<epoch ms>.json`` in the working directory."""

    return Path(f"{kind}-report-{epoch_millis(now or _utcnow())}.json")


def artwork_url(frontend_base: str, artwork_id: str) -> str:
    return f"{frontend_base.rstrip('/')}/artwork/{artwork_id}"


@dataclass(slots=True, frozen=True)
class ReportContext:
    """Run parameters recorded in the detailed report. Never holds tokens."""

    importer: str
    input_file: str
    mode: str
    config: ImportConfig
    options: Mapping[str, object] = field(default_factory=dict[str, object])


# Serialization helpers


def candidate_to_dict(candidate: DuplicateCandidate) -> dict[str, object]:
    return {
        "artwork_id": candidate.artwork_id,
        "title": candidate.artwork.title,
        "location": candidate.artwork.location.as_dict(),
        "distance_meters": round(candidate.distance_meters, 2),
        "title_similarity": round(candidate.title_similarity, 4),
        "confidence": round(candidate.confidence, 4),
        "reason": candidate.reason,
        "exact_id_match": candidate.exact_id_match,
    }


def verdict_to_dict(verdict: DuplicateVerdict) -> dict[str, object]:
    return {
        "is_duplicate": verdict.is_duplicate,
        "reason": verdict.reason,
        "best_match": candidate_to_dict(verdict.best_match) if verdict.best_match else None,
        "candidates": [candidate_to_dict(candidate) for candidate in verdict.candidates],
    }


def resolution_to_dict(resolution: ArtistResolution) -> dict[str, object]:
    return {
        "name": resolution.name,
        "status": str(resolution.status),
        "artist_id": resolution.artist_id,
        "search_url": resolution.search_url,
    }


def result_to_dict(result: BatchResult) -> dict[str, object]:
    return {
        "status": str(result.status),
        "success": result.success,
        "external_id": result.external_id,
        "title": result.title,
        "submission_id": result.submission_id,
        "error": result.error,
        "attempts": result.attempts,
        "location": result.location.as_dict() if result.location else None,
        "tags": dict(result.tags) if result.tags else {},
        "photos": list(result.photos),
        "artists": [resolution_to_dict(item) for item in result.artists],
        "duplicate_detection": verdict_to_dict(result.duplicate) if result.duplicate else None,
        "duplicate_flagged": result.duplicate_flagged,
    }


# Detailed report


def _processing_time(session: ProcessingSession) -> str:
    seconds = session.duration_seconds
    if seconds is None:
        return "Unknown"
    return f"{seconds / 60:.1f} minutes"


def build_detailed_report(
    session: ProcessingSession,
    context: ReportContext | None = None,
    *,
    frontend_base: str = "",
    now: datetime | None = None,
) -> dict[str, object]:
    created: list[dict[str, object]] = []
    failed: list[dict[str, object]] = []
    duplicates: list[dict[str, object]] = []

    for result in session.results():
        location = result.location.as_dict() if result.location else None
        if result.success:
            entry: dict[str, object] = {
                "external_id": result.external_id,
                "submission_id": result.submission_id,
                "title": result.title or "Unknown Title",
                "location": location,
                "tags": dict(result.tags) if result.tags else {},
                "artists": [resolution_to_dict(item) for item in result.artists],
            }
            if result.submission_id and frontend_base:
                entry["url"] = artwork_url(frontend_base, result.submission_id)
            if result.duplicate_flagged:
                entry["duplicate_detection"] = (
                    verdict_to_dict(result.duplicate) if result.duplicate else None
                )
            created.append(entry)
        elif result.status is RecordStatus.SKIPPED_DUPLICATE:
            verdict = result.duplicate
            duplicates.append(
                {
                    "external_id": result.external_id,
                    "title": result.title or "Unknown Title",
                    "reason": (verdict.reason if verdict else None) or "Duplicate detected",
                    "best_match": (
                        candidate_to_dict(verdict.best_match)
                        if verdict and verdict.best_match
                        else None
                    ),
                    "candidates": (
                        [candidate_to_dict(item) for item in verdict.candidates] if verdict else []
                    ),
                    "location": location,
                }
            )
        else:
            failed.append(
                {
                    "external_id": result.external_id,
                    "title": result.title or "Unknown Title",
                    "status": str(result.status),
                    "error": result.error or "Unknown error",
                    "attempts": result.attempts,
                    "location": location,
                    "duplicate_candidates": (
                        [candidate_to_dict(item) for item in result.duplicate.candidates]
                        if result.duplicate
                        else []
                    ),
                }
            )

    summary = session.summary
    return {
        "metadata": {
            "timestamp": (now or _utcnow()).isoformat(),
            "mode": context.mode if context else ("dry-run" if session.dry_run else "import"),
            "session_id": session.id,
            "state": str(session.state),
            "halted": session.halted,
            "start_time": session.started_at.isoformat(),
            "end_time": session.ended_at.isoformat() if session.ended_at else None,
        },
        "parameters": (
            {
                "importer": context.importer,
                "input_file": context.input_file,
                "total_available_records": session.total_available,
                "configuration": {**context.config.describe(), **context.options},
            }
            if context
            else None
        ),
        "summary": {
            **asdict(summary),
            "success_rate": f"{summary.success_rate:.1f}%",
            "processing_time": _processing_time(session),
        },
        "created_artworks": created,
        "failed_records": failed,
        "duplicate_records": duplicates,
        "raw_batches": [
            {
                "id": batch.id,
                "index": batch.index,
                "summary": asdict(batch.summary()),
                "results": [result_to_dict(result) for result in batch.results],
            }
            for batch in session.batches
        ],
    }


def _write_json(path: Path, payload: Mapping[str, object]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
        handle.write("\n")
    return path


def save_detailed_report(
    session: ProcessingSession,
    path: Path,
    context: ReportContext | None = None,
    *,
    frontend_base: str = "",
) -> Path:
    report = build_detailed_report(session, context, frontend_base=frontend_base)
    _write_json(path, report)
    log.info("Detailed report written to %s", path)
    return path


# Dry-run report


@dataclass(slots=True, frozen=True)
class DryRunSummary:
    total_records: int
    valid_records: int
    invalid_records: int
    duplicate_records: int
    total_photos: int
    valid_photos: int
    invalid_photos: int

    @property
    def success_rate(self) -> float:
        if self.total_records == 0:
            return 0.0
        return self.valid_records / self.total_records * 100


@dataclass(slots=True, frozen=True)
class DryRunReport:
    summary: DryRunSummary
    errors: tuple[dict[str, object], ...] = ()
    duplicates: tuple[dict[str, object], ...] = ()
    photo_issues: tuple[dict[str, object], ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "summary": {
                **asdict(self.summary),
                "success_rate": round(self.summary.success_rate, 1),
            },
            "errors": list(self.errors),
            "duplicates": list(self.duplicates),
            "photo_issues": list(self.photo_issues),
        }


def generate_dry_run_report(session: ProcessingSession) -> DryRunReport:
    summary = session.summary
    errors: list[dict[str, object]] = []
    duplicates: list[dict[str, object]] = []
    photo_issues: list[dict[str, object]] = []

    for result in session.results():
        if result.status.is_failure:
            errors.append(
                {
                    "external_id": result.external_id,
                    "title": result.title,
                    "status": str(result.status),
                    "error": result.error,
                }
            )
        elif result.status is RecordStatus.SKIPPED_DUPLICATE:
            verdict = result.duplicate
            duplicates.append(
                {
                    "external_id": result.external_id,
                    "title": result.title,
                    "reason": verdict.reason if verdict else None,
                    "existing_artwork_id": (
                        verdict.best_match.artwork_id if verdict and verdict.best_match else None
                    ),
                }
            )
        if result.status is RecordStatus.VALIDATED:
            photo_issues.extend(
                {"external_id": result.external_id, "url": url, "issue": "invalid photo URL"}
                for url in result.photos
                if not is_valid_photo_url(url)
            )

    return DryRunReport(
        summary=DryRunSummary(
            total_records=summary.total_records,
            valid_records=summary.successful_imports,
            invalid_records=summary.failed_imports,
            duplicate_records=summary.skipped_duplicates,
            total_photos=summary.total_photos,
            valid_photos=summary.successful_photos,
            invalid_photos=summary.total_photos - summary.successful_photos,
        ),
        errors=tuple(errors),
        duplicates=tuple(duplicates),
        photo_issues=tuple(photo_issues),
    )


def save_dry_run_report(
    report: DryRunReport, path: Path, *, now: datetime | None = None
) -> Path:
    _write_json(
        path,
        {"timestamp": (now or _utcnow()).isoformat(), "type": "dry-run", **report.to_dict()},
    )
    log.info("Dry-run report written to %s", path)
    return path


# New artwork URL list


def save_new_artwork_report(
    sessions: Iterable[ProcessingSession],
    path: Path,
    *,
    mode: str,
    frontend_base: str,
    now: datetime | None = None,
) -> int:
    """Write one frontend URL per artwork created across ``sessions``; returns the count."""

    artwork_ids = [artwork_id for session in sessions for artwork_id in session.submission_ids()]
    path.parent.mkdir(parents=True, exist_ok=True)
    if not artwork_ids:
        path.write_text(NO_NEW_ARTWORK_LINE + "\n", encoding="utf-8")
        log.warning("No new artwork URLs to write (%s)", mode)
        return 0

    lines = [
        "# Newly Created Artwork URLs",
        f"# Mode: {mode}",
        f"# Generated: {(now or _utcnow()).isoformat()}",
        *(artwork_url(frontend_base, artwork_id) for artwork_id in artwork_ids),
    ]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    log.info("New artwork URL report written to %s (%s entries)", path, len(artwork_ids))
    return len(artwork_ids)
