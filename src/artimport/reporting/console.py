# ruff: noqa: T201
"""Human-readable end-of-run summaries."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO

from artimport.domain.model import ArtistLinkStatus, RecordStatus, SessionState

if TYPE_CHECKING:
    from artimport.app import StatusReport
    from artimport.domain.model import ApprovalFilters, BulkApprovalResult, ProcessingSession

    from .reports import DryRunReport

SAMPLE_SIZE = 3
RULE = "-" * 50


def _stream(out: TextIO | None) -> TextIO:
    return out or sys.stdout


def display_results(
    session: ProcessingSession, *, out: TextIO | None = None, sample_size: int = SAMPLE_SIZE
) -> None:
    stream = _stream(out)
    summary = session.summary
    print("\nImport Results:", file=stream)
    print(f"  Successful: {summary.successful_imports}", file=stream)
    print(f"  Failed: {summary.failed_imports}", file=stream)
    print(f"  Skipped (duplicates): {summary.skipped_duplicates}", file=stream)
    print(f"  Photos processed: {summary.successful_photos}/{summary.total_photos}", file=stream)
    print(f"  Success rate: {summary.success_rate:.1f}%", file=stream)

    results = session.results()
    created = [result for result in results if result.success][:sample_size]
    failed = [result for result in results if result.status.is_failure][:sample_size]
    if created:
        print("\nSample created artworks:", file=stream)
        for result in created:
            print(
                f'  "{result.title or "Unknown"}" (ID: {result.submission_id or "-"})',
                file=stream,
            )
            print(f"     External ID: {result.external_id}", file=stream)
        if summary.successful_imports > sample_size:
            extra = summary.successful_imports - sample_size
            print(f"  ... and {extra} more successful imports", file=stream)
    if failed:
        print("\nSample failed records:", file=stream)
        for result in failed:
            print(
                f'  "{result.title or "Unknown"}": {result.error or "Unknown error"}', file=stream
            )
            print(f"     External ID: {result.external_id}", file=stream)
        if summary.failed_imports > sample_size:
            extra = summary.failed_imports - sample_size
            print(f"  ... and {extra} more failed imports", file=stream)
    if summary.skipped_duplicates:
        print(
            f"\n{summary.skipped_duplicates} records skipped as potential duplicates", file=stream
        )

    flagged = sum(1 for result in results if result.duplicate_flagged)
    if flagged:
        print(f"{flagged} records imported despite a duplicate flag", file=stream)
    _display_artist_followups(session, stream)
    _display_session_state(session, stream)


def display_validation_results(session: ProcessingSession, *, out: TextIO | None = None) -> None:
    stream = _stream(out)
    summary = session.summary
    print("\nValidation Results:", file=stream)
    print(f"  Valid records: {summary.successful_imports}", file=stream)
    print(f"  Invalid records: {summary.failed_imports}", file=stream)
    print(f"  Potential duplicates: {summary.skipped_duplicates}", file=stream)
    print(f"  Valid photos: {summary.successful_photos}/{summary.total_photos}", file=stream)
    for result in session.results():
        if result.status is RecordStatus.MAPPING_FAILED:
            print(f"  - {result.external_id}: {result.error}", file=stream)
    _display_session_state(session, stream)


def display_dry_run_report(report: DryRunReport, *, out: TextIO | None = None) -> None:
    stream = _stream(out)
    summary = report.summary
    print("\nDry Run Report:", file=stream)
    print(RULE, file=stream)
    print(f"  Valid records: {summary.valid_records}/{summary.total_records}", file=stream)
    print(f"  Invalid records: {summary.invalid_records}", file=stream)
    print(f"  Potential duplicates: {summary.duplicate_records}", file=stream)
    print(f"  Valid photos: {summary.valid_photos}/{summary.total_photos}", file=stream)
    if summary.invalid_records:
        print(
            f"\nFound {summary.invalid_records} invalid records that would be skipped",
            file=stream,
        )
    if summary.duplicate_records:
        print(
            f"\nFound {summary.duplicate_records} potential duplicates that would be skipped",
            file=stream,
        )
    print(f"\nSuccess rate: {summary.success_rate:.1f}%", file=stream)


def display_bulk_approval(
    result: BulkApprovalResult, *, filters: ApprovalFilters, out: TextIO | None = None
) -> None:
    stream = _stream(out)
    print("\nBulk Approval:", file=stream)
    if filters.source:
        print(f"  Source filter: {filters.source}", file=stream)
    if filters.user_token:
        print(f"  User token filter: {filters.user_token[:8]}...", file=stream)
    print(f"  Matching pending submissions: {result.found}", file=stream)
    if result.found == 0:
        print("  No pending submissions to approve.", file=stream)
        return

    print("\nBy source:", file=stream)
    for source, count in result.by_source.most_common():
        print(f"  {source}: {count}", file=stream)

    if result.dry_run:
        print(f"\nDry run: {result.found} submissions would be approved.", file=stream)
        return
    if not result.confirmed:
        print("\nApproval cancelled; no submissions were changed.", file=stream)
        return

    print("\nApproval Summary:", file=stream)
    print(f"  Approved: {result.approved}", file=stream)
    print(f"  Rejected: {result.rejected}", file=stream)
    print(f"  Errors: {len(result.errors)}", file=stream)
    print(f"  Success rate: {result.success_rate:.1f}%", file=stream)
    for error in result.errors[:SAMPLE_SIZE]:
        print(f"  - {error.submission_id}: {error.error}", file=stream)
    if len(result.errors) > SAMPLE_SIZE:
        print(f"  ... and {len(result.errors) - SAMPLE_SIZE} more errors", file=stream)


def _display_artist_followups(session: ProcessingSession, stream: TextIO) -> None:
    pending = [
        resolution
        for result in session.results()
        for resolution in result.artists
        if resolution.status in {ArtistLinkStatus.AMBIGUOUS, ArtistLinkStatus.UNRESOLVED}
    ]
    if not pending:
        return
    print(f"\n{len(pending)} artist name(s) need manual linking:", file=stream)
    seen: set[str] = set()
    for resolution in pending:
        if resolution.name in seen:
            continue
        seen.add(resolution.name)
        print(f"  {resolution.name} ({resolution.status}): {resolution.search_url}", file=stream)


def _display_session_state(session: ProcessingSession, stream: TextIO) -> None:
    if session.state is SessionState.CANCELLED:
        print("\nRun cancelled; results above cover the records processed so far.", file=stream)
    elif session.halted:
        print("\nRun stopped after the first failed record (--stop-on-error).", file=stream)


def display_status(status: StatusReport, *, out: TextIO | None = None) -> None:
    stream = _stream(out)
    config = status.config
    print("\nConfiguration:", file=stream)
    print(f"  API endpoint: {config.api_endpoint}", file=stream)
    print(f"  Import token: {config.token[:8]}...", file=stream)
    print(f"  Admin token: {'set' if config.admin_token else 'not set'}", file=stream)
    print(f"  Batch size: {config.batch_size}", file=stream)
    print(f"  Max retries: {config.max_retries}", file=stream)
    print(f"  Retry delay: {config.retry_delay} ms", file=stream)
    print(f"  Duplicate detection radius: {config.duplicate_radius:g} m", file=stream)
    print(f"  Title similarity threshold: {config.similarity_threshold:g}", file=stream)
    print(f"  Frontend base: {config.frontend_base}", file=stream)

    if status.checked_health:
        print("\nAPI health:", file=stream)
        if status.health is not None:
            health = status.health
            print(f"  Status: {health.status or 'unknown'}", file=stream)
            if health.version:
                print(f"  Version: {health.version}", file=stream)
            if health.environment:
                print(f"  Environment: {health.environment}", file=stream)
        else:
            print(f"  Unreachable: {status.health_error}", file=stream)

    if status.advice:
        print("\nAdvice:", file=stream)
        for item in status.advice:
            print(f"  - {item}", file=stream)
