"""Event listener that turns processor events into log lines."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from artimport.domain.events import ProcessingEventKind

if TYPE_CHECKING:
    from artimport.domain.events import ProcessingEvent

PROGRESS_EVERY = 25


@dataclass(slots=True)
class ProgressLogger:
    """Logs batch boundaries, retries and failures; every ``every`` records at INFO.

    Per-record completions are DEBUG so ``--verbose`` shows the full trail.
    """

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    every: int = PROGRESS_EVERY
    completed: int = 0

    def __call__(self, event: ProcessingEvent) -> None:
        kind = event.kind
        session = event.session
        if kind is ProcessingEventKind.SESSION_STARTED:
            self.completed = 0
            self.logger.info(
                "Session %s started (%s batch(es), %s)",
                session.id,
                event.batch_count,
                "dry run" if session.dry_run else "live",
            )
        elif kind is ProcessingEventKind.BATCH_STARTED:
            self.logger.info(
                "Batch %s/%s started", (event.batch_index or 0) + 1, event.batch_count
            )
        elif kind is ProcessingEventKind.RECORD_RETRIED:
            self.logger.warning(
                "Retrying %s after attempt %s: %s", event.external_id, event.attempt, event.error
            )
        elif kind is ProcessingEventKind.RECORD_COMPLETED and event.result is not None:
            self.completed += 1
            result = event.result
            if result.status.is_failure:
                self.logger.warning(
                    "Record %s %s: %s", result.external_id, result.status, result.error
                )
            else:
                self.logger.debug("Record %s %s", result.external_id, result.status)
            if self.every and self.completed % self.every == 0:
                self.logger.info("Processed %s record(s)", self.completed)
        elif kind is ProcessingEventKind.BATCH_COMPLETED and event.batch_index is not None:
            batch = session.batches[event.batch_index]
            summary = batch.summary()
            self.logger.info(
                "Batch %s/%s done: successful=%s, failed=%s, duplicates=%s",
                event.batch_index + 1,
                event.batch_count,
                summary.successful,
                summary.failed,
                summary.duplicates,
            )
        elif kind is ProcessingEventKind.SESSION_FINISHED:
            duration = session.duration_seconds
            self.logger.info(
                "Session %s %s after %.1fs (%s record(s))",
                session.id,
                session.state,
                duration or 0.0,
                self.completed,
            )
