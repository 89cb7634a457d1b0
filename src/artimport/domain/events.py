"""Structured progress events emitted by the batch processor."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from artimport.domain.model import BatchResult, ProcessingSession


class ProcessingEventKind(StrEnum):
    SESSION_STARTED = "session_started"
    BATCH_STARTED = "batch_started"
    RECORD_STARTED = "record_started"
    RECORD_RETRIED = "record_retried"
    RECORD_COMPLETED = "record_completed"
    BATCH_COMPLETED = "batch_completed"
    SESSION_FINISHED = "session_finished"


@dataclass(slots=True, frozen=True)
class ProcessingEvent:
    kind: ProcessingEventKind
    session: ProcessingSession
    batch_index: int | None = None
    batch_count: int | None = None
    record_index: int | None = None
    external_id: str | None = None
    result: BatchResult | None = None
    attempt: int | None = None
    error: str | None = None


type EventListener = Callable[[ProcessingEvent], None]


def emit(listeners: Iterable[EventListener], event: ProcessingEvent) -> None:
    for listener in listeners:
        listener(event)
