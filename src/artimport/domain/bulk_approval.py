"""Bulk approval of pending imported submissions: fetch, confirm, approve."""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from artimport.domain.errors import ApiError
from artimport.domain.model import (
    DEFAULT_PENDING_FETCH_LIMIT,
    ApprovalError,
    BulkApprovalResult,
    ChunkOutcome,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from artimport.domain.model import ApprovalFilters, PendingSubmission
    from artimport.domain.ports import ReviewQueue

log = getLogger(__name__)

UNKNOWN_SOURCE = "unknown"

type ConfirmCallback = Callable[[BulkApprovalResult], bool]


def extract_source_from_tags(tags: Mapping[str, object] | str | None) -> str:
    """Source name from a submission's tags (a mapping or its JSON text)."""

    parsed: object = tags
    if isinstance(tags, str):
        try:
            parsed = json.loads(tags)
        except json.JSONDecodeError:
            return UNKNOWN_SOURCE
    if not isinstance(parsed, Mapping):
        return UNKNOWN_SOURCE
    value = parsed.get("source") or parsed.get("data-source")
    return str(value) if value else UNKNOWN_SOURCE


def chunked[T](items: Sequence[T], size: int) -> Iterator[list[T]]:
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def _matches(submission: PendingSubmission, filters: ApprovalFilters) -> bool:
    if filters.source and extract_source_from_tags(submission.tags) != filters.source:
        return False
    return not (filters.user_token and submission.user_token != filters.user_token)


@dataclass(slots=True)
class BulkApprovalWorkflow:
    """Approves pending submissions in fixed-size chunks.

    A failed chunk counts every submission in it as an error and the run moves on
    to the next chunk. Failing to fetch the queue aborts the run.
    """

    queue: ReviewQueue
    confirm: ConfirmCallback

    async def run(
        self,
        filters: ApprovalFilters,
        *,
        dry_run: bool = False,
        auto_confirm: bool = False,
    ) -> BulkApprovalResult:
        limit = filters.max_submissions or DEFAULT_PENDING_FETCH_LIMIT
        pending = await self.queue.fetch_pending(limit=limit)
        matching = [submission for submission in pending if _matches(submission, filters)]
        if filters.max_submissions is not None:
            matching = matching[: filters.max_submissions]

        result = BulkApprovalResult(
            found=len(matching),
            by_source=Counter(extract_source_from_tags(item.tags) for item in matching),
            dry_run=dry_run,
        )
        log.info(
            "Found %s pending submission(s) matching filters (of %s fetched)",
            len(matching),
            len(pending),
        )

        if not matching or dry_run:
            return result

        if not auto_confirm and not self.confirm(result):
            log.info("Bulk approval not confirmed; no submissions changed")
            result.confirmed = False
            return result

        ids = [submission.id for submission in matching]
        for index, chunk in enumerate(chunked(ids, filters.chunk_size), start=1):
            try:
                outcome = await self.queue.approve(chunk)
            except ApiError as exc:
                log.warning("Approval chunk %s failed: %s", index, exc)
                outcome = ChunkOutcome(
                    errors=tuple(
                        ApprovalError(submission_id=item, error=str(exc)) for item in chunk
                    )
                )
            log.info(
                "Chunk %s: approved=%s, rejected=%s, errors=%s",
                index,
                outcome.approved,
                outcome.rejected,
                len(outcome.errors),
            )
            result.absorb(outcome)

        return result
