"""Mutating ports: artwork submission and the review queue."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from artimport.domain.model import (
        CanonicalRecord,
        ChunkOutcome,
        PendingSubmission,
        SubmissionReceipt,
    )


@runtime_checkable
class SubmissionGateway(Protocol):
    async def submit(
        self, record: CanonicalRecord, *, artist_ids: Sequence[str] = ()
    ) -> SubmissionReceipt:
        """Create a pending submission for ``record``.

        Raises ``ApiError`` on failure; ``ApiError.transient`` tells the caller whether
        the attempt may be repeated.
        """
        ...


@runtime_checkable
class ReviewQueue(Protocol):
    async def fetch_pending(self, *, limit: int) -> Sequence[PendingSubmission]: ...

    async def approve(self, submission_ids: Sequence[str]) -> ChunkOutcome: ...
