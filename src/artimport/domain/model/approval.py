"""Types used by the bulk approval workflow."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_APPROVAL_CHUNK_SIZE = 25
DEFAULT_PENDING_FETCH_LIMIT = 1000


@dataclass(slots=True, frozen=True)
class PendingSubmission:
    """Administrative view of a submission waiting for review."""

    id: str
    tags: Mapping[str, object] | str | None = None
    user_token: str | None = None


@dataclass(slots=True, frozen=True)
class ApprovalFilters:
    source: str | None = None
    user_token: str | None = None
    max_submissions: int | None = None
    chunk_size: int = DEFAULT_APPROVAL_CHUNK_SIZE


@dataclass(slots=True, frozen=True)
class ApprovalError:
    submission_id: str
    error: str


@dataclass(slots=True, frozen=True)
class ChunkOutcome:
    approved: int = 0
    rejected: int = 0
    errors: tuple[ApprovalError, ...] = ()


@dataclass(slots=True)
class BulkApprovalResult:
    found: int = 0
    by_source: Counter[str] = field(default_factory=Counter[str])
    approved: int = 0
    rejected: int = 0
    errors: list[ApprovalError] = field(default_factory=list[ApprovalError])
    dry_run: bool = False
    confirmed: bool = True

    def absorb(self, outcome: ChunkOutcome) -> None:
        self.approved += outcome.approved
        self.rejected += outcome.rejected
        self.errors.extend(outcome.errors)

    @property
    def success_rate(self) -> float:
        attempted = self.approved + len(self.errors)
        if attempted == 0:
            return 0.0
        return self.approved / attempted * 100
