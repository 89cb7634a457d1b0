"""Domain model for the mass import pipeline."""

from __future__ import annotations

from .approval import (
    DEFAULT_APPROVAL_CHUNK_SIZE,
    DEFAULT_PENDING_FETCH_LIMIT,
    ApprovalError,
    ApprovalFilters,
    BulkApprovalResult,
    ChunkOutcome,
    PendingSubmission,
)
from .artists import (
    ArtistCandidate,
    ArtistLinkStatus,
    ArtistMatchResult,
    ArtistResolution,
    ExistingArtist,
    MatchResolution,
    MatchType,
    NewArtist,
    SourceArtist,
)
from .records import (
    CanonicalRecord,
    ExistingArtwork,
    Location,
    SubmissionReceipt,
    TagValue,
    Tags,
)
from .results import (
    Batch,
    BatchResult,
    BatchSummary,
    DuplicateCandidate,
    DuplicateVerdict,
    ProcessingSession,
    RecordStatus,
    SessionState,
    SessionSummary,
)

__all__ = [
    "DEFAULT_APPROVAL_CHUNK_SIZE",
    "DEFAULT_PENDING_FETCH_LIMIT",
    "ApprovalError",
    "ApprovalFilters",
    "ArtistCandidate",
    "ArtistLinkStatus",
    "ArtistMatchResult",
    "ArtistResolution",
    "Batch",
    "BatchResult",
    "BatchSummary",
    "BulkApprovalResult",
    "CanonicalRecord",
    "ChunkOutcome",
    "DuplicateCandidate",
    "DuplicateVerdict",
    "ExistingArtist",
    "ExistingArtwork",
    "Location",
    "MatchResolution",
    "MatchType",
    "NewArtist",
    "PendingSubmission",
    "ProcessingSession",
    "RecordStatus",
    "SessionState",
    "SessionSummary",
    "SourceArtist",
    "SubmissionReceipt",
    "TagValue",
    "Tags",
]
