"""Artist (creator) matching types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .records import Tags


class MatchType(StrEnum):
    EXACT = "exact"
    TOKEN = "token"


class MatchResolution(StrEnum):
    """How many acceptable candidates a lookup produced."""

    NONE = "none"
    SINGLE = "single"
    AMBIGUOUS = "ambiguous"


class ArtistLinkStatus(StrEnum):
    LINKED = "linked"
    CREATED = "created"
    WOULD_CREATE = "would_create"
    AMBIGUOUS = "ambiguous"
    UNRESOLVED = "unresolved"


@dataclass(slots=True, frozen=True)
class ExistingArtist:
    id: str
    name: str
    tags: Tags | None = None


@dataclass(slots=True, frozen=True)
class ArtistCandidate:
    artist: ExistingArtist
    score: float
    match_type: MatchType


@dataclass(slots=True, frozen=True)
class ArtistMatchResult:
    query: str
    normalized: str
    matches: tuple[ArtistCandidate, ...] = ()
    is_exact: bool = False
    is_ambiguous: bool = False

    @property
    def best_match(self) -> ArtistCandidate | None:
        return self.matches[0] if self.matches else None

    @property
    def resolution(self) -> MatchResolution:
        if not self.matches:
            return MatchResolution.NONE
        if self.is_ambiguous:
            return MatchResolution.AMBIGUOUS
        return MatchResolution.SINGLE


@dataclass(slots=True, frozen=True)
class SourceArtist:
    """An artist entry from a source dataset shipped next to the artwork file."""

    external_id: str
    first_name: str = ""
    last_name: str = ""
    biography: str | None = None
    country: str | None = None
    website: str | None = None
    profile_url: str | None = None
    photo_url: str | None = None
    source: str | None = None

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name.strip(), self.last_name.strip()) if part)


@dataclass(slots=True, frozen=True)
class NewArtist:
    """Payload for creating a creator record from source metadata."""

    name: str
    source: str
    tags: dict[str, str] = field(default_factory=dict[str, str])
    description: str | None = None
    source_data: dict[str, str] = field(default_factory=dict[str, str])


@dataclass(slots=True, frozen=True)
class ArtistResolution:
    """What happened to one artist name on one record."""

    name: str
    status: ArtistLinkStatus
    artist_id: str | None = None
    search_url: str | None = None
    match: ArtistMatchResult | None = None
