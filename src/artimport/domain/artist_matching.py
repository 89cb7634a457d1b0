"""Artist (creator) name matching, source-dataset lookup and creation."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING
from urllib.parse import quote

from artimport.domain.model import (
    ArtistCandidate,
    ArtistLinkStatus,
    ArtistMatchResult,
    ArtistResolution,
    MatchType,
    NewArtist,
)
from artimport.domain.normalization import name_tokens, normalize_artist_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from artimport.domain.cancellation import CancellationToken
    from artimport.domain.model import ExistingArtist, SourceArtist
    from artimport.domain.ports import ArtistDirectory

log = getLogger(__name__)

EXACT_SCORE = 1.0
TOKEN_SCORE_FLOOR = 0.7
CONFIDENT_SCORE = 0.85

__all__ = [
    "CONFIDENT_SCORE",
    "TOKEN_SCORE_FLOOR",
    "ArtistMatcher",
    "artist_search_url",
    "build_new_artist",
    "find_source_artist_by_name",
    "normalize_artist_name",
    "token_score",
]


def token_score(query_tokens: Sequence[str], candidate_tokens: Sequence[str]) -> float:
    """Shared meaningful tokens over the size of the larger token set."""

    query = set(query_tokens)
    candidate = set(candidate_tokens)
    if not query or not candidate:
        return 0.0
    return len(query & candidate) / max(len(query), len(candidate))


def artist_search_url(name: str, *, frontend_base: str = "") -> str:
    return f"{frontend_base.rstrip('/')}/search?artist={quote(name.strip(), safe='')}"


def find_source_artist_by_name(
    name: str, dataset: Sequence[SourceArtist]
) -> SourceArtist | None:
    """Find the dataset entry for ``name``.

    Both sides are required: one query token has to appear among the entry's
    first-name tokens and a different query token among its last-name tokens.
    """

    query_tokens = normalize_artist_name(name).split()
    if len(query_tokens) < 2:
        return None

    for entry in dataset:
        first = set(normalize_artist_name(entry.first_name).split())
        last = set(normalize_artist_name(entry.last_name).split())
        if not first or not last:
            continue
        for i, first_token in enumerate(query_tokens):
            if first_token not in first:
                continue
            if any(j != i and token in last for j, token in enumerate(query_tokens)):
                return entry
    return None


def build_new_artist(name: str, source_record: SourceArtist, *, source: str) -> NewArtist:
    """Creation payload for ``name``; tags only carry fields the source provides."""

    optional = {
        "biography": source_record.biography,
        "country": source_record.country,
        "website": source_record.website,
        "profile_url": source_record.profile_url,
        "photo_url": source_record.photo_url,
    }
    tags = {key: value.strip() for key, value in optional.items() if value and value.strip()}
    return NewArtist(
        name=name.strip(),
        source=source_record.source or source,
        tags=tags,
        description=tags.get("biography"),
        source_data={"external_id": source_record.external_id, "original_name": name},
    )


@dataclass(slots=True)
class ArtistMatcher:
    directory: ArtistDirectory
    frontend_base: str = ""

    async def find_matching_artists(self, name: str) -> ArtistMatchResult:
        normalized = normalize_artist_name(name)
        if not normalized:
            return ArtistMatchResult(query=name, normalized="")

        exact = await self.directory.find_by_normalized_name(normalized)
        if exact:
            matches = tuple(
                ArtistCandidate(artist=artist, score=EXACT_SCORE, match_type=MatchType.EXACT)
                for artist in exact
            )
            return ArtistMatchResult(
                query=name,
                normalized=normalized,
                matches=matches,
                is_exact=True,
                is_ambiguous=len(matches) > 1,
            )

        tokens = name_tokens(normalized)
        if not tokens:
            return ArtistMatchResult(query=name, normalized=normalized)

        scored = self._score_tokens(tokens, await self.directory.find_by_tokens(tokens))
        confident = [candidate for candidate in scored if candidate.score >= CONFIDENT_SCORE]
        return ArtistMatchResult(
            query=name,
            normalized=normalized,
            matches=tuple(scored),
            is_ambiguous=len(confident) > 1,
        )

    async def create_artist_from_source_data(
        self, name: str, source_record: SourceArtist, *, source: str
    ) -> str:
        artist = build_new_artist(name, source_record, source=source)
        artist_id = await self.directory.create_artist(artist)
        log.info(
            "Created artist %s for %r from source id %s",
            artist_id,
            name,
            source_record.external_id,
        )
        return artist_id

    async def resolve(
        self,
        name: str,
        *,
        source: str,
        source_dataset: Sequence[SourceArtist] = (),
        dry_run: bool = False,
        cancellation: CancellationToken | None = None,
    ) -> ArtistResolution:
        """Link ``name`` to a creator, create one, or report why neither is safe.

        Links only on a single exact match. Creates only when nothing in the store
        resembles the name and the source dataset knows the artist by external id.
        """

        lookup = self.find_matching_artists(name)
        match = await (cancellation.guard(lookup) if cancellation is not None else lookup)
        search_url = artist_search_url(name, frontend_base=self.frontend_base)

        if match.is_ambiguous:
            return ArtistResolution(
                name=name,
                status=ArtistLinkStatus.AMBIGUOUS,
                search_url=search_url,
                match=match,
            )
        best = match.best_match
        if match.is_exact and best is not None:
            return ArtistResolution(
                name=name,
                status=ArtistLinkStatus.LINKED,
                artist_id=best.artist.id,
                match=match,
            )
        if match.matches:
            return ArtistResolution(
                name=name,
                status=ArtistLinkStatus.UNRESOLVED,
                search_url=search_url,
                match=match,
            )

        source_record = find_source_artist_by_name(name, source_dataset)
        if source_record is None or not source_record.external_id:
            return ArtistResolution(
                name=name,
                status=ArtistLinkStatus.UNRESOLVED,
                search_url=search_url,
                match=match,
            )
        if dry_run:
            return ArtistResolution(
                name=name, status=ArtistLinkStatus.WOULD_CREATE, match=match
            )

        artist_id = await self.create_artist_from_source_data(name, source_record, source=source)
        return ArtistResolution(
            name=name, status=ArtistLinkStatus.CREATED, artist_id=artist_id, match=match
        )

    @staticmethod
    def _score_tokens(
        tokens: Sequence[str], artists: Sequence[ExistingArtist]
    ) -> list[ArtistCandidate]:
        seen: set[str] = set()
        scored: list[ArtistCandidate] = []
        for artist in artists:
            if artist.id in seen:
                continue
            seen.add(artist.id)
            score = token_score(tokens, name_tokens(normalize_artist_name(artist.name)))
            if score < TOKEN_SCORE_FLOOR:
                continue
            scored.append(ArtistCandidate(artist=artist, score=score, match_type=MatchType.TOKEN))
        scored.sort(key=lambda candidate: (-candidate.score, candidate.artist.name))
        return scored
