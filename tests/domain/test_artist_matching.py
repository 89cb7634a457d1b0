from __future__ import annotations

import asyncio

import pytest

from artimport.domain.artist_matching import (
    TOKEN_SCORE_FLOOR,
    ArtistMatcher,
    artist_search_url,
    build_new_artist,
    find_source_artist_by_name,
    token_score,
)
from artimport.domain.model import (
    ArtistLinkStatus,
    ExistingArtist,
    MatchResolution,
    MatchType,
    SourceArtist,
)
from tests.support.fakes import FakeArtistDirectory

BILL_REID = SourceArtist(
    external_id="42",
    first_name="Bill",
    last_name="Reid",
    biography="Haida artist. ",
    country="Canada",
    website="",
)


def _matcher(*artists: ExistingArtist) -> tuple[ArtistMatcher, FakeArtistDirectory]:
    directory = FakeArtistDirectory(list(artists))
    return ArtistMatcher(directory, frontend_base="https://art.test"), directory


def test_token_score_uses_larger_set() -> None:
    assert token_score(["bill", "reid"], ["bill", "reid"]) == 1.0
    assert token_score(["bill", "reid"], ["bill", "reid", "jr"]) == pytest.approx(2 / 3)
    assert token_score([], ["bill"]) == 0.0


def test_single_exact_match_is_confident() -> None:
    matcher, _ = _matcher(ExistingArtist(id="a1", name="Bill Reid"))

    result = asyncio.run(matcher.find_matching_artists("  BILL   reid "))

    assert result.is_exact
    assert not result.is_ambiguous
    assert result.best_match is not None
    assert result.best_match.match_type is MatchType.EXACT
    assert result.best_match.score == 1.0
    assert result.resolution is MatchResolution.SINGLE


def test_two_exact_matches_are_ambiguous() -> None:
    matcher, _ = _matcher(
        ExistingArtist(id="a1", name="Bill Reid"), ExistingArtist(id="a2", name="Bill Réid")
    )

    result = asyncio.run(matcher.find_matching_artists("Bill Reid"))

    assert result.is_exact
    assert result.is_ambiguous
    assert {candidate.artist.id for candidate in result.matches} == {"a1", "a2"}


def test_token_candidates_below_floor_are_dropped() -> None:
    matcher, _ = _matcher(
        ExistingArtist(id="a1", name="Reid Bill"),
        ExistingArtist(id="a2", name="Bill Smith Jones"),
    )

    result = asyncio.run(matcher.find_matching_artists("Bill Reid"))

    assert not result.is_exact
    assert [candidate.artist.id for candidate in result.matches] == ["a1"]
    assert all(candidate.score >= 0.7 for candidate in result.matches)
    assert result.matches[0].match_type is MatchType.TOKEN


def test_token_candidate_exactly_at_floor_is_kept() -> None:
    query = "Anna Beth Clara Dora Emma Fiona Greta Hanna Ida Julia"
    matcher, _ = _matcher(
        ExistingArtist(id="at-floor", name="Anna Beth Clara Dora Emma Fiona Greta"),
        ExistingArtist(id="below", name="Anna Beth Clara Dora Emma Fiona Zoe Yara Xena"),
    )

    result = asyncio.run(matcher.find_matching_artists(query))

    assert [candidate.artist.id for candidate in result.matches] == ["at-floor"]
    assert result.matches[0].score == TOKEN_SCORE_FLOOR


def test_empty_name_makes_no_queries() -> None:
    matcher, directory = _matcher(ExistingArtist(id="a1", name="Bill Reid"))

    result = asyncio.run(matcher.find_matching_artists("  !! "))

    assert result.matches == ()
    assert directory.lookups == 0


def test_source_lookup_requires_first_and_last_name() -> None:
    dataset = [BILL_REID]

    assert find_source_artist_by_name("Bill Reid", dataset) is BILL_REID
    assert find_source_artist_by_name("Reid, Bill", dataset) is BILL_REID
    assert find_source_artist_by_name("Bill", dataset) is None
    assert find_source_artist_by_name("Bill Smith", dataset) is None


def test_new_artist_tags_omit_missing_fields() -> None:
    artist = build_new_artist(" Bill Reid ", BILL_REID, source="vancouver-opendata")

    assert artist.name == "Bill Reid"
    assert artist.tags == {"biography": "Haida artist.", "country": "Canada"}
    assert artist.description == "Haida artist."
    assert artist.source == "vancouver-opendata"
    assert artist.source_data == {"external_id": "42", "original_name": " Bill Reid "}


def test_search_url_escapes_name() -> None:
    assert (
        artist_search_url("Bill Reid & Co", frontend_base="https://art.test/")
        == "https://art.test/search?artist=Bill%20Reid%20%26%20Co"
    )


def test_resolve_links_single_exact_match() -> None:
    matcher, directory = _matcher(ExistingArtist(id="a1", name="Bill Reid"))

    resolution = asyncio.run(matcher.resolve("Bill Reid", source="test"))

    assert resolution.status is ArtistLinkStatus.LINKED
    assert resolution.artist_id == "a1"
    assert directory.created == []


def test_resolve_reports_ambiguous_with_search_url() -> None:
    matcher, _ = _matcher(
        ExistingArtist(id="a1", name="Bill Reid"), ExistingArtist(id="a2", name="bill reid")
    )

    resolution = asyncio.run(matcher.resolve("Bill Reid", source="test"))

    assert resolution.status is ArtistLinkStatus.AMBIGUOUS
    assert resolution.artist_id is None
    assert resolution.search_url == "https://art.test/search?artist=Bill%20Reid"


def test_resolve_never_creates_when_a_similar_artist_exists() -> None:
    matcher, directory = _matcher(ExistingArtist(id="a1", name="Reid Bill"))

    resolution = asyncio.run(
        matcher.resolve("Bill Reid", source="test", source_dataset=[BILL_REID])
    )

    assert resolution.status is ArtistLinkStatus.UNRESOLVED
    assert directory.created == []


def test_resolve_creates_from_source_dataset() -> None:
    matcher, directory = _matcher()

    resolution = asyncio.run(
        matcher.resolve("Bill Reid", source="test", source_dataset=[BILL_REID])
    )

    assert resolution.status is ArtistLinkStatus.CREATED
    assert resolution.artist_id == "artist-1"
    assert [artist.name for artist in directory.created] == ["Bill Reid"]


def test_resolve_in_dry_run_only_reports_creation() -> None:
    matcher, directory = _matcher()

    resolution = asyncio.run(
        matcher.resolve("Bill Reid", source="test", source_dataset=[BILL_REID], dry_run=True)
    )

    assert resolution.status is ArtistLinkStatus.WOULD_CREATE
    assert directory.created == []


def test_resolve_without_source_entry_is_unresolved() -> None:
    matcher, directory = _matcher()

    resolution = asyncio.run(matcher.resolve("Unknown Person", source="test"))

    assert resolution.status is ArtistLinkStatus.UNRESOLVED
    assert resolution.search_url is not None
    assert directory.created == []
