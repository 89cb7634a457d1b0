from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from artimport.config import ConfigurationError
from artimport.domain.duplicate_detection import DuplicateDetector, title_similarity
from artimport.domain.geo import haversine_distance
from artimport.domain.model import ExistingArtwork, Location
from tests.support.fakes import FakeArtworkDirectory

if TYPE_CHECKING:
    from collections.abc import Callable

    from artimport.domain.model import CanonicalRecord

# Roughly 5.6 m and 33 m north of the default record location.
NEAR_LAT = 49.2827 + 0.00005
MID_LAT = 49.2827 + 0.0003


def _detector(*artworks: ExistingArtwork, radius: float = 50.0) -> DuplicateDetector:
    return DuplicateDetector(
        FakeArtworkDirectory(list(artworks)), radius_meters=radius, similarity_threshold=0.8
    )


def test_title_similarity_bounds() -> None:
    assert title_similarity("Digital Orca", "  digital orca ") == 1.0
    assert title_similarity("The Digital Orca", "Digital Orca") == 1.0
    assert title_similarity("Orca Digital", "Digital Orca") == pytest.approx(1.0)
    assert title_similarity(None, "Digital Orca") == 0.0
    assert 0.0 <= title_similarity("Orca", "Totem Pole") < 0.5


def test_haversine_distance() -> None:
    origin = Location(lat=49.2827, lon=-123.1207)
    north = Location(lat=49.2837, lon=-123.1207)

    assert haversine_distance(origin, origin) == 0.0
    assert haversine_distance(origin, north) == pytest.approx(111.19, abs=0.01)
    assert haversine_distance(north, origin) == pytest.approx(haversine_distance(origin, north))


def test_no_existing_artworks_is_not_duplicate(
    make_record: Callable[..., CanonicalRecord],
) -> None:
    verdict = asyncio.run(_detector().detect(make_record()))

    assert not verdict.is_duplicate
    assert verdict.candidates == ()
    assert verdict.best_match is None


def test_similar_title_nearby_is_duplicate(make_record: Callable[..., CanonicalRecord]) -> None:
    existing = ExistingArtwork(
        id="art-1", location=Location(lat=MID_LAT, lon=-123.1207), title="The Digital Orca"
    )

    verdict = asyncio.run(_detector(existing).detect(make_record()))

    assert verdict.is_duplicate
    assert verdict.best_match is not None
    assert verdict.best_match.artwork_id == "art-1"
    assert verdict.reason is not None
    assert verdict.reason.startswith("title")


def test_very_close_untitled_artwork_is_duplicate(
    make_record: Callable[..., CanonicalRecord],
) -> None:
    existing = ExistingArtwork(id="art-2", location=Location(lat=NEAR_LAT, lon=-123.1207))

    verdict = asyncio.run(_detector(existing).detect(make_record()))

    assert verdict.is_duplicate
    assert verdict.reason is not None
    assert verdict.reason.startswith("distance")


def test_very_close_artwork_with_different_title_is_not_duplicate(
    make_record: Callable[..., CanonicalRecord],
) -> None:
    existing = ExistingArtwork(
        id="art-3", location=Location(lat=NEAR_LAT, lon=-123.1207), title="Totem Pole"
    )

    verdict = asyncio.run(_detector(existing).detect(make_record()))

    assert not verdict.is_duplicate
    assert [candidate.artwork_id for candidate in verdict.candidates] == ["art-3"]


def test_exact_external_id_wins_regardless_of_distance(
    make_record: Callable[..., CanonicalRecord],
) -> None:
    same_source = ExistingArtwork(
        id="art-4",
        location=Location(lat=MID_LAT, lon=-123.1207),
        title="Renamed",
        tags={"external_id": "rec-1", "source": "test-source"},
    )
    other = ExistingArtwork(
        id="art-5", location=Location(lat=NEAR_LAT, lon=-123.1207), title="Digital Orca"
    )

    verdict = asyncio.run(_detector(same_source, other).detect(make_record()))

    assert verdict.is_duplicate
    assert verdict.best_match is not None
    assert verdict.best_match.exact_id_match
    assert verdict.best_match.confidence == 1.0


def test_same_external_id_from_other_source_is_not_exact(
    make_record: Callable[..., CanonicalRecord],
) -> None:
    existing = ExistingArtwork(
        id="art-6",
        location=Location(lat=MID_LAT, lon=-123.1207),
        title="Something Else Entirely",
        tags={"external_id": "rec-1", "source": "another-source"},
    )

    verdict = asyncio.run(_detector(existing).detect(make_record()))

    assert not verdict.is_duplicate


def test_larger_radius_never_finds_fewer_candidates(
    make_record: Callable[..., CanonicalRecord],
) -> None:
    artworks = [
        ExistingArtwork(id="near", location=Location(lat=NEAR_LAT, lon=-123.1207), title="A"),
        ExistingArtwork(id="mid", location=Location(lat=MID_LAT, lon=-123.1207), title="B"),
        ExistingArtwork(id="far", location=Location(lat=49.2927, lon=-123.1207), title="C"),
    ]
    detector = _detector(*artworks)
    record = make_record()

    counts = [
        len(asyncio.run(detector.detect(record, radius=radius)).candidates)
        for radius in (10.0, 50.0, 500.0, 5000.0)
    ]

    assert counts == sorted(counts)
    assert counts[0] == 1
    assert counts[-1] == 3


def test_candidates_are_ordered_by_confidence(
    make_record: Callable[..., CanonicalRecord],
) -> None:
    artworks = [
        ExistingArtwork(id="weak", location=Location(lat=MID_LAT, lon=-123.1207), title="Bench"),
        ExistingArtwork(
            id="strong", location=Location(lat=NEAR_LAT, lon=-123.1207), title="Digital Orca"
        ),
    ]

    verdict = asyncio.run(_detector(*artworks).detect(make_record()))

    assert [candidate.artwork_id for candidate in verdict.candidates] == ["strong", "weak"]
    assert verdict.best_match is not None
    assert verdict.best_match.artwork_id == "strong"


@pytest.mark.parametrize("radius", [0.0, -5.0])
def test_non_positive_radius_is_rejected(radius: float) -> None:
    with pytest.raises(ConfigurationError):
        _detector(radius=radius)


def test_per_call_radius_is_validated(make_record: Callable[..., CanonicalRecord]) -> None:
    with pytest.raises(ConfigurationError):
        asyncio.run(_detector().detect(make_record(), radius=0))


def test_detection_only_reads(make_record: Callable[..., CanonicalRecord]) -> None:
    directory = FakeArtworkDirectory()
    detector = DuplicateDetector(directory, radius_meters=75.0, similarity_threshold=0.8)

    asyncio.run(detector.detect(make_record()))

    assert directory.queries == [(Location(lat=49.2827, lon=-123.1207), 75.0)]
