"""Reader for source artist datasets (Vancouver ``artistid/firstname/lastname`` format)."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from artimport.domain.model import SourceArtist

from .loading import as_records, describe_validation_error, read_json
from .schema import VancouverArtistPayload

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

log = getLogger(__name__)

SOURCE_ARTIST_SOURCE = "vancouver-mass-import"


def load_source_artists(
    path: Path, *, source: str = SOURCE_ARTIST_SOURCE
) -> list[SourceArtist]:
    """Read an artist file; invalid entries are logged and skipped."""

    artists: list[SourceArtist] = []
    skipped = 0
    for index, raw in enumerate(as_records(read_json(path), path=path)):
        try:
            payload = VancouverArtistPayload.model_validate(raw)
        except ValidationError as exc:
            skipped += 1
            log.warning(
                "Skipping artist entry %s in %s: %s",
                index + 1,
                path,
                describe_validation_error(exc),
            )
            continue
        artists.append(
            SourceArtist(
                external_id=str(payload.artistid),
                first_name=payload.firstname or "",
                last_name=payload.lastname or "",
                biography=payload.biography,
                country=payload.country,
                website=payload.website,
                profile_url=payload.artisturl,
                photo_url=payload.photo,
                source=source,
            )
        )
    log.info("Loaded %s source artist(s) from %s (%s skipped)", len(artists), path, skipped)
    return artists


def index_by_id(artists: Iterable[SourceArtist]) -> Mapping[str, SourceArtist]:
    return {artist.external_id: artist for artist in artists}
