"""Read (and artist create) access to the authoritative store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from artimport.domain.model import ExistingArtist, ExistingArtwork, Location, NewArtist


@runtime_checkable
class ArtworkDirectory(Protocol):
    async def nearby(self, location: Location, radius_meters: float) -> Sequence[ExistingArtwork]:
        """Return existing artworks around ``location``; may include some beyond the radius."""
        ...


@runtime_checkable
class ArtistDirectory(Protocol):
    async def find_by_normalized_name(self, normalized: str) -> Sequence[ExistingArtist]:
        """Return creators whose normalized name equals ``normalized``."""
        ...

    async def find_by_tokens(self, tokens: Sequence[str]) -> Sequence[ExistingArtist]:
        """Return creators sharing at least one name token with ``tokens``."""
        ...

    async def create_artist(self, artist: NewArtist) -> str:
        """Create a creator record and return its id."""
        ...
