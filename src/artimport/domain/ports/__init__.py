"""Ports the mass import domain depends on."""

from __future__ import annotations

from .directories import ArtistDirectory, ArtworkDirectory
from .importing import ImporterAdapter, RawRecord
from .submission import ReviewQueue, SubmissionGateway

__all__ = [
    "ArtistDirectory",
    "ArtworkDirectory",
    "ImporterAdapter",
    "RawRecord",
    "ReviewQueue",
    "SubmissionGateway",
]
