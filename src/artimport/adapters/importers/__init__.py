"""Input file adapters that map source records onto canonical records."""

from __future__ import annotations

from .artists import SOURCE_ARTIST_SOURCE, index_by_id, load_source_artists
from .generic import GENERIC_SOURCE, GenericImporter
from .osm import OSM_DUPLICATE_RADIUS, OSM_SOURCE, OsmImporter
from .registry import ALL_IMPORTERS, ImporterRegistry, ImporterValidation, default_registry
from .vancouver import VANCOUVER_SOURCE, VancouverImporter

__all__ = [
    "ALL_IMPORTERS",
    "GENERIC_SOURCE",
    "OSM_DUPLICATE_RADIUS",
    "OSM_SOURCE",
    "SOURCE_ARTIST_SOURCE",
    "VANCOUVER_SOURCE",
    "GenericImporter",
    "ImporterRegistry",
    "ImporterValidation",
    "OsmImporter",
    "VancouverImporter",
    "default_registry",
    "index_by_id",
    "load_source_artists",
]
