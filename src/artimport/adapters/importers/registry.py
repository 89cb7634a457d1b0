"""Named lookup of the available importer adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from rapidfuzz import fuzz, process

from .generic import GenericImporter
from .osm import OsmImporter
from .vancouver import VancouverImporter

if TYPE_CHECKING:
    from artimport.domain.ports import ImporterAdapter

ALL_IMPORTERS = "all"
SUGGESTION_CUTOFF = 60.0


@dataclass(slots=True, frozen=True)
class ImporterValidation:
    valid: bool
    message: str | None = None
    suggestions: tuple[str, ...] = ()


@dataclass(slots=True)
class ImporterRegistry:
    _importers: dict[str, ImporterAdapter] = field(default_factory=dict)

    def register(self, importer: ImporterAdapter) -> None:
        self._importers[importer.name] = importer

    def get(self, name: str) -> ImporterAdapter | None:
        return self._importers.get(name)

    def get_all(self) -> list[str]:
        return list(self._importers)

    def has(self, name: str) -> bool:
        return name in self._importers

    def adapters(self) -> list[ImporterAdapter]:
        return list(self._importers.values())

    def help_message(self) -> str:
        available = ", ".join(self.get_all()) or "(none)"
        return (
            f"Please specify an importer. Available importers: {available}. "
            f"Use '{ALL_IMPORTERS}' to run all importers sequentially."
        )

    def validate_importer(self, name: str) -> ImporterValidation:
        if name == ALL_IMPORTERS or self.has(name):
            return ImporterValidation(valid=True)

        available = self.get_all()
        suggestions = [item for item in available if item in name or name in item]
        if not suggestions:
            suggestions = [
                match
                for match, _score, _index in process.extract(
                    name, available, scorer=fuzz.ratio, score_cutoff=SUGGESTION_CUTOFF
                )
            ]
        return ImporterValidation(
            valid=False,
            message=f'Unknown importer: "{name}". {self.help_message()}',
            suggestions=tuple(suggestions or available),
        )


def default_registry() -> ImporterRegistry:
    registry = ImporterRegistry()
    for importer in (GenericImporter(), OsmImporter(), VancouverImporter()):
        registry.register(importer)
    return registry
