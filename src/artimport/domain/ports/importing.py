"""Importer adapter contract."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from artimport.domain.model import CanonicalRecord

type RawRecord = Mapping[str, Any]


@runtime_checkable
class ImporterAdapter(Protocol):
    """Maps one external record format onto ``CanonicalRecord``."""

    name: str
    description: str

    @property
    def default_config(self) -> Mapping[str, object]:
        """Importer-specific ``ImportConfig`` defaults (lowest precedence after built-ins)."""
        ...

    def load(self, path: Path) -> list[RawRecord]:
        """Read the input file into raw records. Raises ``InputFileError``."""
        ...

    def record_id(self, raw: RawRecord, index: int) -> str:
        """Best-effort identifier used in reports, also for records that fail mapping."""
        ...

    def map_record(self, raw: RawRecord, *, source: str | None = None) -> CanonicalRecord:
        """Raises ``RecordMappingError`` (a ``ValueError``) when the record is unusable."""
        ...
