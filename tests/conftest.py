from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from artimport.config import ImportConfig
from artimport.domain.model import CanonicalRecord, Location

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture
def import_config() -> ImportConfig:
    return ImportConfig(
        api_endpoint="https://api.test",
        token="test-token",
        batch_size=2,
        max_retries=2,
        retry_delay=0,
        frontend_base="https://art.test",
    )


@pytest.fixture
def make_record() -> Callable[..., CanonicalRecord]:
    def factory(
        external_id: str = "rec-1",
        *,
        lat: float = 49.2827,
        lon: float = -123.1207,
        title: str = "Digital Orca",
        source: str = "test-source",
        artists: tuple[str, ...] = (),
    ) -> CanonicalRecord:
        return CanonicalRecord(
            external_id=external_id,
            location=Location(lat=lat, lon=lon),
            title=title,
            source=source,
            artists=artists,
        )

    return factory


@pytest.fixture
def write_json(tmp_path: Path) -> Callable[[str, object], Path]:
    def writer(name: str, payload: object) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    return writer
