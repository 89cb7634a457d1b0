"""Shared helpers for reading importer input files."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from pydantic import ValidationError

from artimport.domain.errors import InputFileError, RecordMappingError

if TYPE_CHECKING:
    from pathlib import Path

    from artimport.domain.ports import RawRecord


def read_json(path: Path) -> object:
    if not path.exists():
        raise InputFileError(f"Input file not found: {path}")
    try:
        with path.open(encoding="utf-8") as handle:
            return json.load(handle)
    except json.JSONDecodeError as exc:
        raise InputFileError(f"Input file {path} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise InputFileError(f"Cannot read input file {path}: {exc}") from exc


def as_records(
    payload: object, *, path: Path, container_keys: tuple[str, ...] = ()
) -> list[RawRecord]:
    """Return the list of record objects in ``payload``.

    Accepts a bare JSON array, or an object holding the array under one of
    ``container_keys``. Non-object entries are kept so they fail individually during
    mapping instead of failing the whole file.
    """

    items: object = payload
    if isinstance(payload, Mapping):
        mapping = cast(Mapping[str, object], payload)
        items = next((mapping[key] for key in container_keys if key in mapping), None)
    if not isinstance(items, list):
        expected = "a JSON array"
        if container_keys:
            expected += " or an object with " + "/".join(f"'{key}'" for key in container_keys)
        raise InputFileError(f"Input file {path} must contain {expected}")
    return [
        cast(dict[str, Any], item) if isinstance(item, Mapping) else {"__invalid__": item}
        for item in cast(list[object], items)
    ]


def first_present(raw: RawRecord, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = raw.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error["loc"]) or "record"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


def mapping_error(exc: ValidationError, *, record_id: str) -> RecordMappingError:
    return RecordMappingError(f"Record {record_id} is invalid: {describe_validation_error(exc)}")
