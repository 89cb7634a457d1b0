"""Run parameters for import, validation and approval commands."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, fields, replace
from logging import getLogger
from typing import TYPE_CHECKING

from .env import read_prefixed_env
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

log = getLogger(__name__)

DEFAULT_API_ENDPOINT = "https://api.publicartregistry.com"
DEFAULT_IMPORT_TOKEN = "a0000000-1000-4000-8000-000000000002"
DEFAULT_FRONTEND_BASE = "https://api.publicartregistry.com"
DEFAULT_BATCH_SIZE = 50
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_DUPLICATE_RADIUS = 50.0
DEFAULT_SIMILARITY_THRESHOLD = 0.8

# Config files written for the previous tooling use camelCase keys.
_FILE_KEY_ALIASES: dict[str, str] = {
    "apiEndpoint": "api_endpoint",
    "massImportUserToken": "token",
    "batchSize": "batch_size",
    "maxRetries": "max_retries",
    "retryDelay": "retry_delay",
    "duplicateDetectionRadius": "duplicate_radius",
    "titleSimilarityThreshold": "similarity_threshold",
    "frontendBase": "frontend_base",
    "adminToken": "admin_token",
}

_ENV_FIELDS: dict[str, type[str] | type[int] | type[float]] = {
    "api_endpoint": str,
    "token": str,
    "admin_token": str,
    "batch_size": int,
    "max_retries": int,
    "retry_delay": int,
    "duplicate_radius": float,
    "similarity_threshold": float,
    "frontend_base": str,
}


@dataclass(slots=True, frozen=True)
class ImportConfig:
    """Operator-controlled parameters, fixed for the duration of one invocation."""

    api_endpoint: str = DEFAULT_API_ENDPOINT
    token: str = DEFAULT_IMPORT_TOKEN
    batch_size: int = DEFAULT_BATCH_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: int = DEFAULT_RETRY_DELAY_MS
    duplicate_radius: float = DEFAULT_DUPLICATE_RADIUS
    similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    dry_run: bool = False
    frontend_base: str = DEFAULT_FRONTEND_BASE
    admin_token: str | None = None

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ConfigurationError(f"Batch size must be positive, got {self.batch_size}")
        if self.max_retries < 0:
            raise ConfigurationError(f"Max retries must be non-negative, got {self.max_retries}")
        if self.retry_delay < 0:
            raise ConfigurationError(f"Retry delay must be non-negative, got {self.retry_delay}")
        if self.duplicate_radius <= 0:
            raise ConfigurationError(
                f"Duplicate detection radius must be positive, got {self.duplicate_radius}"
            )
        if not 0.0 <= self.similarity_threshold <= 1.0:
            raise ConfigurationError(
                "Title similarity threshold must be between 0 and 1, "
                f"got {self.similarity_threshold}"
            )

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay / 1000

    @property
    def uses_default_token(self) -> bool:
        return self.token == DEFAULT_IMPORT_TOKEN

    def with_dry_run(self) -> ImportConfig:
        return replace(self, dry_run=True)

    def describe(self) -> dict[str, object]:
        """Configuration values that are safe to write into reports (no tokens)."""

        return {
            "api_endpoint": self.api_endpoint,
            "batch_size": self.batch_size,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "duplicate_radius": self.duplicate_radius,
            "similarity_threshold": self.similarity_threshold,
            "dry_run": self.dry_run,
        }


def read_config_file(path: Path) -> dict[str, object]:
    """Read a JSON or TOML config file into ``ImportConfig`` field names."""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc

    try:
        if path.suffix.lower() == ".toml":
            payload: object = tomllib.loads(text)
        else:
            payload = json.loads(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigurationError(f"Cannot parse config file {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigurationError(f"Config file {path} must contain an object at the top level")

    known = {item.name for item in fields(ImportConfig)}
    values: dict[str, object] = {}
    for key, value in payload.items():
        name = _FILE_KEY_ALIASES.get(key, key)
        if name not in known or name == "dry_run":
            log.warning("Ignoring unknown config key %r in %s", key, path)
            continue
        values[name] = value
    return values


def load_import_config(
    *,
    overrides: Mapping[str, object | None] | None = None,
    config_file: Path | None = None,
    importer_defaults: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ImportConfig:
    """Merge configuration sources into a validated ``ImportConfig``.

    Precedence, highest first: ``overrides`` (CLI flags; ``None`` means unset), the
    config file, ``ARTIMPORT_*`` environment variables, importer defaults, built-in
    defaults.
    """

    merged: dict[str, object] = {}
    for layer in (
        importer_defaults or {},
        read_prefixed_env(_ENV_FIELDS, environ=environ),
        read_config_file(config_file) if config_file is not None else {},
        {key: value for key, value in (overrides or {}).items() if value is not None},
    ):
        merged.update(layer)

    try:
        return ImportConfig(**_coerce(merged))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _coerce(values: Mapping[str, object]) -> dict[str, object]:
    converters: dict[str, type] = {**_ENV_FIELDS, "dry_run": bool}
    coerced: dict[str, object] = {}
    for key, value in values.items():
        kind = converters.get(key)
        if kind is None:
            raise ConfigurationError(f"Unknown configuration field: {key}")
        if kind is bool or isinstance(value, kind):
            coerced[key] = value
        elif kind is float and isinstance(value, int):
            coerced[key] = float(value)
        else:
            coerced[key] = kind(value)
    return coerced
