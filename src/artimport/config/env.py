"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "ARTIMPORT_"


def read_prefixed_env(
    fields: Mapping[str, type[str] | type[int] | type[float]],
    *,
    environ: Mapping[str, str] | None = None,
) -> dict[str, object]:
    """Collect ``ARTIMPORT_<FIELD>`` variables for the given fields, converted to their type.

    Blank values are treated as unset.
    """

    source = os.environ if environ is None else environ
    values: dict[str, object] = {}
    for field_name, kind in fields.items():
        env_name = f"{ENV_PREFIX}{field_name.upper()}"
        raw = source.get(env_name)
        if raw is None or not raw.strip():
            continue
        try:
            values[field_name] = kind(raw.strip())
        except ValueError as exc:
            raise ConfigurationError(f"Invalid value for {env_name}: {raw!r}") from exc
    return values
