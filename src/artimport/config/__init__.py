"""Application configuration helpers."""

from __future__ import annotations

from .api import HEALTH_TIMEOUT_SECONDS, ApiConfig, get_api_config
from .env import read_prefixed_env
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .importing import (
    DEFAULT_IMPORT_TOKEN,
    ImportConfig,
    load_import_config,
    read_config_file,
)
from .logging import configure_logging

__all__ = [
    "DEFAULT_IMPORT_TOKEN",
    "HEALTH_TIMEOUT_SECONDS",
    "ApiConfig",
    "ConfigurationError",
    "ImportConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_api_config",
    "load_import_config",
    "read_config_file",
    "read_prefixed_env",
]
