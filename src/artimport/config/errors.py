"""Errors raised while resolving an import run's settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """An import setting, importer name or config file is unusable.

    Raised before any input file is read or any API call is made; the CLI maps it
    to exit code 2.
    """


class MissingConfigurationError(ConfigurationError):
    """A credential the requested operation needs (such as the admin token) is not set."""
