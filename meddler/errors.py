"""Error types that abort a conversion run."""

from __future__ import annotations


class MeddlerError(RuntimeError):
    """Base class for errors that abort a conversion run."""


class ConfigError(MeddlerError):
    """Raised when configuration values are missing or invalid."""


class ExportError(MeddlerError):
    """Raised when the input path is not a usable export."""


class OutputError(MeddlerError):
    """Raised when the output directory cannot be prepared."""
