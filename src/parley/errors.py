"""Exception types shared across parley packages."""

from __future__ import annotations


class ParleyError(Exception):
    """Base class for errors raised by parley."""


class ConfigError(ParleyError):
    """Configuration could not be loaded or is invalid."""


class BackendError(ParleyError):
    """A generation backend reported a failure."""


class ClipboardError(ParleyError):
    """The system clipboard could not be read or written."""


class ArchiveError(ParleyError):
    """A chat transcript could not be written to disk."""
