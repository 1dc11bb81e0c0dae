"""Error taxonomy shared by every layer."""

from __future__ import annotations


class StrataError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(StrataError):
    """Static configuration is wrong (e.g. unknown domain id). Never retried."""


class NotFoundError(StrataError):
    """A write-style call targeted an entity or session that does not exist."""


class ValidationError(StrataError):
    """Caller-supplied data was rejected before any mutation took place."""


class ConflictError(StrataError):
    """``create()`` hit an existing entity while overwrites are disabled."""


class StorageError(StrataError):
    """A stored block could not be decoded. Never treated as missing."""
