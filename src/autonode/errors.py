"""Exceptions raised by the auto-node engine."""

from __future__ import annotations


class AutoNodeError(Exception):
    """Base class for every auto-node failure."""


class ConfigurationError(AutoNodeError):
    """A rule or setting is invalid (for example an empty keyword)."""


class NotFoundError(AutoNodeError):
    """An operation referenced a path with no known document or record."""


class ConflictError(AutoNodeError):
    """The target path of a create or rename is already taken."""


class PersistenceError(AutoNodeError):
    """The settings store could not be read or written."""


class DocumentReadError(AutoNodeError):
    """A single note could not be read during a synchronization pass."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not read {path}: {reason}")
        self.path = path
        self.reason = reason


class DocumentWriteError(AutoNodeError):
    """A note could not be written back to the vault."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Could not write {path}: {reason}")
        self.path = path
        self.reason = reason
