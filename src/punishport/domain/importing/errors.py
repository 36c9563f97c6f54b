"""Errors raised by the punishment import engine."""

from __future__ import annotations


class PunishmentImportError(RuntimeError):
    """Base class for import engine failures."""


class SourceReadError(PunishmentImportError):
    """The legacy source could not be read any further."""

    def __init__(self, message: str, *, source_id: str) -> None:
        super().__init__(message)
        self.source_id = source_id


class MalformedRecordError(PunishmentImportError):
    """A single legacy row cannot be translated into a punishment."""

    def __init__(self, message: str, *, native_id: str) -> None:
        super().__init__(message)
        self.native_id = native_id


class DestinationWriteError(PunishmentImportError):
    """A batch transaction against the punishment store failed."""


class InvalidJobTransitionError(PunishmentImportError):
    """An import job was asked to move between states it cannot connect."""
