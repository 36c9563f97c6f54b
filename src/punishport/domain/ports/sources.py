"""Ports for reading punishment history out of legacy plugins."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator

    from punishport.domain.model import NativeId, PortablePunishment, SourceFamily


@dataclass(frozen=True, slots=True)
class SourceRecord:
    """One punishment read from a legacy source, with its source-native identifier."""

    native_id: NativeId
    punishment: PortablePunishment


@dataclass(frozen=True, slots=True)
class SkippedRecord:
    """A malformed legacy row the adapter could not translate."""

    native_id: NativeId
    reason: str


type SourceItem = SourceRecord | SkippedRecord


@runtime_checkable
class PunishmentSource(Protocol):
    """Lazy, forward-only reader over one legacy plugin's persisted data.

    ``records`` yields items in the plugin's native order and raises
    ``SourceReadError`` when the underlying storage fails; the sequence then ends
    early. ``resume_after`` skips everything up to and including that native id.
    """

    @property
    def family(self) -> SourceFamily: ...

    @property
    def source_id(self) -> str: ...

    def records(self, *, resume_after: NativeId | None = None) -> Iterator[SourceItem]: ...


__all__ = ["PunishmentSource", "SkippedRecord", "SourceItem", "SourceRecord"]
