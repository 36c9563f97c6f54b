"""Ports for the unified punishment store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from punishport.domain.model import (
        EntryId,
        NativeId,
        PortablePunishment,
        PunishmentEntry,
        PunishmentType,
        VictimInfo,
    )


@dataclass(frozen=True, slots=True)
class ProvenanceMatch:
    """An earlier import of a source record and the entry it produced."""

    entry: PunishmentEntry
    fingerprint: str


@runtime_checkable
class PunishmentStore(Protocol):
    """Persistence contract for punishments and their import provenance.

    All calls happen inside the caller's unit of work.
    """

    def lookup_provenance(self, source: str, native_id: NativeId) -> ProvenanceMatch | None: ...

    def find_candidates(
        self,
        source: str,
        victim: VictimInfo,
        punishment_type: PunishmentType,
    ) -> Sequence[PunishmentEntry]:
        """Entries imported from ``source`` for the same victim and type, latest first."""
        ...

    def insert(self, punishment: PortablePunishment) -> EntryId: ...

    def replace(self, entry_id: EntryId, punishment: PortablePunishment) -> None: ...

    def record_provenance(
        self,
        source: str,
        native_id: NativeId,
        entry_id: EntryId,
        fingerprint: str,
    ) -> None: ...

    def get(self, entry_id: EntryId) -> PunishmentEntry | None: ...

    def count(self) -> int: ...
