"""In-memory punishment store and unit of work for engine tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from punishport.domain.importing import DestinationWriter
from punishport.domain.model import PunishmentEntry
from punishport.domain.ports import ImportRepositories, ProvenanceMatch

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from punishport.domain.model import (
        EntryId,
        NativeId,
        PortablePunishment,
        PunishmentType,
        VictimInfo,
    )


class StoreUnavailable(RuntimeError):
    """Stand-in for a database error raised by the store."""


@dataclass(slots=True)
class InMemoryPunishmentStore:
    punishments: dict[EntryId, PortablePunishment] = field(default_factory=dict)
    provenance: dict[tuple[str, NativeId], tuple[EntryId, str]] = field(default_factory=dict)
    next_id: int = 1
    writes: int = 0
    fail_when: Callable[[PortablePunishment], bool] | None = None

    def lookup_provenance(self, source: str, native_id: NativeId) -> ProvenanceMatch | None:
        link = self.provenance.get((source, native_id))
        if link is None:
            return None
        entry_id, fingerprint = link
        return ProvenanceMatch(entry=self._entry(entry_id), fingerprint=fingerprint)

    def find_candidates(
        self,
        source: str,
        victim: VictimInfo,
        punishment_type: PunishmentType,
    ) -> Sequence[PunishmentEntry]:
        linked = {
            entry_id for (link_source, _), (entry_id, _) in self.provenance.items()
            if link_source == source
        }
        matches = [
            self._entry(entry_id)
            for entry_id in linked
            if self.punishments[entry_id].victim_info == victim
            and self.punishments[entry_id].type is punishment_type
        ]
        return sorted(matches, key=lambda entry: (entry.start, entry.id), reverse=True)

    def insert(self, punishment: PortablePunishment) -> EntryId:
        self._check(punishment)
        entry_id = self.next_id
        self.next_id += 1
        self.punishments[entry_id] = punishment
        self.writes += 1
        return entry_id

    def replace(self, entry_id: EntryId, punishment: PortablePunishment) -> None:
        self._check(punishment)
        self.punishments[entry_id] = punishment
        self.writes += 1

    def record_provenance(
        self,
        source: str,
        native_id: NativeId,
        entry_id: EntryId,
        fingerprint: str,
    ) -> None:
        self.provenance[(source, native_id)] = (entry_id, fingerprint)
        self.writes += 1

    def get(self, entry_id: EntryId) -> PunishmentEntry | None:
        if entry_id not in self.punishments:
            return None
        return self._entry(entry_id)

    def count(self) -> int:
        return len(self.punishments)

    def all(self) -> list[PortablePunishment]:
        return [self.punishments[entry_id] for entry_id in sorted(self.punishments)]

    def _entry(self, entry_id: EntryId) -> PunishmentEntry:
        entry = PunishmentEntry.from_punishment(self.punishments[entry_id])
        entry.id = entry_id
        return entry

    def _check(self, punishment: PortablePunishment) -> None:
        if self.fail_when is not None and self.fail_when(punishment):
            raise StoreUnavailable(f"store rejected {punishment.known_details.reason!r}")


class InMemoryUnitOfWork:
    """Applies changes to the shared store only on commit."""

    def __init__(self, store: InMemoryPunishmentStore) -> None:
        self._store = store
        self.repositories = ImportRepositories(punishments=store)
        self._snapshot: tuple[dict, dict, int] | None = None
        self.committed = False

    def __enter__(self) -> InMemoryUnitOfWork:
        self._snapshot = (
            dict(self._store.punishments),
            dict(self._store.provenance),
            self._store.next_id,
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None or not self.committed:
            self.rollback()
        return False

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        assert self._snapshot is not None
        punishments, provenance, next_id = self._snapshot
        self._store.punishments = punishments
        self._store.provenance = provenance
        self._store.next_id = next_id


def make_writer(store: InMemoryPunishmentStore) -> DestinationWriter:
    return DestinationWriter(
        lambda: InMemoryUnitOfWork(store),
        failure_types=(StoreUnavailable,),
    )
