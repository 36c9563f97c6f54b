"""In-memory plan of one batch: which entries to insert, replace, and link.

The plan is built while resolving records and written by the destination writer
afterwards. It indexes every entry the batch has touched by uniqueness key so
later records of the same batch collide with earlier ones before anything hits
the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from punishport.domain.model import punishment_fingerprint

from .uniqueness import (
    Accept,
    RejectAsDuplicate,
    ReplaceExisting,
    ResolutionReason,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from punishport.domain.model import EntryId, NativeId, PortablePunishment, PunishmentEntry
    from punishport.domain.ports import SourceRecord

    from .uniqueness import DestinationView, Resolution, UniquenessKey, UniquenessPolicy

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProvenanceLink:
    native_id: NativeId
    fingerprint: str


@dataclass(eq=False, slots=True)
class TrackedEntry:
    """An entry the batch will insert, replace, or merely reference."""

    punishment: PortablePunishment
    entry_id: EntryId | None = None
    dirty: bool = False
    links: list[ProvenanceLink] = field(default_factory=list)

    @property
    def is_new(self) -> bool:
        return self.entry_id is None


@dataclass(frozen=True, slots=True)
class RecordOutcome:
    record: SourceRecord
    resolution: Resolution


class BatchPlan:
    def __init__(
        self,
        source_id: str,
        policy: UniquenessPolicy,
        destination: DestinationView,
    ) -> None:
        self.source_id = source_id
        self.policy = policy
        self.destination = destination
        self.entries: list[TrackedEntry] = []
        self.outcomes: list[RecordOutcome] = []
        self._by_entry_id: dict[EntryId, TrackedEntry] = {}
        self._by_key: dict[UniquenessKey, TrackedEntry] = {}
        self._by_native_id: dict[NativeId, TrackedEntry] = {}

    def track(self, entry: PunishmentEntry) -> TrackedEntry:
        """Return the batch's view of a stored entry, registering it on first sight."""

        if entry.id is None:
            raise ValueError("Only stored entries can be tracked by id")
        tracked = self._by_entry_id.get(entry.id)
        if tracked is None:
            tracked = TrackedEntry(punishment=entry.punishment, entry_id=entry.id)
            self._by_entry_id[entry.id] = tracked
            self.entries.append(tracked)
            self._by_key.setdefault(self.policy.key(tracked.punishment), tracked)
        return tracked

    def tracked_for_key(self, key: UniquenessKey) -> TrackedEntry | None:
        tracked = self._by_key.get(key)
        if tracked is not None and self.policy.key(tracked.punishment) != key:
            return None
        return tracked

    def tracked_for_native_id(self, native_id: NativeId) -> TrackedEntry | None:
        return self._by_native_id.get(native_id)

    def add(self, record: SourceRecord) -> Resolution:
        """Resolve ``record`` against the batch and destination, and plan the result."""

        resolution = self.policy.resolve(record, batch=self, destination=self.destination)
        self._apply(record, resolution)
        self.outcomes.append(RecordOutcome(record=record, resolution=resolution))
        log.debug(
            "%s %s -> %s (%s)",
            self.source_id,
            record.native_id,
            resolution.kind,
            resolution.reason,
        )
        return resolution

    def extend(self, records: Iterable[SourceRecord]) -> None:
        for record in records:
            self.add(record)

    @property
    def new_entries(self) -> list[TrackedEntry]:
        return [tracked for tracked in self.entries if tracked.is_new]

    @property
    def dirty_entries(self) -> list[TrackedEntry]:
        return [tracked for tracked in self.entries if tracked.dirty and not tracked.is_new]

    def _apply(self, record: SourceRecord, resolution: Resolution) -> None:
        link = ProvenanceLink(
            native_id=record.native_id,
            fingerprint=punishment_fingerprint(record.punishment),
        )
        match resolution:
            case Accept():
                tracked = TrackedEntry(punishment=record.punishment, dirty=True)
                self.entries.append(tracked)
                self._by_key[self.policy.key(record.punishment)] = tracked
                self._link(tracked, link)
            case RejectAsDuplicate(existing=existing, reason=reason):
                # Nothing changed for a known record; no need to touch its link.
                if reason is not ResolutionReason.ALREADY_IMPORTED:
                    self._link(existing, link)
                else:
                    self._by_native_id[record.native_id] = existing
            case ReplaceExisting(existing=existing):
                existing.punishment = record.punishment
                existing.dirty = True
                self._by_key[self.policy.key(record.punishment)] = existing
                self._link(existing, link)

    def _link(self, tracked: TrackedEntry, link: ProvenanceLink) -> None:
        tracked.links = [
            existing for existing in tracked.links if existing.native_id != link.native_id
        ]
        tracked.links.append(link)
        self._by_native_id[link.native_id] = tracked


__all__ = ["BatchPlan", "ProvenanceLink", "RecordOutcome", "TrackedEntry"]
