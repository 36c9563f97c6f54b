"""Per-source definitions of "the same punishment".

Legacy plugins disagree on when two rows describe one punishment. Each source
family maps to one policy variant below; the pipeline only ever calls
``UniquenessPolicy.resolve`` and never branches on the source itself.

Resolution order for a candidate record:
1. provenance: the same native record was imported before
2. a key collision with an entry already tracked by the current batch
3. a key collision with an entry imported earlier from the same source
4. otherwise the record is accepted as a new punishment

Collisions keep the punishment with the later start. On equal starts the
record seen later in the source's native order wins, which is always the
candidate because adapters yield records in native order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Hashable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Literal, Protocol

from punishport.domain.model import SourceFamily, punishment_fingerprint

if TYPE_CHECKING:
    from collections.abc import Sequence

    from punishport.domain.model import (
        NativeId,
        PortablePunishment,
        PunishmentEntry,
        PunishmentType,
        VictimInfo,
    )
    from punishport.domain.ports import ProvenanceMatch, SourceRecord

    from .batch import BatchPlan, TrackedEntry


type UniquenessKey = tuple[Hashable, ...]


class DestinationView(Protocol):
    """Read side of the punishment store used while resolving a batch."""

    def lookup_provenance(self, source: str, native_id: NativeId) -> ProvenanceMatch | None: ...

    def find_candidates(
        self,
        source: str,
        victim: VictimInfo,
        punishment_type: PunishmentType,
    ) -> Sequence[PunishmentEntry]: ...


class ResolutionKind(StrEnum):
    ACCEPT = "accept"
    REJECT_AS_DUPLICATE = "reject_as_duplicate"
    REPLACE_EXISTING = "replace_existing"


class ResolutionReason(StrEnum):
    NEW = "new"
    ALREADY_IMPORTED = "already_imported"
    SOURCE_RECORD_CHANGED = "source_record_changed"
    IDENTICAL = "identical"
    LATER_START = "later_start"
    SAME_START_LATER_IN_ORDER = "same_start_later_in_order"
    SUPERSEDED = "superseded"


@dataclass(frozen=True, slots=True, kw_only=True)
class Accept:
    reason: ResolutionReason = ResolutionReason.NEW
    kind: Literal[ResolutionKind.ACCEPT] = ResolutionKind.ACCEPT


@dataclass(frozen=True, slots=True, kw_only=True)
class RejectAsDuplicate:
    existing: TrackedEntry
    reason: ResolutionReason
    kind: Literal[ResolutionKind.REJECT_AS_DUPLICATE] = ResolutionKind.REJECT_AS_DUPLICATE


@dataclass(frozen=True, slots=True, kw_only=True)
class ReplaceExisting:
    existing: TrackedEntry
    reason: ResolutionReason
    kind: Literal[ResolutionKind.REPLACE_EXISTING] = ResolutionKind.REPLACE_EXISTING


type Resolution = Accept | RejectAsDuplicate | ReplaceExisting


class UniquenessPolicy(ABC):
    """Decide whether a candidate collides with a known punishment, and who wins."""

    name: str

    @abstractmethod
    def key(self, punishment: PortablePunishment) -> UniquenessKey:
        """Fields that identify one logical punishment under this policy."""

    def resolve(
        self,
        record: SourceRecord,
        *,
        batch: BatchPlan,
        destination: DestinationView,
    ) -> Resolution:
        punishment = record.punishment

        previous = batch.tracked_for_native_id(record.native_id)
        if previous is not None:
            return self.decide(punishment, previous)

        match = destination.lookup_provenance(batch.source_id, record.native_id)
        if match is not None:
            return self._resolve_reimport(punishment, match, batch=batch)

        key = self.key(punishment)
        existing = batch.tracked_for_key(key)
        if existing is None:
            existing = self._find_stored(punishment, key, batch=batch, destination=destination)
        if existing is None:
            return Accept()
        return self.decide(punishment, existing)

    def decide(self, candidate: PortablePunishment, existing: TrackedEntry) -> Resolution:
        """Settle a collision between ``candidate`` and an already known entry."""

        current = existing.punishment
        if candidate == current:
            return RejectAsDuplicate(existing=existing, reason=ResolutionReason.IDENTICAL)
        if candidate.start > current.start:
            return ReplaceExisting(existing=existing, reason=ResolutionReason.LATER_START)
        if candidate.start == current.start:
            return ReplaceExisting(
                existing=existing, reason=ResolutionReason.SAME_START_LATER_IN_ORDER
            )
        return RejectAsDuplicate(existing=existing, reason=ResolutionReason.SUPERSEDED)

    def _resolve_reimport(
        self,
        punishment: PortablePunishment,
        match: ProvenanceMatch,
        *,
        batch: BatchPlan,
    ) -> Resolution:
        existing = batch.track(match.entry)
        if match.fingerprint == punishment_fingerprint(punishment):
            return RejectAsDuplicate(existing=existing, reason=ResolutionReason.ALREADY_IMPORTED)
        if punishment.start >= existing.punishment.start:
            return ReplaceExisting(
                existing=existing, reason=ResolutionReason.SOURCE_RECORD_CHANGED
            )
        return RejectAsDuplicate(existing=existing, reason=ResolutionReason.SUPERSEDED)

    def _find_stored(
        self,
        punishment: PortablePunishment,
        key: UniquenessKey,
        *,
        batch: BatchPlan,
        destination: DestinationView,
    ) -> TrackedEntry | None:
        candidates = destination.find_candidates(
            batch.source_id, punishment.victim_info, punishment.type
        )
        for entry in candidates:
            if self.key(entry.punishment) != key:
                continue
            tracked = batch.track(entry)
            # The batch may already have rewritten this entry.
            if self.key(tracked.punishment) == key:
                return tracked
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class VictimOperatorTypePolicy(UniquenessPolicy):
    """AdvancedBan: one punishment per (victim, operator, type).

    Start time and reason do not take part, so a second ban of the same player by
    the same operator overwrites the first instead of adding another entry.
    """

    name = "victim_operator_type"

    def key(self, punishment: PortablePunishment) -> UniquenessKey:
        return (punishment.victim_info, punishment.operator_info, punishment.type)


class VictimTypePolicy(UniquenessPolicy):
    """One punishment per (victim, type), optionally allowing concurrent ones.

    With ``allow_concurrent`` the scope and start join the key, so punishments of
    the same type that started at different times, or apply to different servers,
    are kept side by side rather than merged.
    """

    def __init__(self, *, allow_concurrent: bool) -> None:
        self.allow_concurrent = allow_concurrent
        self.name = "victim_type_concurrent" if allow_concurrent else "victim_type"

    def key(self, punishment: PortablePunishment) -> UniquenessKey:
        if self.allow_concurrent:
            return (
                punishment.victim_info,
                punishment.type,
                punishment.known_details.scope,
                punishment.start,
            )
        return (punishment.victim_info, punishment.type)

    def __repr__(self) -> str:
        return f"VictimTypePolicy(allow_concurrent={self.allow_concurrent})"


_POLICIES: Final[dict[SourceFamily, UniquenessPolicy]] = {
    SourceFamily.ADVANCEDBAN: VictimOperatorTypePolicy(),
    SourceFamily.LITEBANS: VictimTypePolicy(allow_concurrent=True),
    SourceFamily.VANILLA: VictimTypePolicy(allow_concurrent=False),
}


def policy_for(family: SourceFamily) -> UniquenessPolicy:
    """Return the fixed uniqueness policy of a source family."""

    return _POLICIES[family]
