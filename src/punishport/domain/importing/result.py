"""Job states and the summary an import job reports when it ends."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from .uniqueness import ResolutionKind

if TYPE_CHECKING:
    from collections.abc import Sequence

    from punishport.domain.model import NativeId
    from punishport.domain.ports import SourceRecord

    from .batch import BatchPlan


class JobState(StrEnum):
    IDLE = "idle"
    STREAMING = "streaming"
    COMMITTING = "committing"
    COMPLETED = "completed"
    FAILED = "failed"


class TerminalReason(StrEnum):
    SOURCE_EXHAUSTED = "source_exhausted"
    SOURCE_ERROR = "source_error"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class FailedRecord:
    """A record whose batch could not be written even after the retry."""

    native_id: NativeId
    error: str


@dataclass(slots=True)
class ImportCounters:
    """Running tallies kept by a job while it consumes batches."""

    accepted: int = 0
    replaced: int = 0
    rejected: int = 0
    failed: int = 0
    skipped: int = 0
    batches_committed: int = 0
    unresolved_identities: list[NativeId] = field(default_factory=list)
    failures: list[FailedRecord] = field(default_factory=list)
    last_native_id: NativeId | None = None

    def record_plan(self, plan: BatchPlan) -> None:
        for outcome in plan.outcomes:
            match outcome.resolution.kind:
                case ResolutionKind.ACCEPT:
                    self.accepted += 1
                case ResolutionKind.REPLACE_EXISTING:
                    self.replaced += 1
                case ResolutionKind.REJECT_AS_DUPLICATE:
                    self.rejected += 1
            if outcome.record.punishment.has_unresolved_identity:
                self.unresolved_identities.append(outcome.record.native_id)
        self.batches_committed += 1

    def record_failure(self, records: Sequence[SourceRecord], error: Exception) -> None:
        message = str(error) or type(error).__name__
        self.failures.extend(FailedRecord(record.native_id, message) for record in records)
        self.failed += len(records)

    def advance(self, native_id: NativeId) -> None:
        self.last_native_id = native_id


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Outcome of one import job.

    ``resume_after`` is the native id of the last record the job got through
    (committed, skipped, or permanently failed); pass it to a new job to continue
    an interrupted import.
    """

    source_id: str
    state: JobState
    reason: TerminalReason
    accepted: int
    replaced: int
    rejected: int
    failed: int
    skipped: int
    batches_committed: int
    unresolved_identities: tuple[NativeId, ...]
    failures: tuple[FailedRecord, ...]
    resume_after: NativeId | None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is JobState.COMPLETED

    @classmethod
    def from_counters(
        cls,
        counters: ImportCounters,
        *,
        source_id: str,
        state: JobState,
        reason: TerminalReason,
        error: str | None = None,
    ) -> ImportResult:
        return cls(
            source_id=source_id,
            state=state,
            reason=reason,
            accepted=counters.accepted,
            replaced=counters.replaced,
            rejected=counters.rejected,
            failed=counters.failed,
            skipped=counters.skipped,
            batches_committed=counters.batches_committed,
            unresolved_identities=tuple(counters.unresolved_identities),
            failures=tuple(counters.failures),
            resume_after=counters.last_native_id,
            error=error,
        )
