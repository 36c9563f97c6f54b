"""Import and reconciliation engine for legacy punishment sources."""

from __future__ import annotations

from .batch import BatchPlan, ProvenanceLink, RecordOutcome, TrackedEntry
from .errors import (
    DestinationWriteError,
    InvalidJobTransitionError,
    MalformedRecordError,
    PunishmentImportError,
    SourceReadError,
)
from .pipeline import ImportJob, run_import
from .result import FailedRecord, ImportCounters, ImportResult, JobState, TerminalReason
from .uniqueness import (
    Accept,
    DestinationView,
    RejectAsDuplicate,
    ReplaceExisting,
    Resolution,
    ResolutionKind,
    ResolutionReason,
    UniquenessKey,
    UniquenessPolicy,
    VictimOperatorTypePolicy,
    VictimTypePolicy,
    policy_for,
)
from .writer import DestinationWriter

__all__ = [
    "Accept",
    "BatchPlan",
    "DestinationView",
    "DestinationWriteError",
    "DestinationWriter",
    "FailedRecord",
    "ImportCounters",
    "ImportJob",
    "ImportResult",
    "InvalidJobTransitionError",
    "JobState",
    "MalformedRecordError",
    "ProvenanceLink",
    "PunishmentImportError",
    "RecordOutcome",
    "RejectAsDuplicate",
    "ReplaceExisting",
    "Resolution",
    "ResolutionKind",
    "ResolutionReason",
    "SourceReadError",
    "TerminalReason",
    "TrackedEntry",
    "UniquenessKey",
    "UniquenessPolicy",
    "VictimOperatorTypePolicy",
    "VictimTypePolicy",
    "policy_for",
    "run_import",
]
