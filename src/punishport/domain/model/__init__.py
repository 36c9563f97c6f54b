"""Domain model for imported punishments."""

from __future__ import annotations

from .entry import PunishmentEntry
from .enums import (
    EnforcementState,
    OperatorType,
    PunishmentType,
    ScopeKind,
    SourceFamily,
    VictimType,
)
from .primitives import (
    GLOBAL_SCOPE,
    EntryId,
    NativeId,
    NetworkAddress,
    Scope,
    ensure_utc,
    from_epoch_millis,
    parse_address,
)
from .provenance import ImportProvenance, canonical_payload, punishment_fingerprint
from .punishment import CONSOLE, KnownDetails, OperatorInfo, PortablePunishment, VictimInfo

__all__ = [
    "CONSOLE",
    "GLOBAL_SCOPE",
    "EnforcementState",
    "EntryId",
    "ImportProvenance",
    "KnownDetails",
    "NativeId",
    "NetworkAddress",
    "OperatorInfo",
    "OperatorType",
    "PortablePunishment",
    "PunishmentEntry",
    "PunishmentType",
    "Scope",
    "ScopeKind",
    "SourceFamily",
    "VictimInfo",
    "VictimType",
    "canonical_payload",
    "ensure_utc",
    "from_epoch_millis",
    "parse_address",
    "punishment_fingerprint",
]
