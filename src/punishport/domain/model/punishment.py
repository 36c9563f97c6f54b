"""The portable punishment: a source-agnostic record of one punishment.

Every legacy format is translated into ``PortablePunishment`` before it reaches
the import engine. The three parts are frozen value objects, so two records
compare (and hash) equal exactly when all of their fields do.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

from punishport.domain.model.enums import (
    EnforcementState,
    OperatorType,
    PunishmentType,
    VictimType,
)
from punishport.domain.model.primitives import GLOBAL_SCOPE, NetworkAddress, Scope, ensure_utc

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class KnownDetails:
    type: PunishmentType
    reason: str
    start: datetime
    end: datetime | None = None
    scope: Scope = GLOBAL_SCOPE
    state: EnforcementState | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        if self.type is PunishmentType.KICK:
            # Kicks are instantaneous.
            object.__setattr__(self, "end", None)
        elif self.end is not None:
            end = ensure_utc(self.end)
            if end < self.start:
                raise ValueError(f"Punishment ends ({end}) before it starts ({self.start})")
            object.__setattr__(self, "end", end)

    @property
    def is_permanent(self) -> bool:
        return self.end is None and self.type is not PunishmentType.KICK


@dataclass(frozen=True, slots=True, kw_only=True)
class VictimInfo:
    type: VictimType
    uuid: UUID | None = None
    address: NetworkAddress | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        needs_uuid = self.type in {VictimType.PLAYER, VictimType.COMPOSITE}
        needs_address = self.type in {VictimType.ADDRESS, VictimType.COMPOSITE}
        if needs_uuid != (self.uuid is not None):
            raise ValueError(f"{self.type} victim uuid mismatch: {self.uuid!r}")
        if needs_address != (self.address is not None):
            raise ValueError(f"{self.type} victim address mismatch: {self.address!r}")
        if (self.type is VictimType.UNRESOLVED) != bool(self.name):
            raise ValueError("Only unresolved victims carry a name, and they must")

    @classmethod
    def player(cls, uuid: UUID) -> VictimInfo:
        return cls(type=VictimType.PLAYER, uuid=uuid)

    @classmethod
    def of_address(cls, address: NetworkAddress) -> VictimInfo:
        return cls(type=VictimType.ADDRESS, address=address)

    @classmethod
    def composite(cls, uuid: UUID, address: NetworkAddress) -> VictimInfo:
        return cls(type=VictimType.COMPOSITE, uuid=uuid, address=address)

    @classmethod
    def unresolved(cls, name: str) -> VictimInfo:
        return cls(type=VictimType.UNRESOLVED, name=name)


@dataclass(frozen=True, slots=True, kw_only=True)
class OperatorInfo:
    type: OperatorType
    uuid: UUID | None = None
    # Kept for UNKNOWN operators whose name could not be resolved.
    name: str | None = None

    def __post_init__(self) -> None:
        if (self.type is OperatorType.PLAYER) != (self.uuid is not None):
            raise ValueError(f"{self.type} operator uuid mismatch: {self.uuid!r}")
        if self.name is not None and self.type is not OperatorType.UNKNOWN:
            raise ValueError("Only unknown operators carry a name")

    @classmethod
    def player(cls, uuid: UUID) -> OperatorInfo:
        return cls(type=OperatorType.PLAYER, uuid=uuid)

    @classmethod
    def unknown(cls, name: str | None = None) -> OperatorInfo:
        return cls(type=OperatorType.UNKNOWN, name=name or None)

    @property
    def is_unresolved(self) -> bool:
        return self.type is OperatorType.UNKNOWN and self.name is not None


CONSOLE = OperatorInfo(type=OperatorType.CONSOLE)


@dataclass(frozen=True, slots=True)
class PortablePunishment:
    known_details: KnownDetails
    victim_info: VictimInfo
    operator_info: OperatorInfo

    @property
    def type(self) -> PunishmentType:
        return self.known_details.type

    @property
    def start(self) -> datetime:
        return self.known_details.start

    @property
    def has_unresolved_identity(self) -> bool:
        return self.victim_info.type is VictimType.UNRESOLVED or self.operator_info.is_unresolved
