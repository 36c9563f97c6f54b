"""Punishments as stored in the unified store.

``PunishmentEntry`` is the persisted counterpart of ``PortablePunishment``: one
flat row per punishment with a stable id. Replacing an entry rewrites all of its
detail columns at once, so readers see either the old or the new punishment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from punishport.domain.model.enums import (
    EnforcementState,
    OperatorType,
    PunishmentType,
    ScopeKind,
    VictimType,
)
from punishport.domain.model.primitives import Scope, parse_address
from punishport.domain.model.punishment import (
    KnownDetails,
    OperatorInfo,
    PortablePunishment,
    VictimInfo,
)

if TYPE_CHECKING:
    from uuid import UUID


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(eq=False, kw_only=True)
class PunishmentEntry:
    id: int | None = None
    type: PunishmentType
    reason: str
    scope_kind: ScopeKind = ScopeKind.GLOBAL
    scope_value: str | None = None
    start: datetime
    end: datetime | None = None
    state: EnforcementState | None = None
    victim_type: VictimType
    victim_uuid: UUID | None = None
    victim_address: str | None = None
    victim_name: str | None = None
    operator_type: OperatorType
    operator_uuid: UUID | None = None
    operator_name: str | None = None
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_punishment(cls, punishment: PortablePunishment) -> PunishmentEntry:
        entry = cls(
            type=punishment.type,
            reason=punishment.known_details.reason,
            start=punishment.start,
            victim_type=punishment.victim_info.type,
            operator_type=punishment.operator_info.type,
        )
        entry.overwrite(punishment)
        return entry

    def overwrite(self, punishment: PortablePunishment) -> None:
        """Replace every detail of this entry, keeping its id."""

        details = punishment.known_details
        victim = punishment.victim_info
        operator = punishment.operator_info
        self.type = details.type
        self.reason = details.reason
        self.scope_kind = details.scope.kind
        self.scope_value = details.scope.value
        self.start = details.start
        self.end = details.end
        self.state = details.state
        self.victim_type = victim.type
        self.victim_uuid = victim.uuid
        self.victim_address = str(victim.address) if victim.address is not None else None
        self.victim_name = victim.name
        self.operator_type = operator.type
        self.operator_uuid = operator.uuid
        self.operator_name = operator.name
        self.updated_at = _utcnow()

    @property
    def punishment(self) -> PortablePunishment:
        return PortablePunishment(
            KnownDetails(
                type=self.type,
                reason=self.reason,
                start=self.start,
                end=self.end,
                scope=Scope(kind=self.scope_kind, value=self.scope_value),
                state=self.state,
            ),
            VictimInfo(
                type=self.victim_type,
                uuid=self.victim_uuid,
                address=(
                    parse_address(self.victim_address) if self.victim_address is not None else None
                ),
                name=self.victim_name,
            ),
            OperatorInfo(
                type=self.operator_type,
                uuid=self.operator_uuid,
                name=self.operator_name,
            ),
        )
