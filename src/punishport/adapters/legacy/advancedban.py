"""AdvancedBan: the ``PunishmentHistory`` and ``Punishments`` tables.

AdvancedBan keeps every punishment ever issued in ``PunishmentHistory`` and the
ones still in force in ``Punishments``, so an active punishment usually appears
in both. History is read first; for an identical active row the uniqueness
policy then lets the active copy win.

Quirks of the format:
- ``uuid`` holds a dashless UUID, an IP address for IP punishments, or the
  lowercased player name on offline-mode servers
- ``operator`` is a player name or ``CONSOLE``
- ``start`` and ``end`` are epoch milliseconds, ``end = -1`` is permanent
- ``NOTE`` rows are staff notes, not punishments
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from sqlalchemy import BigInteger, Column, Integer, String, Table

from punishport.domain.importing.errors import MalformedRecordError
from punishport.domain.model import (
    EnforcementState,
    KnownDetails,
    PortablePunishment,
    PunishmentType,
    SourceFamily,
    VictimInfo,
    from_epoch_millis,
    parse_address,
)

from .common import TableSource, parse_uuid

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Row
    from sqlalchemy.engine import Engine

    from punishport.domain.model import NativeId
    from punishport.domain.ports import NameResolver

HISTORY_KEY: Final = "history"
ACTIVE_KEY: Final = "active"
PERMANENT_END: Final = -1

_TYPES: Final[dict[str, tuple[PunishmentType, bool]]] = {
    # AdvancedBan type -> (punishment type, targets an address)
    "BAN": (PunishmentType.BAN, False),
    "TEMP_BAN": (PunishmentType.BAN, False),
    "IP_BAN": (PunishmentType.BAN, True),
    "TEMP_IP_BAN": (PunishmentType.BAN, True),
    "MUTE": (PunishmentType.MUTE, False),
    "TEMP_MUTE": (PunishmentType.MUTE, False),
    "WARNING": (PunishmentType.WARN, False),
    "TEMP_WARNING": (PunishmentType.WARN, False),
    "KICK": (PunishmentType.KICK, False),
}
NOTE_TYPE: Final = "NOTE"


def _punishment_table(name: str, source: AdvancedBanSource) -> Table:
    return Table(
        name,
        source.metadata,
        Column("id", Integer, primary_key=True),
        Column("name", String(16)),
        Column("uuid", String(35)),
        Column("reason", String(100)),
        Column("operator", String(16)),
        Column("punishmentType", String(16)),
        Column("start", BigInteger),
        Column("end", BigInteger),
        Column("calculation", String(50)),
    )


class AdvancedBanSource(TableSource):
    family = SourceFamily.ADVANCEDBAN

    def __init__(
        self,
        location: str | Engine,
        *,
        resolver: NameResolver | None = None,
        source_id: str | None = None,
    ) -> None:
        super().__init__(location, resolver=resolver, source_id=source_id)
        self._tables = (
            (HISTORY_KEY, _punishment_table("PunishmentHistory", self)),
            (ACTIVE_KEY, _punishment_table("Punishments", self)),
        )

    def tables(self) -> Sequence[tuple[str, Table]]:
        return self._tables

    def translate(
        self, key: str, row: Row[tuple[object, ...]], *, native_id: NativeId
    ) -> PortablePunishment | None:
        raw_type = (row.punishmentType or "").upper()
        if raw_type == NOTE_TYPE:
            return None
        if raw_type not in _TYPES:
            raise MalformedRecordError(
                f"Unknown punishment type {row.punishmentType!r}", native_id=native_id
            )
        punishment_type, targets_address = _TYPES[raw_type]
        if row.start is None:
            raise MalformedRecordError("Missing start time", native_id=native_id)

        details = KnownDetails(
            type=punishment_type,
            reason=row.reason or "",
            start=from_epoch_millis(row.start),
            end=(
                None
                if row.end is None or row.end == PERMANENT_END
                else from_epoch_millis(row.end)
            ),
            # History rows do not say whether a punishment has since lapsed.
            state=EnforcementState.ACTIVE if key == ACTIVE_KEY else None,
        )
        victim = self._victim(row, targets_address=targets_address, native_id=native_id)
        operator = self._identities.operator(row.operator, native_id=native_id)
        return PortablePunishment(details, victim, operator)

    def _victim(
        self, row: Row[tuple[object, ...]], *, targets_address: bool, native_id: NativeId
    ) -> VictimInfo:
        raw = (row.uuid or "").strip()
        if not raw:
            raise MalformedRecordError("Missing victim", native_id=native_id)
        if targets_address:
            return VictimInfo.of_address(parse_address(raw))
        uuid = parse_uuid(raw)
        if uuid is not None:
            return VictimInfo.player(uuid)
        return self._identities.victim(row.name or raw, native_id=native_id)
