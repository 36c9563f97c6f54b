"""LiteBans: the ``bans``, ``mutes``, ``warnings`` and ``kicks`` tables.

Each row is its own punishment; LiteBans allows several punishments of one type
against a player at the same time, on different servers or from different
moments. ``time`` and ``until`` are epoch milliseconds and ``until <= 0`` means
permanent. A ``uuid`` of ``#offline#`` marks a player LiteBans never saw online,
in which case only the address identifies the victim.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

from sqlalchemy import BigInteger, Boolean, Column, Integer, String, Table

from punishport.config.sources import DEFAULT_LITEBANS_TABLE_PREFIX
from punishport.domain.importing.errors import MalformedRecordError
from punishport.domain.model import (
    CONSOLE,
    GLOBAL_SCOPE,
    EnforcementState,
    KnownDetails,
    OperatorInfo,
    PortablePunishment,
    PunishmentType,
    Scope,
    SourceFamily,
    VictimInfo,
    from_epoch_millis,
    parse_address,
)

from .common import TableSource, is_console_name, parse_uuid

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Row
    from sqlalchemy.engine import Engine

    from punishport.domain.model import NativeId
    from punishport.domain.ports import NameResolver

OFFLINE_UUID: Final = "#offline#"
_GLOBAL_SCOPES: Final = frozenset({"", "*", "global"})
_TABLE_TYPES: Final[tuple[tuple[str, PunishmentType], ...]] = (
    ("bans", PunishmentType.BAN),
    ("mutes", PunishmentType.MUTE),
    ("warnings", PunishmentType.WARN),
    ("kicks", PunishmentType.KICK),
)


def _table(name: str, source: LiteBansSource, *, removable: bool) -> Table:
    columns = [
        Column("id", Integer, primary_key=True),
        Column("uuid", String(36)),
        Column("ip", String(45)),
        Column("reason", String(2048)),
        Column("banned_by_uuid", String(36)),
        Column("banned_by_name", String(128)),
        Column("time", BigInteger),
        Column("until", BigInteger),
        Column("server_scope", String(32)),
        Column("ipban", Boolean),
        Column("active", Boolean),
    ]
    if removable:
        columns.append(Column("removed_by_name", String(128)))
    return Table(name, source.metadata, *columns)


def scope_of(server_scope: str | None) -> Scope:
    if server_scope is None or server_scope.strip().lower() in _GLOBAL_SCOPES:
        return GLOBAL_SCOPE
    return Scope.server(server_scope.strip())


class LiteBansSource(TableSource):
    family = SourceFamily.LITEBANS

    def __init__(
        self,
        location: str | Engine,
        *,
        resolver: NameResolver | None = None,
        source_id: str | None = None,
        table_prefix: str = DEFAULT_LITEBANS_TABLE_PREFIX,
    ) -> None:
        super().__init__(location, resolver=resolver, source_id=source_id)
        self._types: dict[str, PunishmentType] = dict(_TABLE_TYPES)
        self._tables = tuple(
            (
                key,
                _table(
                    f"{table_prefix}{key}",
                    self,
                    removable=punishment_type is not PunishmentType.KICK,
                ),
            )
            for key, punishment_type in _TABLE_TYPES
        )

    def tables(self) -> Sequence[tuple[str, Table]]:
        return self._tables

    def translate(
        self, key: str, row: Row[tuple[object, ...]], *, native_id: NativeId
    ) -> PortablePunishment | None:
        punishment_type = self._types[key]
        if row.time is None:
            raise MalformedRecordError("Missing time", native_id=native_id)
        until = row.until
        details = KnownDetails(
            type=punishment_type,
            reason=row.reason or "",
            start=from_epoch_millis(row.time),
            end=None if until is None or until <= 0 else from_epoch_millis(until),
            scope=scope_of(row.server_scope),
            state=self._state(row, punishment_type),
        )
        victim = self._victim(row, native_id=native_id)
        operator = self._operator(row, native_id=native_id)
        return PortablePunishment(details, victim, operator)

    @staticmethod
    def _state(
        row: Row[tuple[object, ...]], punishment_type: PunishmentType
    ) -> EnforcementState | None:
        if punishment_type is PunishmentType.KICK:
            return None
        if row.active:
            return EnforcementState.ACTIVE
        if row.removed_by_name:
            return EnforcementState.UNDONE
        return EnforcementState.EXPIRED

    @staticmethod
    def _victim(row: Row[tuple[object, ...]], *, native_id: NativeId) -> VictimInfo:
        uuid = None if row.uuid == OFFLINE_UUID else parse_uuid(row.uuid)
        if uuid is not None and not row.ipban:
            return VictimInfo.player(uuid)
        if not row.ip or row.ip == "#":
            raise MalformedRecordError("Neither a player nor an address", native_id=native_id)
        address = parse_address(row.ip)
        if uuid is not None:
            return VictimInfo.composite(uuid, address)
        return VictimInfo.of_address(address)

    def _operator(self, row: Row[tuple[object, ...]], *, native_id: NativeId) -> OperatorInfo:
        raw_uuid = row.banned_by_uuid
        if raw_uuid is not None and raw_uuid.strip().upper() == "CONSOLE":
            return CONSOLE
        uuid = parse_uuid(raw_uuid)
        if uuid is not None:
            return OperatorInfo.player(uuid)
        if is_console_name(row.banned_by_name):
            return CONSOLE
        return self._identities.operator(row.banned_by_name, native_id=native_id)
