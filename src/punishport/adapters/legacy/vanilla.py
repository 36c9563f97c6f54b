"""Vanilla server ban lists: ``banned-players.json`` and ``banned-ips.json``.

Both files are JSON arrays written by the server itself. Entries are validated
one by one, so a single broken entry is skipped instead of failing the import.
A missing file means the server never banned anyone of that kind.
"""

from __future__ import annotations

import json
from datetime import datetime
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Final
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from punishport.domain.importing.errors import SourceReadError
from punishport.domain.model import (
    KnownDetails,
    OperatorInfo,
    PortablePunishment,
    PunishmentType,
    SourceFamily,
    VictimInfo,
    parse_address,
)
from punishport.domain.ports import SourceRecord

from .common import IdentityLookup, skipped

if TYPE_CHECKING:
    from collections.abc import Iterator

    from punishport.domain.model import NativeId
    from punishport.domain.ports import NameResolver, SourceItem

log = getLogger(__name__)

PLAYERS_FILE: Final = "banned-players.json"
IPS_FILE: Final = "banned-ips.json"
PLAYERS_KEY: Final = "banned-players"
IPS_KEY: Final = "banned-ips"
FOREVER: Final = "forever"
UNKNOWN_SOURCE: Final = "(Unknown)"
_TIMESTAMP_FORMAT: Final = "%Y-%m-%d %H:%M:%S %z"


def _parse_timestamp(value: object) -> object:
    if isinstance(value, str):
        return datetime.strptime(value.strip(), _TIMESTAMP_FORMAT)
    return value


class BanListEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    created: datetime
    source: str | None = None
    expires: datetime | None = None
    reason: str = ""

    @field_validator("created", mode="before")
    @classmethod
    def _parse_created(cls, value: object) -> object:
        return _parse_timestamp(value)

    @field_validator("expires", mode="before")
    @classmethod
    def _parse_expires(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and value.strip().lower() == FOREVER):
            return None
        return _parse_timestamp(value)

    @field_validator("reason", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class BannedPlayerEntry(BanListEntry):
    uuid: UUID | None = None
    name: str | None = None

    @field_validator("uuid", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class BannedIpEntry(BanListEntry):
    ip: str = Field(min_length=1)


class VanillaSource:
    family = SourceFamily.VANILLA

    def __init__(
        self,
        server_dir: str | Path,
        *,
        resolver: NameResolver | None = None,
        source_id: str | None = None,
    ) -> None:
        self.server_dir = Path(server_dir)
        self.source_id = source_id or str(self.family)
        self._identities = IdentityLookup(resolver, source_id=self.source_id)

    def records(self, *, resume_after: NativeId | None = None) -> Iterator[SourceItem]:
        items = self._all_items()
        if resume_after is None:
            yield from items
            return
        found = False
        for item in items:
            if found:
                yield item
            elif item.native_id == resume_after:
                found = True
        if not found:
            log.warning("%s never reached %s; nothing was resumed", self.source_id, resume_after)

    def _all_items(self) -> Iterator[SourceItem]:
        for index, raw in enumerate(self._load(PLAYERS_FILE)):
            try:
                entry = BannedPlayerEntry.model_validate(raw)
            except ValidationError as exc:
                yield skipped(f"{PLAYERS_KEY}:#{index}", exc)
                continue
            yield self._player_item(entry)
        for index, raw in enumerate(self._load(IPS_FILE)):
            try:
                entry = BannedIpEntry.model_validate(raw)
            except ValidationError as exc:
                yield skipped(f"{IPS_KEY}:#{index}", exc)
                continue
            yield self._ip_item(entry)

    def _player_item(self, entry: BannedPlayerEntry) -> SourceItem:
        if entry.uuid is None and not entry.name:
            return skipped(f"{PLAYERS_KEY}:?", ValueError("Entry names no player"))
        native_id = f"{PLAYERS_KEY}:{entry.uuid or entry.name}"
        try:
            victim = (
                VictimInfo.player(entry.uuid)
                if entry.uuid is not None
                else self._identities.victim(entry.name or "", native_id=native_id)
            )
            punishment = self._punishment(entry, victim, native_id=native_id)
        except ValueError as exc:
            return skipped(native_id, exc)
        return SourceRecord(native_id=native_id, punishment=punishment)

    def _ip_item(self, entry: BannedIpEntry) -> SourceItem:
        native_id = f"{IPS_KEY}:{entry.ip.strip()}"
        try:
            victim = VictimInfo.of_address(parse_address(entry.ip))
            punishment = self._punishment(entry, victim, native_id=native_id)
        except ValueError as exc:
            return skipped(native_id, exc)
        return SourceRecord(native_id=native_id, punishment=punishment)

    def _punishment(
        self, entry: BanListEntry, victim: VictimInfo, *, native_id: NativeId
    ) -> PortablePunishment:
        details = KnownDetails(
            type=PunishmentType.BAN,
            reason=entry.reason,
            start=entry.created,
            end=entry.expires,
        )
        if entry.source is not None and entry.source.strip() == UNKNOWN_SOURCE:
            operator = OperatorInfo.unknown()
        else:
            operator = self._identities.operator(entry.source, native_id=native_id)
        return PortablePunishment(details, victim, operator)

    def _load(self, filename: str) -> list[object]:
        path = self.server_dir / filename
        try:
            with path.open(encoding="utf-8") as handle:
                document = json.load(handle)
        except FileNotFoundError:
            log.info("%s has no %s; treating it as empty", self.server_dir, filename)
            return []
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SourceReadError(
                f"Cannot read {path}: {exc}", source_id=self.source_id
            ) from exc
        if not isinstance(document, list):
            raise SourceReadError(f"{path} is not a JSON array", source_id=self.source_id)
        return document
