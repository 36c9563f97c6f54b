"""Punishment store backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select, update

from punishport.adapters.sqlalchemy.mappings import import_provenance_table, punishment_table
from punishport.domain.importing.errors import DestinationWriteError
from punishport.domain.model import ImportProvenance, PunishmentEntry
from punishport.domain.ports import ProvenanceMatch

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Column, ColumnElement
    from sqlalchemy.orm import Session

    from punishport.domain.model import (
        EntryId,
        NativeId,
        PortablePunishment,
        PunishmentType,
        VictimInfo,
    )

_DETAIL_COLUMNS = tuple(
    column.name for column in punishment_table.columns if column.name != "id"
)


def _matches(column: Column[Any], value: object) -> ColumnElement[bool]:
    return column.is_(None) if value is None else column == value


def _detail_values(punishment: PortablePunishment) -> dict[str, object]:
    entry = PunishmentEntry.from_punishment(punishment)
    return {name: getattr(entry, name) for name in _DETAIL_COLUMNS}


class SqlAlchemyPunishmentStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def lookup_provenance(self, source: str, native_id: NativeId) -> ProvenanceMatch | None:
        provenance = self._provenance(source, native_id)
        if provenance is None:
            return None
        entry = self.session.get(PunishmentEntry, provenance.entry_id)
        if entry is None:
            return None
        return ProvenanceMatch(entry=entry, fingerprint=provenance.fingerprint)

    def find_candidates(
        self,
        source: str,
        victim: VictimInfo,
        punishment_type: PunishmentType,
    ) -> Sequence[PunishmentEntry]:
        address = str(victim.address) if victim.address is not None else None
        imported_from_source = select(import_provenance_table.c.entry_id).where(
            import_provenance_table.c.source == source
        )
        stmt = (
            select(PunishmentEntry)
            .where(punishment_table.c.id.in_(imported_from_source))
            .where(punishment_table.c.type == punishment_type)
            .where(punishment_table.c.victim_type == victim.type)
            .where(_matches(punishment_table.c.victim_uuid, victim.uuid))
            .where(_matches(punishment_table.c.victim_address, address))
            .where(_matches(punishment_table.c.victim_name, victim.name))
            .order_by(punishment_table.c.start.desc(), punishment_table.c.id.desc())
        )
        return self.session.execute(stmt).scalars().all()

    def insert(self, punishment: PortablePunishment) -> EntryId:
        entry = PunishmentEntry.from_punishment(punishment)
        self.session.add(entry)
        self.session.flush()
        assert entry.id is not None
        return entry.id

    def replace(self, entry_id: EntryId, punishment: PortablePunishment) -> None:
        stmt = (
            update(PunishmentEntry)
            .where(punishment_table.c.id == entry_id)
            .values(**_detail_values(punishment))
        )
        result = self.session.execute(stmt)
        if result.rowcount != 1:
            raise DestinationWriteError(f"No punishment entry with id {entry_id}")

    def record_provenance(
        self,
        source: str,
        native_id: NativeId,
        entry_id: EntryId,
        fingerprint: str,
    ) -> None:
        provenance = self._provenance(source, native_id)
        if provenance is None:
            self.session.add(
                ImportProvenance(
                    source=source,
                    native_id=native_id,
                    entry_id=entry_id,
                    fingerprint=fingerprint,
                )
            )
            return
        provenance.entry_id = entry_id
        provenance.fingerprint = fingerprint
        provenance.imported_at = datetime.now(UTC)

    def get(self, entry_id: EntryId) -> PunishmentEntry | None:
        return self.session.get(PunishmentEntry, entry_id)

    def count(self) -> int:
        stmt = select(func.count()).select_from(punishment_table)
        return self.session.execute(stmt).scalar_one()

    def _provenance(self, source: str, native_id: NativeId) -> ImportProvenance | None:
        stmt = (
            select(ImportProvenance)
            .where(import_provenance_table.c.source == source)
            .where(import_provenance_table.c.native_id == native_id)
        )
        return self.session.execute(stmt).scalar_one_or_none()

