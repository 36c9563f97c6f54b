"""Shared plumbing for legacy punishment sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import MetaData, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from punishport.domain.importing.errors import MalformedRecordError, SourceReadError
from punishport.domain.model import CONSOLE, OperatorInfo, VictimInfo
from punishport.domain.ports import IdentityResolutionError, SkippedRecord, SourceRecord

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from sqlalchemy import Row, Table

    from punishport.domain.model import NativeId, PortablePunishment, SourceFamily
    from punishport.domain.ports import NameResolver, SourceItem

log = getLogger(__name__)

_CONSOLE_NAMES = frozenset({"console", "server", "rcon"})
_ROWS_PER_FETCH = 500


def parse_uuid(value: str | None) -> UUID | None:
    """Parse a dashed or dashless UUID, returning ``None`` for anything else."""

    if not value:
        return None
    try:
        return UUID(value.strip())
    except ValueError:
        return None


def is_console_name(name: str | None) -> bool:
    return name is None or not name.strip() or name.strip().lower() in _CONSOLE_NAMES


def legacy_engine(location: str | Engine) -> Engine:
    if isinstance(location, Engine):
        return location
    return create_engine(location, future=True)


def skipped(native_id: NativeId, exc: Exception) -> SkippedRecord:
    return SkippedRecord(native_id=native_id, reason=str(exc) or type(exc).__name__)


class IdentityLookup:
    """Turn player names into identities, degrading to placeholders.

    A failed or empty lookup never aborts an import: the victim becomes an
    unresolved placeholder, the operator an unknown one that keeps the name, and
    a warning is logged for the affected record.
    """

    def __init__(self, resolver: NameResolver | None, *, source_id: str) -> None:
        self._resolver = resolver
        self._source_id = source_id

    def victim(self, name: str, *, native_id: NativeId) -> VictimInfo:
        uuid = self._resolve(name, native_id=native_id)
        if uuid is None:
            log.warning(
                "Victim %r of %s from %s could not be resolved; importing as unresolved",
                name,
                native_id,
                self._source_id,
            )
            return VictimInfo.unresolved(name)
        return VictimInfo.player(uuid)

    def operator(self, name: str | None, *, native_id: NativeId) -> OperatorInfo:
        if is_console_name(name):
            return CONSOLE
        assert name is not None
        uuid = self._resolve(name, native_id=native_id)
        if uuid is None:
            log.warning(
                "Operator %r of %s from %s could not be resolved; importing as unknown",
                name,
                native_id,
                self._source_id,
            )
            return OperatorInfo.unknown(name)
        return OperatorInfo.player(uuid)

    def _resolve(self, name: str, *, native_id: NativeId) -> UUID | None:
        if self._resolver is None:
            return None
        try:
            return self._resolver(name)
        except IdentityResolutionError as exc:
            log.debug("Resolving %r for %s failed: %s", name, native_id, exc)
            return None


@dataclass(frozen=True, slots=True)
class ResumePoint:
    """Position after ``row_id`` of ``table`` in a table-by-table source."""

    table: str
    row_id: int

    @classmethod
    def parse(cls, native_id: NativeId) -> ResumePoint:
        table, _, raw_id = native_id.rpartition(":")
        try:
            return cls(table=table, row_id=int(raw_id))
        except ValueError as exc:
            raise ValueError(f"Cannot resume after {native_id!r}: not a row id") from exc


class TableSource(ABC):
    """Source reading several tables of a legacy database, each in id order.

    Native ids are ``<table key>:<row id>``. Rows that cannot be translated are
    yielded as ``SkippedRecord``; database failures end the stream with
    ``SourceReadError``.
    """

    family: SourceFamily

    def __init__(
        self,
        location: str | Engine,
        *,
        resolver: NameResolver | None = None,
        source_id: str | None = None,
    ) -> None:
        self.source_id = source_id or str(self.family)
        self._location = location
        self._identities = IdentityLookup(resolver, source_id=self.source_id)
        self.metadata = MetaData()

    @abstractmethod
    def tables(self) -> Sequence[tuple[str, Table]]:
        """Tables to read as ``(key, table)`` pairs, in native order."""

    @abstractmethod
    def translate(
        self, key: str, row: Row[tuple[object, ...]], *, native_id: NativeId
    ) -> PortablePunishment | None:
        """Translate one row; ``None`` means the row is deliberately not imported."""

    def records(self, *, resume_after: NativeId | None = None) -> Iterator[SourceItem]:
        resume = ResumePoint.parse(resume_after) if resume_after is not None else None
        tables = self.tables()
        keys = [key for key, _ in tables]
        if resume is not None and resume.table not in keys:
            raise ValueError(f"Cannot resume after {resume_after!r}: unknown table")

        engine = legacy_engine(self._location)
        try:
            with engine.connect() as connection:
                for index, (key, table) in enumerate(tables):
                    stmt = select(table).order_by(table.c.id)
                    if resume is not None:
                        resume_index = keys.index(resume.table)
                        if index < resume_index:
                            continue
                        if index == resume_index:
                            stmt = stmt.where(table.c.id > resume.row_id)
                    log.debug("Reading %s from %s", table.name, self.source_id)
                    result = connection.execution_options(yield_per=_ROWS_PER_FETCH).execute(stmt)
                    for row in result:
                        yield self._item(key, row)
        except SQLAlchemyError as exc:
            raise SourceReadError(
                f"Reading {self.source_id} failed: {exc}", source_id=self.source_id
            ) from exc
        finally:
            if engine is not self._location:
                engine.dispose()

    def _item(self, key: str, row: Row[tuple[object, ...]]) -> SourceItem:
        native_id = f"{key}:{row.id}"
        try:
            punishment = self.translate(key, row, native_id=native_id)
        except (MalformedRecordError, ValueError) as exc:
            return skipped(native_id, exc)
        if punishment is None:
            return SkippedRecord(native_id=native_id, reason="not a punishment")
        return SourceRecord(native_id=native_id, punishment=punishment)
