"""SQLAlchemy mapping metadata for stored punishments and import provenance."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from punishport.domain.model import (
    EnforcementState,
    ImportProvenance,
    OperatorType,
    PunishmentEntry,
    PunishmentType,
    ScopeKind,
    VictimType,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# One row per punishment, so a replacement is a single-row update.
punishment_table = Table(
    "punishment",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("type", Enum(PunishmentType, native_enum=False), nullable=False),
    Column("reason", Text, nullable=False, default=""),
    Column("scope_kind", Enum(ScopeKind, native_enum=False), nullable=False),
    Column("scope_value", String, nullable=True),
    Column("start", UTCDateTime(), nullable=False),
    Column("end", UTCDateTime(), nullable=True),
    Column("state", Enum(EnforcementState, native_enum=False), nullable=True),
    Column("victim_type", Enum(VictimType, native_enum=False), nullable=False),
    Column("victim_uuid", UUIDColumnType, nullable=True),
    Column("victim_address", String(64), nullable=True),
    Column("victim_name", String, nullable=True),
    Column("operator_type", Enum(OperatorType, native_enum=False), nullable=False),
    Column("operator_uuid", UUIDColumnType, nullable=True),
    Column("operator_name", String, nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_punishment_victim", "victim_type", "victim_uuid", "victim_address", "type"),
)

import_provenance_table = Table(
    "import_provenance",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("source", String, nullable=False),
    Column("native_id", String, nullable=False),
    Column(
        "entry_id",
        Integer,
        ForeignKey("punishment.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("fingerprint", String(64), nullable=False),
    Column("imported_at", UTCDateTime(), nullable=False),
    UniqueConstraint("source", "native_id", name="uq_import_provenance_native"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for stored punishments."""

    log.info("Starting SQLAlchemy mappers")
    mapper_registry.map_imperatively(PunishmentEntry, punishment_table)
    mapper_registry.map_imperatively(ImportProvenance, import_provenance_table)
    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
