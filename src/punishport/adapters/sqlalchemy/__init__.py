"""SQLAlchemy adapter package for punishport."""

from __future__ import annotations

from .mappings import (
    create_all_tables,
    import_provenance_table,
    mapper_registry,
    punishment_table,
    start_mappers,
)
from .repositories import SqlAlchemyPunishmentStore
from .unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyImportUnitOfWork",
    "SqlAlchemyPunishmentStore",
    "StartupError",
    "create_all_tables",
    "import_provenance_table",
    "mapper_registry",
    "punishment_table",
    "shutdown",
    "start_mappers",
    "startup",
]
