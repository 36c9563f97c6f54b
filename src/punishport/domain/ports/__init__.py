"""Domain port definitions for adapters."""

from __future__ import annotations

from .identity import IdentityResolutionError, NameResolver
from .persistence import ProvenanceMatch, PunishmentStore
from .sources import PunishmentSource, SkippedRecord, SourceItem, SourceRecord
from .unit_of_work import (
    ImportRepositories,
    ImportUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "IdentityResolutionError",
    "ImportRepositories",
    "ImportUnitOfWork",
    "NameResolver",
    "ProvenanceMatch",
    "PunishmentSource",
    "PunishmentStore",
    "RepositoryCollection",
    "SkippedRecord",
    "SourceItem",
    "SourceRecord",
    "UnitOfWork",
]
