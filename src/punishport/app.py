"""Application orchestration entry points."""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy.exc import SQLAlchemyError

from punishport.adapters.identity import OfflineNameResolver
from punishport.adapters.legacy import build_source
from punishport.adapters.mojang import MojangNameResolver
from punishport.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    is_started,
    startup,
)
from punishport.config import get_import_config, get_legacy_source_config
from punishport.domain.importing import DestinationWriter, ImportJob, run_import
from punishport.domain.ports import ImportUnitOfWork

if TYPE_CHECKING:
    from punishport.config import ImportConfig
    from punishport.domain.importing import ImportResult
    from punishport.domain.model import NativeId, SourceFamily
    from punishport.domain.ports import NameResolver, PunishmentSource

UnitOfWorkFactory = Callable[[], ImportUnitOfWork]

log = getLogger(__name__)

# Every job of this process writes through this lock.
_STORE_WRITE_LOCK = threading.Lock()


def build_resolver(*, offline_mode: bool = False) -> NameResolver:
    if offline_mode:
        return OfflineNameResolver()
    return MojangNameResolver()


def build_writer(unit_of_work_factory: UnitOfWorkFactory | None = None) -> DestinationWriter:
    return DestinationWriter(
        unit_of_work_factory or SqlAlchemyImportUnitOfWork,
        lock=_STORE_WRITE_LOCK,
        failure_types=(SQLAlchemyError,),
    )


def create_import_job(
    family: SourceFamily,
    *,
    location: str | None = None,
    source: PunishmentSource | None = None,
    resolver: NameResolver | None = None,
    offline_mode: bool = False,
    source_id: str | None = None,
    table_prefix: str | None = None,
    config: ImportConfig | None = None,
    resume_after: NativeId | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImportJob:
    """Assemble an import job for one legacy source."""

    if source is None:
        source_config = get_legacy_source_config(location=location)
        if table_prefix is not None:
            source_config = replace(source_config, litebans_table_prefix=table_prefix)
        source = build_source(
            family,
            source_config,
            resolver=resolver or build_resolver(offline_mode=offline_mode),
            source_id=source_id,
        )
    return ImportJob(
        source=source,
        writer=build_writer(unit_of_work_factory),
        config=config or get_import_config(),
        resume_after=resume_after,
    )


def import_punishments(
    family: SourceFamily,
    *,
    location: str | None = None,
    source: PunishmentSource | None = None,
    resolver: NameResolver | None = None,
    offline_mode: bool = False,
    source_id: str | None = None,
    table_prefix: str | None = None,
    batch_size: int | None = None,
    resume_after: NativeId | None = None,
    database_uri: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    on_job: Callable[[ImportJob], None] | None = None,
) -> ImportResult:
    """Import one legacy source into the punishment store using the configured adapters.

    ``on_job`` sees the job before it starts, so callers can hold on to it and
    cancel it later.
    """

    if unit_of_work_factory is None and not is_started():
        startup(database_uri=database_uri)

    config = get_import_config().with_overrides(batch_size=batch_size)
    job = create_import_job(
        family,
        location=location,
        source=source,
        resolver=resolver,
        offline_mode=offline_mode,
        source_id=source_id,
        table_prefix=table_prefix,
        config=config,
        resume_after=resume_after,
        unit_of_work_factory=unit_of_work_factory,
    )
    log.info(
        "Starting %s import: source_id=%s, batch_size=%s, resume_after=%s",
        family,
        job.source_id,
        config.batch_size,
        resume_after,
    )

    if on_job is not None:
        on_job(job)
    result = run_import(job)

    log.info(
        "Finished %s import: state=%s, accepted=%s, replaced=%s, rejected=%s, failed=%s, "
        "skipped=%s, unresolved=%s, resume_after=%s",
        family,
        result.state,
        result.accepted,
        result.replaced,
        result.rejected,
        result.failed,
        result.skipped,
        len(result.unresolved_identities),
        result.resume_after,
    )
    return result
