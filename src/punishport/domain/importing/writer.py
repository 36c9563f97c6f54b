"""Transactional writes of resolved batches into the punishment store."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from .batch import BatchPlan
from .errors import DestinationWriteError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from punishport.domain.ports import ImportUnitOfWork, PunishmentStore, SourceRecord

    from .uniqueness import UniquenessPolicy

log = getLogger(__name__)


class DestinationWriter:
    """Serialises resolve-and-write transactions against one punishment store.

    Every job writing to the same store must share one writer (or at least one
    ``lock``): resolving a batch reads provenance and candidates, and those reads
    are only valid while no other job can write in between.
    """

    def __init__(
        self,
        unit_of_work_factory: Callable[[], ImportUnitOfWork],
        *,
        lock: threading.Lock | None = None,
        failure_types: tuple[type[Exception], ...] = (),
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._lock = lock if lock is not None else threading.Lock()
        self._failure_types = (DestinationWriteError, *failure_types)

    @contextmanager
    def transaction(self) -> Iterator[PunishmentStore]:
        """Hold the write lock and one unit of work; commit on clean exit."""

        with self._lock:
            try:
                with self._unit_of_work_factory() as uow:
                    yield uow.repositories.punishments
                    uow.commit()
            except DestinationWriteError:
                raise
            except self._failure_types as exc:
                raise DestinationWriteError(str(exc)) from exc

    def write(self, store: PunishmentStore, plan: BatchPlan) -> None:
        """Persist a resolved plan: inserts, in-place replacements, provenance links."""

        new_entries = plan.new_entries
        dirty_entries = plan.dirty_entries
        for tracked in new_entries:
            tracked.entry_id = store.insert(tracked.punishment)
        for tracked in dirty_entries:
            store.replace(tracked.entry_id, tracked.punishment)
        for tracked in plan.entries:
            for link in tracked.links:
                store.record_provenance(
                    plan.source_id, link.native_id, tracked.entry_id, link.fingerprint
                )
        log.debug(
            "Wrote %s new and %s replaced entries for %s",
            len(new_entries),
            len(dirty_entries),
            plan.source_id,
        )

    def commit_batch(
        self,
        *,
        source_id: str,
        policy: UniquenessPolicy,
        records: Sequence[SourceRecord],
    ) -> BatchPlan:
        """Resolve and write ``records`` in a single transaction."""

        with self.transaction() as store:
            plan = BatchPlan(source_id, policy, store)
            plan.extend(records)
            self.write(store, plan)
        log.info("Committed batch of %s records from %s", len(records), source_id)
        return plan
