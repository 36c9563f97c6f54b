"""Import jobs: stream a legacy source into the punishment store batch by batch.

A job reads chunks of ``batch_size`` items from its source on a worker thread
and hands them to the committing side through a bounded queue, so a slow store
holds back the reader instead of letting it buffer the whole source. Each chunk
is resolved and written by the destination writer in its own transaction.
"""

from __future__ import annotations

import asyncio
import contextlib
import threading
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

from punishport.config import ImportConfig
from punishport.domain.ports import SkippedRecord

from .errors import DestinationWriteError, InvalidJobTransitionError, SourceReadError
from .result import ImportCounters, ImportResult, JobState, TerminalReason
from .uniqueness import policy_for

if TYPE_CHECKING:
    from collections.abc import Iterator

    from punishport.domain.model import NativeId
    from punishport.domain.ports import PunishmentSource, SourceItem, SourceRecord

    from .writer import DestinationWriter

log = getLogger(__name__)

_MAX_COMMIT_ATTEMPTS: Final = 2

_TRANSITIONS: Final[dict[JobState, frozenset[JobState]]] = {
    JobState.IDLE: frozenset({JobState.STREAMING}),
    JobState.STREAMING: frozenset({JobState.COMMITTING, JobState.FAILED}),
    JobState.COMMITTING: frozenset({JobState.COMPLETED, JobState.FAILED}),
    JobState.COMPLETED: frozenset(),
    JobState.FAILED: frozenset(),
}


@dataclass(slots=True)
class _Chunk:
    items: list[SourceItem] = field(default_factory=list)
    exhausted: bool = False
    error: SourceReadError | None = None
    cancelled: bool = False

    @property
    def is_last(self) -> bool:
        return self.exhausted or self.error is not None or self.cancelled


def _read_chunk(iterator: Iterator[SourceItem], size: int, *, source_id: str) -> _Chunk:
    """Read up to ``size`` items; a failure ends the chunk but keeps what was read."""

    chunk = _Chunk()
    try:
        for _ in range(size):
            chunk.items.append(next(iterator))
    except StopIteration:
        chunk.exhausted = True
    except SourceReadError as exc:
        chunk.error = exc
    except Exception as exc:
        log.exception("Reading %s failed unexpectedly", source_id)
        chunk.error = SourceReadError(str(exc) or type(exc).__name__, source_id=source_id)
    return chunk


class ImportJob:
    """One run of one source into the store.

    States move ``IDLE -> STREAMING -> COMMITTING -> COMPLETED | FAILED``, with
    ``STREAMING -> FAILED`` on cancellation. A job runs once.

    ``STREAMING`` covers the whole run while the source still has records,
    including the commits of every batch read so far. ``COMMITTING`` starts
    once the source has delivered its final chunk (exhausted or failed) and
    lasts until that chunk is written.
    """

    def __init__(
        self,
        *,
        source: PunishmentSource,
        writer: DestinationWriter,
        config: ImportConfig | None = None,
        resume_after: NativeId | None = None,
    ) -> None:
        self.source = source
        self.writer = writer
        self.config = config if config is not None else ImportConfig()
        self.resume_after = resume_after
        self.policy = policy_for(source.family)
        self._state = JobState.IDLE
        self._cancel_requested = threading.Event()
        self._counters = ImportCounters(last_native_id=resume_after)

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def source_id(self) -> str:
        return self.source.source_id

    @property
    def cancel_requested(self) -> bool:
        return self._cancel_requested.is_set()

    def cancel(self) -> None:
        """Ask the job to stop after the batch it is currently committing."""

        self._cancel_requested.set()

    async def run(self) -> ImportResult:
        self._transition(JobState.STREAMING)
        log.info(
            "Importing from %s with %s (batch size %s)",
            self.source_id,
            self.policy.name,
            self.config.batch_size,
        )

        queue: asyncio.Queue[_Chunk] = asyncio.Queue(maxsize=self.config.max_pending_batches)
        producer = asyncio.create_task(self._produce(queue), name=f"read:{self.source_id}")
        try:
            reason, error = await self._consume(queue)
        finally:
            if not producer.done():
                producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer

        if reason is TerminalReason.SOURCE_EXHAUSTED:
            self._transition(JobState.COMPLETED)
        else:
            self._transition(JobState.FAILED)

        result = ImportResult.from_counters(
            self._counters,
            source_id=self.source_id,
            state=self._state,
            reason=reason,
            error=error,
        )
        log.info(
            "Import from %s %s (%s): %s accepted, %s replaced, %s rejected, "
            "%s failed, %s skipped in %s batches",
            self.source_id,
            result.state,
            result.reason,
            result.accepted,
            result.replaced,
            result.rejected,
            result.failed,
            result.skipped,
            result.batches_committed,
        )
        return result

    async def _produce(self, queue: asyncio.Queue[_Chunk]) -> None:
        iterator = iter(self.source.records(resume_after=self.resume_after))
        while True:
            if self._cancel_requested.is_set():
                await queue.put(_Chunk(cancelled=True))
                return
            chunk = await asyncio.to_thread(
                _read_chunk, iterator, self.config.batch_size, source_id=self.source_id
            )
            await queue.put(chunk)
            if chunk.is_last:
                return

    async def _consume(self, queue: asyncio.Queue[_Chunk]) -> tuple[TerminalReason, str | None]:
        while True:
            chunk = await queue.get()
            if chunk.cancelled:
                return self._cancelled()
            if chunk.is_last:
                self._transition(JobState.COMMITTING)
            if chunk.items:
                await asyncio.to_thread(self._process, chunk.items)
            if chunk.error is not None:
                log.error("Source %s failed: %s", self.source_id, chunk.error)
                return TerminalReason.SOURCE_ERROR, str(chunk.error)
            if chunk.exhausted:
                return TerminalReason.SOURCE_EXHAUSTED, None
            if self._cancel_requested.is_set():
                return self._cancelled()

    def _cancelled(self) -> tuple[TerminalReason, str | None]:
        log.warning("Import from %s cancelled", self.source_id)
        return TerminalReason.CANCELLED, None

    def _process(self, items: list[SourceItem]) -> None:
        records: list[SourceRecord] = []
        for item in items:
            if isinstance(item, SkippedRecord):
                log.warning("Skipping %s from %s: %s", item.native_id, self.source_id, item.reason)
                self._counters.skipped += 1
            else:
                records.append(item)
        if records:
            self._commit(records)
        self._counters.advance(items[-1].native_id)

    def _commit(self, records: list[SourceRecord]) -> None:
        last_error: DestinationWriteError | None = None
        for attempt in range(1, _MAX_COMMIT_ATTEMPTS + 1):
            try:
                plan = self.writer.commit_batch(
                    source_id=self.source_id, policy=self.policy, records=records
                )
            except DestinationWriteError as exc:
                last_error = exc
                log.warning(
                    "Batch of %s records from %s failed (attempt %s of %s): %s",
                    len(records),
                    self.source_id,
                    attempt,
                    _MAX_COMMIT_ATTEMPTS,
                    exc,
                )
                continue
            self._counters.record_plan(plan)
            return

        assert last_error is not None
        log.error(
            "Giving up on batch %s..%s from %s: %s",
            records[0].native_id,
            records[-1].native_id,
            self.source_id,
            last_error,
        )
        self._counters.record_failure(records, last_error)

    def _transition(self, target: JobState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidJobTransitionError(
                f"Import job for {self.source_id} cannot move from {self._state} to {target}"
            )
        log.debug("Import job for %s: %s -> %s", self.source_id, self._state, target)
        self._state = target


def run_import(job: ImportJob) -> ImportResult:
    """Run ``job`` to completion from synchronous code."""

    return asyncio.run(job.run())
