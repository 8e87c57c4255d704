"""Synchronization of a single worklog between Toggl and Tempo.

Toggl and Tempo are written independently and neither supports
transactions. A synchronization writes only the backends whose record
changed, concurrently, and when any write fails compensates every write
that was attempted:

* the record existed before the attempt: save the original record again;
* the record was being created and the creation landed: delete it and
  clear the worklog's back-reference;
* the creation did not land: clear the back-reference.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

from pydantic import BaseModel

from toggl_tempo_sync.models import Worklog
from toggl_tempo_sync.sync.comparers import WorklogComparer, comparer_for
from toggl_tempo_sync.sync.converter import WorklogConverter
from toggl_tempo_sync.sync.results import SynchronizationResult, WorklogsLoadResult
from toggl_tempo_sync.tempo.models import TempoWorklog
from toggl_tempo_sync.toggl.models import TogglWorklog

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class WorklogRepository(Protocol[RecordT]):
    """Backend capabilities the synchronizer relies on."""

    async def save_worklogs(self, worklogs: Sequence[RecordT]) -> None: ...

    async def get_worklogs(self, start_date: date, end_date: date) -> list[RecordT]: ...

    async def delete_worklogs(self, worklogs: Sequence[RecordT]) -> None: ...


class CompensationAction(str, Enum):
    """What to do with one backend when rolling back a failed synchronization."""

    RESAVE_ORIGINAL = "resave_original"
    DELETE_SENT = "delete_sent"
    CLEAR_REFERENCE = "clear_reference"


# (record existed before the attempt, sent record was assigned an id) -> action
COMPENSATION_TABLE: dict[tuple[bool, bool], CompensationAction] = {
    (True, True): CompensationAction.RESAVE_ORIGINAL,
    (True, False): CompensationAction.RESAVE_ORIGINAL,
    (False, True): CompensationAction.DELETE_SENT,
    (False, False): CompensationAction.CLEAR_REFERENCE,
}


def plan_compensation(original: BaseModel | None, sent: BaseModel) -> CompensationAction:
    """Look up the compensating action for one backend.

    Args:
        original: Back-reference held by the worklog before the attempt.
        sent: Record that was sent to the backend.

    Returns:
        Action from COMPENSATION_TABLE.
    """
    existed = original is not None and getattr(original, "id", None) is not None
    landed = getattr(sent, "id", None) is not None
    return COMPENSATION_TABLE[(existed, landed)]


def _raise_first_error(results: Sequence[Any]) -> None:
    for result in results:
        if isinstance(result, BaseException):
            raise result


@dataclass
class _Backend(Generic[RecordT]):
    """One side of the synchronization and how the worklog refers to it."""

    name: str
    attribute: str
    record_type: type[RecordT]
    repository: WorklogRepository[RecordT]
    comparer: WorklogComparer[RecordT]
    update: Callable[[RecordT, Worklog], None]

    def current(self, worklog: Worklog) -> RecordT | None:
        return getattr(worklog, self.attribute)

    def assign(self, worklog: Worklog, record: RecordT | None) -> None:
        setattr(worklog, self.attribute, record)

    def create_record_to_send(self, worklog: Worklog) -> RecordT:
        """Deep copy of the current record (or an empty one) with worklog values applied."""
        current = self.current(worklog)
        record = current.model_copy(deep=True) if current is not None else self.record_type()
        self.update(record, worklog)
        return record


class WorklogSynchronizationService:
    """Loads, synchronizes and deletes worklogs across Toggl and Tempo."""

    def __init__(
        self,
        converter: WorklogConverter,
        toggl_repository: WorklogRepository[TogglWorklog],
        tempo_repository: WorklogRepository[TempoWorklog],
    ) -> None:
        """Initialize synchronization service.

        Args:
            converter: Worklog converter.
            toggl_repository: Toggl backend (e.g. TogglClient).
            tempo_repository: Tempo backend (e.g. TempoClient).
        """
        self.converter = converter
        self.toggl = toggl_repository
        self.tempo = tempo_repository

        self._toggl_backend = _Backend(
            name="Toggl",
            attribute="toggl_worklog",
            record_type=TogglWorklog,
            repository=toggl_repository,
            comparer=comparer_for(TogglWorklog),
            update=converter.update_toggl_worklog,
        )
        self._tempo_backend = _Backend(
            name="Tempo",
            attribute="tempo_worklog",
            record_type=TempoWorklog,
            repository=tempo_repository,
            comparer=comparer_for(TempoWorklog),
            update=converter.update_tempo_worklog,
        )

    @property
    def _backends(self) -> tuple[_Backend[Any], ...]:
        # Toggl first: its error is reported when both writes fail
        return (self._toggl_backend, self._tempo_backend)

    def pending_writes(self, worklog: Worklog) -> list[str]:
        """Names of the backends synchronize would write, without writing."""
        return [
            backend.name
            for backend in self._backends
            if not backend.comparer.equals(
                backend.current(worklog), backend.create_record_to_send(worklog)
            )
        ]

    async def synchronize(self, worklog: Worklog) -> SynchronizationResult:
        """Write the worklog to every backend whose record changed.

        Write errors never escape: they trigger a rollback and are reported
        in the result together with the rollback error, if any.

        Args:
            worklog: Worklog to synchronize. Its back-references are replaced
                with the sent records on success.

        Returns:
            Outcome of the synchronization.
        """
        to_send = {backend.name: backend.create_record_to_send(worklog) for backend in self._backends}
        changed = [
            backend
            for backend in self._backends
            if not backend.comparer.equals(backend.current(worklog), to_send[backend.name])
        ]

        if not changed:
            logger.debug(f"Worklog {worklog.summary!r} is up to date")
            return SynchronizationResult.success()

        try:
            results = await asyncio.gather(
                *(backend.repository.save_worklogs([to_send[backend.name]]) for backend in changed),
                return_exceptions=True,
            )
            _raise_first_error(results)
        except Exception as sync_error:
            logger.error(f"Failed to synchronize worklog {worklog.summary!r}: {sync_error}")
            attempted = {backend.name: to_send[backend.name] for backend in changed}
            try:
                await self.rollback_synchronization(
                    worklog,
                    sent_toggl_worklog=attempted.get(self._toggl_backend.name),
                    sent_tempo_worklog=attempted.get(self._tempo_backend.name),
                )
            except Exception as rollback_error:
                logger.critical(
                    f"Rollback of worklog {worklog.summary!r} failed, "
                    f"backends may be inconsistent: {rollback_error}"
                )
                return SynchronizationResult.rollback_failure(sync_error, rollback_error)

            return SynchronizationResult.synchronization_error(sync_error)

        for backend in self._backends:
            backend.assign(worklog, to_send[backend.name])

        logger.info(
            f"Synchronized worklog {worklog.summary!r} "
            f"({', '.join(backend.name for backend in changed)})"
        )
        return SynchronizationResult.success()

    async def rollback_synchronization(
        self,
        worklog: Worklog,
        sent_toggl_worklog: TogglWorklog | None,
        sent_tempo_worklog: TempoWorklog | None,
    ) -> None:
        """Compensate the writes of a failed synchronization.

        Args:
            worklog: Worklog whose back-references still hold the state from
                before the attempt.
            sent_toggl_worklog: Record sent to Toggl, None if Toggl was not written.
            sent_tempo_worklog: Record sent to Tempo, None if Tempo was not written.

        Raises:
            Exception: The first error raised by a compensating call.
        """
        attempts = [
            (backend, sent)
            for backend, sent in (
                (self._toggl_backend, sent_toggl_worklog),
                (self._tempo_backend, sent_tempo_worklog),
            )
            if sent is not None
        ]
        results = await asyncio.gather(
            *(self._compensate(backend, worklog, sent) for backend, sent in attempts),
            return_exceptions=True,
        )
        _raise_first_error(results)

    async def _compensate(self, backend: _Backend[Any], worklog: Worklog, sent: BaseModel) -> None:
        original = backend.current(worklog)
        action = plan_compensation(original, sent)
        logger.info(f"Rolling back {backend.name} worklog: {action.value}")

        if action is CompensationAction.RESAVE_ORIGINAL:
            await backend.repository.save_worklogs([original])
        elif action is CompensationAction.DELETE_SENT:
            await backend.repository.delete_worklogs([sent])
            backend.assign(worklog, None)
        else:
            backend.assign(worklog, None)

    async def load(self, start_date: date, end_date: date) -> WorklogsLoadResult:
        """Load worklogs of a date range from both backends.

        Toggl entries become worklogs. Each Tempo entry is attached to the
        first worklog with exactly the same start time that has no Tempo
        entry yet; the rest are returned as not matched.

        Args:
            start_date: First day (inclusive).
            end_date: Last day (inclusive).

        Returns:
            Loaded worklogs.
        """
        results = await asyncio.gather(
            self.toggl.get_worklogs(start_date, end_date),
            self.tempo.get_worklogs(start_date, end_date),
            return_exceptions=True,
        )
        _raise_first_error(results)
        toggl_worklogs, tempo_worklogs = results

        worklogs = [self.converter.from_toggl_worklog(record) for record in toggl_worklogs]
        not_matched: list[Worklog] = []

        for tempo_worklog in tempo_worklogs:
            match = next(
                (
                    worklog
                    for worklog in worklogs
                    if worklog.tempo_worklog is None
                    and worklog.start_date == tempo_worklog.started_at
                ),
                None,
            )
            if match is None:
                not_matched.append(self.converter.from_tempo_worklog(tempo_worklog))
            else:
                match.tempo_worklog = tempo_worklog

        logger.info(
            f"Loaded {len(worklogs)} worklogs and {len(not_matched)} unmatched Tempo worklogs "
            f"from {start_date} to {end_date}"
        )
        return WorklogsLoadResult(worklogs=worklogs, not_matched_worklogs=not_matched)

    async def delete(self, worklog: Worklog) -> None:
        """Delete the worklog from Tempo, then from Toggl.

        Each back-reference is cleared right after its own delete. A Toggl
        failure after a successful Tempo delete leaves only the Tempo
        reference cleared.
        """
        if worklog.tempo_worklog is not None:
            await self.tempo.delete_worklogs([worklog.tempo_worklog])
            worklog.tempo_worklog = None

        if worklog.toggl_worklog is not None:
            await self.toggl.delete_worklogs([worklog.toggl_worklog])
            worklog.toggl_worklog = None
