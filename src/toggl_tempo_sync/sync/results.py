"""Outcomes of synchronization, load and batch sync runs."""

from dataclasses import dataclass, field
from enum import Enum

from toggl_tempo_sync.models import Worklog


class SynchronizationStatus(str, Enum):
    """Outcome of synchronizing one worklog."""

    SUCCESS = "success"
    SYNCHRONIZATION_ERROR = "synchronization_error"
    ROLLBACK_ERROR = "rollback_error"


class SynchronizationResult:
    """Tagged outcome of WorklogSynchronizationService.synchronize.

    SYNCHRONIZATION_ERROR means a write failed but the rollback restored
    both backends. ROLLBACK_ERROR means the rollback failed as well; the
    backends may disagree with each other and with the worklog and need
    manual reconciliation.
    """

    def __init__(
        self,
        status: SynchronizationStatus,
        error: BaseException | None = None,
        rollback_error: BaseException | None = None,
    ) -> None:
        self.status = status
        self.error = error
        self.rollback_error = rollback_error

    @classmethod
    def success(cls) -> "SynchronizationResult":
        return cls(SynchronizationStatus.SUCCESS)

    @classmethod
    def synchronization_error(cls, error: BaseException) -> "SynchronizationResult":
        return cls(SynchronizationStatus.SYNCHRONIZATION_ERROR, error=error)

    @classmethod
    def rollback_failure(
        cls, error: BaseException, rollback_error: BaseException
    ) -> "SynchronizationResult":
        return cls(SynchronizationStatus.ROLLBACK_ERROR, error=error, rollback_error=rollback_error)

    @property
    def is_success(self) -> bool:
        return self.status is SynchronizationStatus.SUCCESS

    @property
    def needs_reconciliation(self) -> bool:
        """True if backend state may no longer match the worklog."""
        return self.status is SynchronizationStatus.ROLLBACK_ERROR

    def __str__(self) -> str:
        if self.status is SynchronizationStatus.SUCCESS:
            return "Synchronized"
        if self.status is SynchronizationStatus.SYNCHRONIZATION_ERROR:
            return f"Synchronization failed and was rolled back: {self.error}"
        return (
            f"Synchronization failed: {self.error}; "
            f"rollback failed as well: {self.rollback_error}"
        )

    def __repr__(self) -> str:
        return (
            f"SynchronizationResult(status={self.status.value!r}, "
            f"error={self.error!r}, rollback_error={self.rollback_error!r})"
        )


@dataclass
class WorklogsLoadResult:
    """Worklogs loaded for a date range.

    ``not_matched_worklogs`` hold Tempo entries that have no Toggl entry
    with the same start time.
    """

    worklogs: list[Worklog] = field(default_factory=list)
    not_matched_worklogs: list[Worklog] = field(default_factory=list)


class SyncReport:
    """Tally of a batch synchronization run."""

    def __init__(self) -> None:
        """Initialize sync report."""
        self.entries_synced = 0
        self.entries_skipped = 0
        self.entries_failed = 0
        self.rollback_failures = 0
        self.not_matched = 0
        self.unmapped_entries: list[str] = []
        self.errors: list[str] = []

    def add_success(self) -> None:
        """Record a successful sync."""
        self.entries_synced += 1

    def add_skip(self) -> None:
        """Record a skipped entry."""
        self.entries_skipped += 1

    def add_failure(self, error: str) -> None:
        """Record a failed sync."""
        self.entries_failed += 1
        self.errors.append(error)

    def add_unmapped(self, key: str) -> None:
        """Record an entry whose issue key has no Tempo issue id."""
        if key not in self.unmapped_entries:
            self.unmapped_entries.append(key)

    def add_result(self, label: str, result: SynchronizationResult) -> None:
        """Record the outcome of one synchronize call.

        Args:
            label: Human readable worklog description.
            result: Outcome of the call.
        """
        if result.is_success:
            self.add_success()
            return
        if result.needs_reconciliation:
            self.rollback_failures += 1
        self.add_failure(f"{label}: {result}")

    @property
    def has_failures(self) -> bool:
        return self.entries_failed > 0

    def __str__(self) -> str:
        """String representation of results."""
        return (
            f"Synced: {self.entries_synced}, "
            f"Skipped: {self.entries_skipped}, "
            f"Failed: {self.entries_failed}, "
            f"Rollback failures: {self.rollback_failures}, "
            f"Not matched: {self.not_matched}, "
            f"Unmapped: {len(self.unmapped_entries)}"
        )
