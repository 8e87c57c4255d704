"""Synchronization engine for worklogs."""

from toggl_tempo_sync.sync.converter import WorklogConverter
from toggl_tempo_sync.sync.engine import WorklogSynchronizationService
from toggl_tempo_sync.sync.mapper import IssueMapper
from toggl_tempo_sync.sync.results import (
    SynchronizationResult,
    SynchronizationStatus,
    SyncReport,
    WorklogsLoadResult,
)
from toggl_tempo_sync.sync.runner import SyncRunner

__all__ = [
    "IssueMapper",
    "SyncReport",
    "SyncRunner",
    "SynchronizationResult",
    "SynchronizationStatus",
    "WorklogConverter",
    "WorklogSynchronizationService",
    "WorklogsLoadResult",
]
