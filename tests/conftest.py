"""Pytest configuration and fixtures."""

import itertools
import tempfile
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from toggl_tempo_sync.config import Config
from toggl_tempo_sync.models import Worklog
from toggl_tempo_sync.sync import WorklogConverter, WorklogSynchronizationService
from toggl_tempo_sync.tempo import TempoWorklog
from toggl_tempo_sync.toggl import TogglWorklog
from toggl_tempo_sync.utils import StorageManager


def make_repository(first_id: int) -> AsyncMock:
    """Create a mock repository that assigns ids to created records."""
    repository = AsyncMock()
    ids = itertools.count(first_id)

    async def save_worklogs(worklogs):
        for worklog in worklogs:
            if worklog.id is None:
                worklog.id = next(ids)

    repository.save_worklogs.side_effect = save_worklogs
    repository.get_worklogs.return_value = []
    return repository


@pytest.fixture
def temp_config_dir() -> Path:
    """Create a temporary configuration directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def storage_manager(temp_config_dir: Path) -> StorageManager:
    """Create a storage manager with temporary directory."""
    return StorageManager(temp_config_dir)


@pytest.fixture
def config(temp_config_dir: Path) -> Config:
    """Create a configured Config instance with temporary directory."""
    config = Config(temp_config_dir)
    config.update_settings(toggl_workspace_id=42, tempo_account_id="acc-1", timezone="UTC")
    config.update_mapping("PROJ-1", {"tempo_issue_id": 10001, "name": "Login bug"})
    return config


@pytest.fixture
def converter(config: Config) -> WorklogConverter:
    """Create a converter using the test configuration."""
    return WorklogConverter(config)


@pytest.fixture
def toggl_repository() -> AsyncMock:
    """Mock Toggl repository assigning ids from 1000."""
    return make_repository(1000)


@pytest.fixture
def tempo_repository() -> AsyncMock:
    """Mock Tempo repository assigning ids from 5000."""
    return make_repository(5000)


@pytest.fixture
def service(
    converter: WorklogConverter,
    toggl_repository: AsyncMock,
    tempo_repository: AsyncMock,
) -> WorklogSynchronizationService:
    """Create a synchronization service over mock repositories."""
    return WorklogSynchronizationService(
        converter=converter,
        toggl_repository=toggl_repository,
        tempo_repository=tempo_repository,
    )


@pytest.fixture
def sample_toggl_worklog() -> TogglWorklog:
    """Create a sample Toggl time entry."""
    return TogglWorklog(
        id=1,
        workspace_id=42,
        description="PROJ-1 Fixing bug",
        start=datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc),
        duration=3600,
    )


@pytest.fixture
def sample_tempo_worklog() -> TempoWorklog:
    """Create a sample Tempo worklog matching the Toggl entry."""
    return TempoWorklog(
        id=501,
        issue_id=10001,
        author_account_id="acc-1",
        start_date=date(2024, 1, 15),
        start_time=time(9, 0),
        time_spent_seconds=3600,
        description="Fixing bug",
    )


@pytest.fixture
def synced_worklog(
    converter: WorklogConverter,
    sample_toggl_worklog: TogglWorklog,
    sample_tempo_worklog: TempoWorklog,
) -> Worklog:
    """Create a worklog already present in both backends."""
    worklog = converter.from_toggl_worklog(sample_toggl_worklog)
    worklog.tempo_worklog = sample_tempo_worklog
    return worklog


@pytest.fixture
def local_worklog() -> Worklog:
    """Create a worklog that was never synchronized."""
    return Worklog(
        start_date=datetime(2024, 1, 16, 10, 0),
        duration=timedelta(minutes=30),
        issue_key="PROJ-1",
        comment="Code review",
    )
