"""Tests for batch synchronization runs."""

from datetime import date, datetime, time, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from toggl_tempo_sync.config import Config
from toggl_tempo_sync.sync import IssueMapper, SyncRunner, WorklogSynchronizationService
from toggl_tempo_sync.tempo import TempoWorklog
from toggl_tempo_sync.toggl import TogglWorklog

DAY = date(2024, 1, 15)


@pytest.fixture
def toggl_entries(sample_toggl_worklog: TogglWorklog) -> list[TogglWorklog]:
    """Toggl entries of one day: mapped, unmapped and without issue key."""
    return [
        sample_toggl_worklog,
        TogglWorklog(
            id=2,
            workspace_id=42,
            description="OTHER-7 Planning",
            start=datetime(2024, 1, 15, 11, 0, tzinfo=timezone.utc),
            duration=1800,
        ),
        TogglWorklog(
            id=3,
            workspace_id=42,
            description="Lunch",
            start=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
            duration=1800,
        ),
    ]


@pytest.fixture
def runner(
    config: Config,
    service: WorklogSynchronizationService,
    toggl_repository: AsyncMock,
    toggl_entries: list[TogglWorklog],
) -> SyncRunner:
    """Create a runner over a day of Toggl entries."""
    toggl_repository.get_worklogs.return_value = toggl_entries
    return SyncRunner(config, service)


class TestSyncRunner:
    """Test SyncRunner functionality."""

    @pytest.mark.asyncio
    async def test_run_non_interactive(
        self,
        runner: SyncRunner,
        config: Config,
        tempo_repository: AsyncMock,
        toggl_repository: AsyncMock,
    ) -> None:
        """Test mapped worklogs are pushed to Tempo and the rest reported."""
        report = await runner.run(from_date=DAY, to_date=DAY, interactive=False)

        assert report.entries_synced == 1
        assert report.entries_skipped == 1
        assert report.unmapped_entries == ["OTHER-7"]
        assert report.entries_failed == 0

        (call,) = tempo_repository.save_worklogs.await_args_list
        assert call.args[0][0].issue_id == 10001
        toggl_repository.save_worklogs.assert_not_awaited()
        assert config.storage.get_last_sync_date() is not None

    @pytest.mark.asyncio
    async def test_dry_run_writes_nothing(
        self,
        runner: SyncRunner,
        config: Config,
        tempo_repository: AsyncMock,
    ) -> None:
        """Test dry run only reports what would be written."""
        report = await runner.run(from_date=DAY, to_date=DAY, dry_run=True, interactive=False)

        assert report.entries_synced == 1
        tempo_repository.save_worklogs.assert_not_awaited()
        assert config.storage.get_last_sync_date() is None

    @pytest.mark.asyncio
    async def test_interactive_mapping(
        self,
        runner: SyncRunner,
        config: Config,
        tempo_repository: AsyncMock,
    ) -> None:
        """Test unmapped issues are resolved through the mapper and saved."""
        runner.mapper.prompt_for_mapping = MagicMock(return_value={"tempo_issue_id": 10007})

        report = await runner.run(from_date=DAY, to_date=DAY, interactive=True)

        assert report.entries_synced == 2
        assert report.unmapped_entries == []
        runner.mapper.prompt_for_mapping.assert_called_once_with("OTHER-7")
        assert config.get_issue_id("OTHER-7") == 10007

    @pytest.mark.asyncio
    async def test_skipped_issue(self, runner: SyncRunner, config: Config) -> None:
        """Test issues mapped as skip are not synchronized."""
        config.update_mapping("OTHER-7", {"skip": True})

        report = await runner.run(from_date=DAY, to_date=DAY, interactive=False)

        assert report.entries_synced == 1
        assert report.entries_skipped == 2
        assert report.unmapped_entries == []

    @pytest.mark.asyncio
    async def test_already_synchronized_is_skipped(
        self,
        runner: SyncRunner,
        config: Config,
        sample_tempo_worklog: TempoWorklog,
        tempo_repository: AsyncMock,
    ) -> None:
        """Test a worklog present in Tempo with the same values is skipped."""
        config.update_mapping("OTHER-7", {"skip": True})
        tempo_repository.get_worklogs.return_value = [sample_tempo_worklog]

        report = await runner.run(from_date=DAY, to_date=DAY, interactive=False)

        assert report.entries_synced == 0
        assert report.entries_skipped == 3
        tempo_repository.save_worklogs.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_write_is_reported(
        self,
        runner: SyncRunner,
        tempo_repository: AsyncMock,
    ) -> None:
        """Test a failed synchronize call is counted as a failure."""
        tempo_repository.save_worklogs.side_effect = RuntimeError("Tempo is down")

        report = await runner.run(from_date=DAY, to_date=DAY, interactive=False)

        assert report.entries_failed == 1
        assert "Tempo is down" in report.errors[0]
        assert report.rollback_failures == 0

    @pytest.mark.asyncio
    async def test_unmatched_tempo_worklogs_are_counted(
        self,
        runner: SyncRunner,
        sample_tempo_worklog: TempoWorklog,
        tempo_repository: AsyncMock,
    ) -> None:
        """Test Tempo worklogs without Toggl counterpart are reported."""
        orphan = sample_tempo_worklog.model_copy(update={"id": 900, "start_time": time(15, 0)})
        tempo_repository.get_worklogs.return_value = [orphan]

        report = await runner.run(from_date=DAY, to_date=DAY, interactive=False)

        assert report.not_matched == 1

    @pytest.mark.asyncio
    async def test_load_failure(
        self,
        runner: SyncRunner,
        config: Config,
        toggl_repository: AsyncMock,
    ) -> None:
        """Test a failed load is reported instead of raised."""
        toggl_repository.get_worklogs.side_effect = RuntimeError("Toggl is down")

        report = await runner.run(from_date=DAY, to_date=DAY, interactive=False)

        assert report.entries_failed == 1
        assert "Toggl is down" in report.errors[0]
        assert config.storage.get_last_sync_date() is None

    def test_resolve_range_defaults(self, runner: SyncRunner, config: Config) -> None:
        """Test the default range starts at the last sync or 30 days ago."""
        start, end = runner.resolve_range()
        assert end == date.today()
        assert start == date.today() - timedelta(days=30)

        config.storage.set_last_sync_date(datetime(2024, 3, 1, 8, 0))
        start, _ = runner.resolve_range()
        assert start == date(2024, 3, 1)


class TestIssueMapper:
    """Test IssueMapper prompts."""

    def test_enter_issue_id(self, config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test entering a numeric issue id, retrying on invalid input."""
        answers = iter(["1", "abc", "10007", "Planning"])
        monkeypatch.setattr(
            "toggl_tempo_sync.sync.mapper.Prompt.ask", lambda *args, **kwargs: next(answers)
        )

        mapping = IssueMapper(config).prompt_for_mapping("OTHER-7")

        assert mapping == {"tempo_issue_id": 10007, "name": "Planning"}

    def test_skip_and_cancel(self, config: Config, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test skipping and cancelling."""
        answers = iter(["3", "4"])
        monkeypatch.setattr(
            "toggl_tempo_sync.sync.mapper.Prompt.ask", lambda *args, **kwargs: next(answers)
        )
        mapper = IssueMapper(config)

        assert mapper.prompt_for_mapping("OTHER-7") == {"skip": True}
        assert mapper.prompt_for_mapping("OTHER-7") is None

    def test_needs_mapping_and_save(self, config: Config) -> None:
        """Test saving a mapping marks the issue as mapped."""
        mapper = IssueMapper(config)
        assert mapper.needs_mapping("OTHER-7") is True

        mapper.save_mapping("OTHER-7", {"tempo_issue_id": 10007})

        assert mapper.needs_mapping("OTHER-7") is False
        assert mapper.needs_mapping("PROJ-1") is False
