"""Batch synchronization of all worklogs in a date range."""

import logging
from datetime import date, datetime, timedelta

from toggl_tempo_sync.config import Config
from toggl_tempo_sync.models import Worklog
from toggl_tempo_sync.sync.engine import WorklogSynchronizationService
from toggl_tempo_sync.sync.mapper import IssueMapper
from toggl_tempo_sync.sync.results import SyncReport

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 30


def describe(worklog: Worklog) -> str:
    """Short human readable label of a worklog."""
    start = f"{worklog.start_date:%Y-%m-%d %H:%M}" if worklog.start_date else "no start"
    return f"{start} {worklog.summary or '(no description)'}"


class SyncRunner:
    """Pushes every Toggl worklog of a date range to Tempo, one at a time."""

    def __init__(
        self,
        config: Config,
        service: WorklogSynchronizationService,
        mapper: IssueMapper | None = None,
    ) -> None:
        """Initialize sync runner.

        Args:
            config: Application configuration.
            service: Worklog synchronization service.
            mapper: Issue mapper for interactive prompts.
        """
        self.config = config
        self.service = service
        self.mapper = mapper or IssueMapper(config)

    def resolve_range(
        self, from_date: date | None = None, to_date: date | None = None
    ) -> tuple[date, date]:
        """Fill in a missing range from the last sync date and today."""
        if from_date is None:
            last_sync = self.config.storage.get_last_sync_date()
            from_date = (last_sync or datetime.now() - timedelta(days=DEFAULT_LOOKBACK_DAYS)).date()

        if to_date is None:
            to_date = date.today()

        return from_date, to_date

    async def run(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
        dry_run: bool = False,
        interactive: bool = True,
    ) -> SyncReport:
        """Synchronize all worklogs in a date range.

        Args:
            from_date: Start date (uses last sync date if not provided).
            to_date: End date (uses today if not provided).
            dry_run: If True, only log what would be written.
            interactive: If True, prompt for unmapped issue keys.

        Returns:
            Report of the run.
        """
        report = SyncReport()
        from_date, to_date = self.resolve_range(from_date, to_date)

        logger.info(f"Synchronizing worklogs from {from_date} to {to_date}")

        try:
            loaded = await self.service.load(from_date, to_date)
        except Exception as e:
            logger.error(f"Failed to load worklogs: {e}")
            report.add_failure(f"Could not load worklogs: {e}")
            return report

        report.not_matched = len(loaded.not_matched_worklogs)
        if loaded.not_matched_worklogs:
            logger.warning(
                f"{len(loaded.not_matched_worklogs)} Tempo worklogs have no Toggl counterpart"
            )

        for worklog in loaded.worklogs:
            await self._sync_worklog(worklog, report, dry_run=dry_run, interactive=interactive)

        if not dry_run:
            self.config.storage.set_last_sync_date(datetime.now())

        logger.info(f"Sync complete: {report}")
        return report

    def _resolve_mapping(self, issue_key: str, report: SyncReport, interactive: bool) -> bool:
        """Make sure the issue key is mapped.

        Returns:
            True if the worklog can be synchronized.
        """
        if self.config.should_skip(issue_key):
            logger.info(f"Skipping worklog of skipped issue {issue_key}")
            report.add_skip()
            return False

        if not self.mapper.needs_mapping(issue_key):
            return True

        mapping = self.mapper.prompt_for_mapping(issue_key) if interactive else None
        if mapping is None:
            report.add_unmapped(issue_key)
            return False

        self.mapper.save_mapping(issue_key, mapping)
        if mapping.get("skip"):
            report.add_skip()
            return False
        return True

    async def _sync_worklog(
        self,
        worklog: Worklog,
        report: SyncReport,
        dry_run: bool = False,
        interactive: bool = True,
    ) -> None:
        label = describe(worklog)

        if not worklog.issue_key:
            logger.debug(f"Skipping worklog without issue key: {label}")
            report.add_skip()
            return

        if not self._resolve_mapping(worklog.issue_key, report, interactive):
            return

        pending = self.service.pending_writes(worklog)
        if not pending:
            logger.debug(f"Worklog already synchronized: {label}")
            report.add_skip()
            return

        if dry_run:
            logger.info(f"[DRY RUN] Would write {label} to {', '.join(pending)}")
            report.add_success()
            return

        result = await self.service.synchronize(worklog)
        report.add_result(label, result)
