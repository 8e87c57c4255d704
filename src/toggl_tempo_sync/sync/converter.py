"""Conversion between the unified Worklog and backend records."""

import logging
import re
from datetime import datetime, timedelta, timezone

from toggl_tempo_sync.config import Config
from toggl_tempo_sync.models import Worklog
from toggl_tempo_sync.tempo.models import TempoWorklog
from toggl_tempo_sync.toggl.models import TogglWorklog

logger = logging.getLogger(__name__)

ISSUE_KEY_PATTERN = re.compile(
    r"^(?P<issue_key>[A-Z][A-Z0-9_]*-\d+)\b(?:\s*[:|-]\s*|\s*)(?P<comment>.*)$", re.DOTALL
)


def parse_description(description: str | None) -> tuple[str | None, str | None]:
    """Split a Toggl description into Jira issue key and comment.

    A colon, dash or pipe between key and comment is treated as separator.

    Args:
        description: Toggl description, e.g. "PROJ-123 Fixing the login form".

    Returns:
        Tuple of issue key (None if missing) and comment (None if empty).
    """
    description = (description or "").strip()
    match = ISSUE_KEY_PATTERN.match(description)
    if not match:
        return None, description or None
    return match.group("issue_key"), match.group("comment").strip() or None


def format_description(issue_key: str | None, comment: str | None) -> str:
    """Inverse of parse_description."""
    return " ".join(part for part in (issue_key, comment) if part)


class WorklogConverter:
    """Maps Worklog to and from Toggl and Tempo records.

    Toggl stores instants in UTC while Tempo and Worklog use local wall-clock
    time in the configured time zone.
    """

    def __init__(self, config: Config) -> None:
        """Initialize converter.

        Args:
            config: Application configuration (time zone, account, issue mapping).
        """
        self.config = config

    def _to_local(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(self.config.timezone).replace(tzinfo=None)

    def _to_utc(self, value: datetime) -> datetime:
        tz = self.config.timezone
        aware = value.replace(tzinfo=tz) if tz else value.astimezone()
        return aware.astimezone(timezone.utc)

    def from_toggl_worklog(self, record: TogglWorklog) -> Worklog:
        """Build a Worklog from a Toggl time entry.

        Args:
            record: Toggl time entry, kept as the worklog's back-reference.

        Returns:
            New Worklog.
        """
        issue_key, comment = parse_description(record.description)
        return Worklog(
            start_date=self._to_local(record.start) if record.start else None,
            duration=timedelta(seconds=max(record.duration, 0)),
            issue_key=issue_key,
            comment=comment,
            toggl_worklog=record,
        )

    def from_tempo_worklog(self, record: TempoWorklog) -> Worklog:
        """Build a placeholder Worklog for a Tempo entry with no Toggl counterpart."""
        return Worklog(
            start_date=record.started_at,
            duration=timedelta(seconds=record.time_spent_seconds),
            comment=record.description or None,
            tempo_worklog=record,
        )

    def update_toggl_worklog(self, record: TogglWorklog, worklog: Worklog) -> None:
        """Apply worklog values to a Toggl time entry in place.

        The description is only rewritten when issue key or comment changed,
        so the user's own separator survives a round trip.

        Raises:
            ValueError: If the worklog has no start date.
        """
        if worklog.start_date is None:
            raise ValueError("Worklog has no start date")

        record.start = self._to_utc(worklog.start_date)
        record.duration = int(worklog.duration.total_seconds())
        if parse_description(record.description) != (worklog.issue_key, worklog.comment):
            record.description = format_description(worklog.issue_key, worklog.comment)
        if record.workspace_id is None:
            record.workspace_id = self.config.toggl_workspace_id

    def update_tempo_worklog(self, record: TempoWorklog, worklog: Worklog) -> None:
        """Apply worklog values to a Tempo worklog in place.

        Raises:
            ValueError: If the worklog has no start date.
        """
        if worklog.start_date is None:
            raise ValueError("Worklog has no start date")

        issue_id = self.config.get_issue_id(worklog.issue_key)
        if issue_id is not None:
            record.issue_id = issue_id
        elif worklog.issue_key:
            logger.debug(f"No Tempo issue id mapped for {worklog.issue_key}")

        if record.author_account_id is None:
            record.author_account_id = self.config.tempo_account_id
        record.start_date = worklog.start_date.date()
        record.start_time = worklog.start_date.time()
        record.time_spent_seconds = int(worklog.duration.total_seconds())
        record.description = worklog.comment or worklog.issue_key or ""
