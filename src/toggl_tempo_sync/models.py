"""Unified worklog model shared by both backends."""

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, field_validator

from toggl_tempo_sync.tempo.models import TempoWorklog
from toggl_tempo_sync.toggl.models import TogglWorklog


class Worklog(BaseModel):
    """One logged time entry across Toggl and Tempo.

    ``toggl_worklog`` and ``tempo_worklog`` point at the last record known to
    be persisted in each backend. ``None`` means the entry is not present in
    that backend; both ``None`` means a local entry that was never
    synchronized.
    """

    model_config = ConfigDict(validate_assignment=True)

    start_date: datetime | None = None
    duration: timedelta = timedelta()
    issue_key: str | None = None
    comment: str | None = None
    toggl_worklog: TogglWorklog | None = None
    tempo_worklog: TempoWorklog | None = None

    @field_validator("start_date")
    @classmethod
    def _truncate_to_minutes(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return value.replace(second=0, microsecond=0)

    @property
    def is_local(self) -> bool:
        """True if the worklog has never been synchronized."""
        return self.toggl_worklog is None and self.tempo_worklog is None

    @property
    def duration_hours(self) -> float:
        """Get duration in hours."""
        return self.duration.total_seconds() / 3600

    @property
    def summary(self) -> str:
        """Issue key and comment as a single line."""
        return " ".join(part for part in (self.issue_key, self.comment) if part)
