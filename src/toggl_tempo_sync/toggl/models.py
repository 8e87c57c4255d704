"""Pydantic models for Toggl Track API responses."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TogglWorklog(BaseModel):
    """Toggl Track time entry model.

    Every field has a default so an empty record can stand in for an entry
    that does not exist in Toggl yet.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = None
    workspace_id: int | None = None
    project_id: int | None = None
    description: str | None = None
    start: datetime | None = None
    duration: int = 0
    tags: list[str] | None = Field(default_factory=list)
    billable: bool = False
    at: datetime | None = None

    @property
    def is_running(self) -> bool:
        """Running timers report a negative duration."""
        return self.duration < 0

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API-compatible dictionary.

        Returns:
            Dictionary for API submission.
        """
        start = self.start
        if start is not None and start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)

        return {
            "created_with": "toggl-tempo-sync",
            "workspace_id": self.workspace_id,
            "project_id": self.project_id,
            "description": self.description or "",
            "start": start.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
            if start
            else None,
            "duration": self.duration,
            "tags": list(self.tags or []),
            "billable": self.billable,
        }
