"""Pydantic models for Tempo API responses."""

from datetime import date, datetime, time
from typing import Any

from pydantic import AliasChoices, AliasPath, BaseModel, ConfigDict, Field


class TempoWorklog(BaseModel):
    """Tempo worklog model.

    Tempo responses nest the issue and author (``issue.id``,
    ``author.accountId``) while requests use flat ``issueId`` and
    ``authorAccountId``; both shapes are accepted.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int | None = Field(default=None, validation_alias=AliasChoices("id", "tempoWorklogId"))
    issue_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("issue_id", "issueId", AliasPath("issue", "id")),
    )
    author_account_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "author_account_id", "authorAccountId", AliasPath("author", "accountId")
        ),
    )
    start_date: date | None = Field(
        default=None, validation_alias=AliasChoices("start_date", "startDate")
    )
    start_time: time | None = Field(
        default=None, validation_alias=AliasChoices("start_time", "startTime")
    )
    time_spent_seconds: int = Field(
        default=0, validation_alias=AliasChoices("time_spent_seconds", "timeSpentSeconds")
    )
    description: str = ""
    updated_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )

    @property
    def started_at(self) -> datetime | None:
        """Local wall-clock start of the worklog."""
        if self.start_date is None:
            return None
        return datetime.combine(self.start_date, self.start_time or time())

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to API-compatible dictionary.

        Returns:
            Dictionary for API submission.
        """
        return {
            "issueId": self.issue_id,
            "authorAccountId": self.author_account_id,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "startTime": (self.start_time or time()).strftime("%H:%M:%S"),
            "timeSpentSeconds": self.time_spent_seconds,
            "description": self.description,
        }
