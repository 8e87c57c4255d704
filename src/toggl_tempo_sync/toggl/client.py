"""Toggl Track API client."""

import logging
from collections.abc import Sequence
from datetime import date, timedelta
from typing import Any

import httpx

from toggl_tempo_sync.toggl.models import TogglWorklog
from toggl_tempo_sync.utils import StorageManager
from toggl_tempo_sync.utils.confirmation import create_async_client

logger = logging.getLogger(__name__)


class TogglClient:
    """Async worklog repository backed by the Toggl Track v9 API."""

    BASE_URL = "https://api.track.toggl.com/api/v9"

    def __init__(
        self,
        api_token: str | None = None,
        storage: StorageManager | None = None,
        confirm: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Toggl client.

        Args:
            api_token: Toggl API token. If None, will try to load from storage.
            storage: StorageManager instance for token caching.
            confirm: If True, prompt for confirmation before each API call.
            transport: Optional httpx transport (used by tests).
        """
        self.storage = storage or StorageManager()
        self.api_token = api_token or self.storage.get_token("toggl")

        if not self.api_token:
            raise ValueError("Toggl API token not provided or found in storage")

        self.client = create_async_client(
            base_url=self.BASE_URL,
            confirm=confirm,
            transport=transport,
            auth=(self.api_token, "api_token"),
            headers={"Accept": "application/json"},
            timeout=30.0,
        )

    async def get_current_user(self) -> dict[str, Any]:
        """Get current authenticated user.

        Raises:
            httpx.HTTPError: If API request fails.
        """
        response = await self.client.get("/me")
        response.raise_for_status()
        return response.json()

    async def get_worklogs(self, start_date: date, end_date: date) -> list[TogglWorklog]:
        """Get finished time entries of the current user.

        Args:
            start_date: First day of the range (inclusive).
            end_date: Last day of the range (inclusive).

        Returns:
            List of time entries, running timers excluded.

        Raises:
            httpx.HTTPError: If API request fails.
        """
        response = await self.client.get(
            "/me/time_entries",
            params={
                "start_date": start_date.isoformat(),
                "end_date": (end_date + timedelta(days=1)).isoformat(),
            },
        )
        response.raise_for_status()

        worklogs = []
        for item in response.json() or []:
            worklog = TogglWorklog(**item)
            if worklog.is_running:
                logger.debug(f"Skipping running Toggl entry {worklog.id}")
                continue
            worklogs.append(worklog)
        return worklogs

    async def save_worklogs(self, worklogs: Sequence[TogglWorklog]) -> None:
        """Create or update time entries.

        Records without an id are created, the rest updated. Each record is
        updated in place with the id and timestamp assigned by Toggl.

        Raises:
            httpx.HTTPError: If API request fails.
        """
        for worklog in worklogs:
            if worklog.workspace_id is None:
                raise ValueError("Toggl time entry has no workspace id")

            path = f"/workspaces/{worklog.workspace_id}/time_entries"
            if worklog.id is None:
                response = await self.client.post(path, json=worklog.to_api_dict())
            else:
                response = await self.client.put(f"{path}/{worklog.id}", json=worklog.to_api_dict())
            response.raise_for_status()

            saved = TogglWorklog(**response.json())
            worklog.id = saved.id
            worklog.at = saved.at
            logger.info(f"Saved Toggl time entry {worklog.id}")

    async def delete_worklogs(self, worklogs: Sequence[TogglWorklog]) -> None:
        """Delete time entries.

        Raises:
            ValueError: If a record has no id.
            httpx.HTTPError: If API request fails.
        """
        for worklog in worklogs:
            if worklog.id is None:
                raise ValueError("Cannot delete a Toggl time entry without an id")

            response = await self.client.delete(
                f"/workspaces/{worklog.workspace_id}/time_entries/{worklog.id}"
            )
            response.raise_for_status()
            logger.info(f"Deleted Toggl time entry {worklog.id}")

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "TogglClient":
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Context manager exit."""
        await self.aclose()
