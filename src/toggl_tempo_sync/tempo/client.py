"""Tempo API client."""

import logging
from collections.abc import Sequence
from datetime import date
from typing import Any

import httpx

from toggl_tempo_sync.tempo.models import TempoWorklog
from toggl_tempo_sync.utils import StorageManager
from toggl_tempo_sync.utils.confirmation import create_async_client

logger = logging.getLogger(__name__)


class TempoClient:
    """Async worklog repository backed by the Tempo v4 API."""

    BASE_URL = "https://api.tempo.io/4"
    PAGE_LIMIT = 1000

    def __init__(
        self,
        account_id: str,
        api_token: str | None = None,
        storage: StorageManager | None = None,
        confirm: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize Tempo client.

        Args:
            account_id: Atlassian account id whose worklogs are read.
            api_token: Tempo API token. If None, will try to load from storage.
            storage: StorageManager instance for token caching.
            confirm: If True, prompt for confirmation before each API call.
            transport: Optional httpx transport (used by tests).
        """
        self.account_id = account_id
        self.storage = storage or StorageManager()
        self.api_token = api_token or self.storage.get_token("tempo")

        if not self.api_token:
            raise ValueError("Tempo API token not provided or found in storage")

        self.client = create_async_client(
            base_url=self.BASE_URL,
            confirm=confirm,
            transport=transport,
            headers={
                "Authorization": f"Bearer {self.api_token}",
                "Accept": "application/json",
            },
            timeout=30.0,
        )

    async def get_worklogs(self, start_date: date, end_date: date) -> list[TempoWorklog]:
        """Get worklogs of the configured account, following pagination.

        Args:
            start_date: First day of the range (inclusive).
            end_date: Last day of the range (inclusive).

        Returns:
            List of worklogs.

        Raises:
            httpx.HTTPError: If API request fails.
        """
        worklogs: list[TempoWorklog] = []
        url: str | None = f"/worklogs/user/{self.account_id}"
        params: dict[str, Any] | None = {
            "from": start_date.isoformat(),
            "to": end_date.isoformat(),
            "limit": self.PAGE_LIMIT,
        }

        while url:
            response = await self.client.get(url, params=params)
            response.raise_for_status()
            data = response.json()

            worklogs.extend(TempoWorklog(**item) for item in data.get("results", []))

            # "next" is an absolute URL that already carries the query
            url = data.get("metadata", {}).get("next")
            params = None

        return worklogs

    async def save_worklogs(self, worklogs: Sequence[TempoWorklog]) -> None:
        """Create or update worklogs.

        Records without an id are created, the rest updated. Each record is
        updated in place with the id and timestamp assigned by Tempo.

        Raises:
            httpx.HTTPError: If API request fails.
        """
        for worklog in worklogs:
            if worklog.id is None:
                response = await self.client.post("/worklogs", json=worklog.to_api_dict())
            else:
                response = await self.client.put(
                    f"/worklogs/{worklog.id}", json=worklog.to_api_dict()
                )
            response.raise_for_status()

            saved = TempoWorklog(**response.json())
            worklog.id = saved.id
            worklog.updated_at = saved.updated_at
            logger.info(f"Saved Tempo worklog {worklog.id}")

    async def delete_worklogs(self, worklogs: Sequence[TempoWorklog]) -> None:
        """Delete worklogs.

        Raises:
            ValueError: If a record has no id.
            httpx.HTTPError: If API request fails.
        """
        for worklog in worklogs:
            if worklog.id is None:
                raise ValueError("Cannot delete a Tempo worklog without an id")

            response = await self.client.delete(f"/worklogs/{worklog.id}")
            response.raise_for_status()
            logger.info(f"Deleted Tempo worklog {worklog.id}")

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "TempoClient":
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Context manager exit."""
        await self.aclose()
