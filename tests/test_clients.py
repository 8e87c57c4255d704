"""Tests for the Toggl and Tempo API clients."""

import json
from datetime import date, datetime, time, timezone

import httpx
import pytest

from toggl_tempo_sync.tempo import TempoClient, TempoWorklog
from toggl_tempo_sync.toggl import TogglClient, TogglWorklog
from toggl_tempo_sync.utils import StorageManager


class RecordingHandler:
    """Mock transport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


TOGGL_ENTRY = {
    "id": 3001,
    "workspace_id": 42,
    "project_id": None,
    "description": "PROJ-1 Fixing bug",
    "start": "2024-01-15T09:00:00+00:00",
    "duration": 3600,
    "tags": [],
    "at": "2024-01-15T10:00:05+00:00",
}

TEMPO_ENTRY = {
    "tempoWorklogId": 501,
    "issue": {"id": 10001},
    "author": {"accountId": "acc-1"},
    "startDate": "2024-01-15",
    "startTime": "09:00:00",
    "timeSpentSeconds": 3600,
    "description": "Fixing bug",
    "updatedAt": "2024-01-15T10:00:00Z",
}


class TestTogglClient:
    """Test TogglClient functionality."""

    def test_missing_token(self, storage_manager: StorageManager) -> None:
        """Test the client refuses to start without a token."""
        with pytest.raises(ValueError, match="Toggl API token"):
            TogglClient(storage=storage_manager)

    def test_token_from_storage(self, storage_manager: StorageManager) -> None:
        """Test the token is read from storage when not given."""
        storage_manager.set_token("toggl", "stored-token")
        client = TogglClient(storage=storage_manager)
        assert client.api_token == "stored-token"

    @pytest.mark.asyncio
    async def test_get_worklogs(self, storage_manager: StorageManager) -> None:
        """Test fetching entries skips running timers."""
        running = dict(TOGGL_ENTRY, id=3002, duration=-1705309200)
        handler = RecordingHandler(httpx.Response(200, json=[TOGGL_ENTRY, running]))

        async with TogglClient("token", storage=storage_manager, transport=handler.transport) as client:
            worklogs = await client.get_worklogs(date(2024, 1, 15), date(2024, 1, 15))

        assert [w.id for w in worklogs] == [3001]
        request = handler.requests[0]
        assert request.url.path == "/api/v9/me/time_entries"
        assert request.url.params["start_date"] == "2024-01-15"
        assert request.url.params["end_date"] == "2024-01-16"
        assert request.headers["Authorization"].startswith("Basic ")

    @pytest.mark.asyncio
    async def test_save_creates_new_entry(self, storage_manager: StorageManager) -> None:
        """Test a record without id is created and receives the new id."""
        handler = RecordingHandler(httpx.Response(200, json=TOGGL_ENTRY))
        record = TogglWorklog(
            workspace_id=42,
            description="PROJ-1 Fixing bug",
            start=datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc),
            duration=3600,
        )

        async with TogglClient("token", storage=storage_manager, transport=handler.transport) as client:
            await client.save_worklogs([record])

        request = handler.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v9/workspaces/42/time_entries"
        assert json.loads(request.content)["start"] == "2024-01-15T09:00:00Z"
        assert record.id == 3001
        assert record.at is not None

    @pytest.mark.asyncio
    async def test_save_updates_existing_entry(self, storage_manager: StorageManager) -> None:
        """Test a record with id is updated in place."""
        handler = RecordingHandler(httpx.Response(200, json=TOGGL_ENTRY))
        record = TogglWorklog(**TOGGL_ENTRY)

        async with TogglClient("token", storage=storage_manager, transport=handler.transport) as client:
            await client.save_worklogs([record])

        assert handler.requests[0].method == "PUT"
        assert handler.requests[0].url.path == "/api/v9/workspaces/42/time_entries/3001"

    @pytest.mark.asyncio
    async def test_save_error_is_raised(self, storage_manager: StorageManager) -> None:
        """Test API errors surface as httpx errors and leave the record untouched."""
        handler = RecordingHandler(httpx.Response(500, json={"error": "boom"}))
        record = TogglWorklog(workspace_id=42, start=datetime(2024, 1, 15, tzinfo=timezone.utc))

        async with TogglClient("token", storage=storage_manager, transport=handler.transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await client.save_worklogs([record])

        assert record.id is None

    @pytest.mark.asyncio
    async def test_delete(self, storage_manager: StorageManager) -> None:
        """Test deleting an entry."""
        handler = RecordingHandler(httpx.Response(200))

        async with TogglClient("token", storage=storage_manager, transport=handler.transport) as client:
            await client.delete_worklogs([TogglWorklog(**TOGGL_ENTRY)])
            with pytest.raises(ValueError):
                await client.delete_worklogs([TogglWorklog(workspace_id=42)])

        assert len(handler.requests) == 1
        assert handler.requests[0].method == "DELETE"
        assert handler.requests[0].url.path == "/api/v9/workspaces/42/time_entries/3001"


class TestTempoClient:
    """Test TempoClient functionality."""

    def test_missing_token(self, storage_manager: StorageManager) -> None:
        """Test the client refuses to start without a token."""
        with pytest.raises(ValueError, match="Tempo API token"):
            TempoClient("acc-1", storage=storage_manager)

    @pytest.mark.asyncio
    async def test_get_worklogs_follows_pagination(self, storage_manager: StorageManager) -> None:
        """Test all pages are fetched."""
        next_url = "https://api.tempo.io/4/worklogs/user/acc-1?from=2024-01-15&to=2024-01-16&offset=1&limit=1"
        handler = RecordingHandler(
            httpx.Response(200, json={"metadata": {"count": 1, "next": next_url}, "results": [TEMPO_ENTRY]}),
            httpx.Response(
                200,
                json={"metadata": {"count": 1}, "results": [dict(TEMPO_ENTRY, tempoWorklogId=502)]},
            ),
        )

        async with TempoClient(
            "acc-1", "token", storage=storage_manager, transport=handler.transport
        ) as client:
            worklogs = await client.get_worklogs(date(2024, 1, 15), date(2024, 1, 16))

        assert [w.id for w in worklogs] == [501, 502]
        assert worklogs[0].started_at == datetime(2024, 1, 15, 9, 0)
        first, second = handler.requests
        assert first.url.path == "/4/worklogs/user/acc-1"
        assert first.url.params["from"] == "2024-01-15"
        assert first.url.params["to"] == "2024-01-16"
        assert first.headers["Authorization"] == "Bearer token"
        assert second.url.params["offset"] == "1"

    @pytest.mark.asyncio
    async def test_next_page_keeps_query(self, storage_manager: StorageManager) -> None:
        """Test follow-up pages are requested with the query of the next URL."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            if len(requests) > 3:
                raise RuntimeError("pagination did not stop")
            offset = int(request.url.params.get("offset", "0"))
            if offset == 0:
                next_url = (
                    "https://api.tempo.io/4/worklogs/user/acc-1"
                    "?from=2024-01-15&to=2024-01-16&offset=1000&limit=1000"
                )
                return httpx.Response(
                    200, json={"metadata": {"next": next_url}, "results": [TEMPO_ENTRY]}
                )
            return httpx.Response(
                200, json={"metadata": {}, "results": [dict(TEMPO_ENTRY, tempoWorklogId=502)]}
            )

        async with TempoClient(
            "acc-1", "token", storage=storage_manager, transport=httpx.MockTransport(handler)
        ) as client:
            worklogs = await client.get_worklogs(date(2024, 1, 15), date(2024, 1, 16))

        assert [w.id for w in worklogs] == [501, 502]
        assert len(requests) == 2
        assert dict(requests[1].url.params) == {
            "from": "2024-01-15",
            "to": "2024-01-16",
            "offset": "1000",
            "limit": "1000",
        }

    @pytest.mark.asyncio
    async def test_save_creates_and_updates(self, storage_manager: StorageManager) -> None:
        """Test POST for new worklogs and PUT for existing ones."""
        handler = RecordingHandler(
            httpx.Response(200, json=TEMPO_ENTRY),
            httpx.Response(200, json=TEMPO_ENTRY),
        )
        record = TempoWorklog(
            issue_id=10001,
            author_account_id="acc-1",
            start_date=date(2024, 1, 15),
            start_time=time(9, 0),
            time_spent_seconds=3600,
        )

        async with TempoClient(
            "acc-1", "token", storage=storage_manager, transport=handler.transport
        ) as client:
            await client.save_worklogs([record])
            assert record.id == 501
            await client.save_worklogs([record])

        create, update = handler.requests
        assert create.method == "POST"
        assert create.url.path == "/4/worklogs"
        assert json.loads(create.content)["issueId"] == 10001
        assert update.method == "PUT"
        assert update.url.path == "/4/worklogs/501"

    @pytest.mark.asyncio
    async def test_delete(self, storage_manager: StorageManager) -> None:
        """Test deleting a worklog."""
        handler = RecordingHandler(httpx.Response(204))

        async with TempoClient(
            "acc-1", "token", storage=storage_manager, transport=handler.transport
        ) as client:
            await client.delete_worklogs([TempoWorklog(id=501)])
            with pytest.raises(ValueError):
                await client.delete_worklogs([TempoWorklog()])

        assert handler.requests[0].method == "DELETE"
        assert handler.requests[0].url.path == "/4/worklogs/501"
