"""Tests for the Jira worklog client."""
import json

import httpx
import pytest
from datetime import datetime, timedelta, timezone

BASE_URL = "https://example.atlassian.net"
STARTED = datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc)


def make_client(handler):
    from timetracker.ticket_systems.jira import JiraTicketSystemClient

    return JiraTicketSystemClient(
        base_url=BASE_URL + "/",
        username="dev@example.com",
        api_token="token-123",
        transport=httpx.MockTransport(handler),
    )


class TestJiraHelpers:
    """Tests for payload helpers."""

    def test_format_started_uses_utc(self):
        from timetracker.ticket_systems.jira import format_started

        local = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=1)))

        assert format_started(local) == "2024-01-01T11:00:00.000+0000"

    def test_time_spent_has_one_minute_floor(self):
        from timetracker.ticket_systems.jira import time_spent_seconds

        assert time_spent_seconds(0) == 60
        assert time_spent_seconds(90) == 5400

    def test_parse_started(self):
        from timetracker.ticket_systems.jira import parse_started

        assert parse_started("2024-01-01T11:00:00.000+0000") == STARTED
        assert parse_started("garbage") is None
        assert parse_started(None) is None

    def test_adf_comment(self):
        from timetracker.ticket_systems.jira import adf_comment

        doc = adf_comment("Pairing")

        assert doc["type"] == "doc"
        assert doc["content"][0]["content"][0]["text"] == "Pairing"


@pytest.mark.asyncio
class TestJiraCreateAndUpdate:
    """Tests for creating and updating worklogs."""

    async def test_create_worklog(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(201, json={"id": "10001"})

        worklog_id = await make_client(handler).create_worklog("PROJ-1", STARTED, 90)

        assert worklog_id == "10001"
        request = requests[0]
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/rest/api/3/issue/PROJ-1/worklog"
        assert request.headers["Authorization"].startswith("Basic ")
        assert json.loads(request.content) == {
            "started": "2024-01-01T11:00:00.000+0000",
            "timeSpentSeconds": 5400,
        }

    async def test_create_worklog_with_comment(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"id": 7})

        worklog_id = await make_client(handler).create_worklog("PROJ-1", STARTED, 15, comment="Review")

        assert worklog_id == "7"
        assert bodies[0]["comment"]["type"] == "doc"

    async def test_create_worklog_http_error(self):
        from timetracker.exceptions import TicketSystemError

        client = make_client(lambda request: httpx.Response(400, json={"errorMessages": ["bad"]}))

        with pytest.raises(TicketSystemError):
            await client.create_worklog("PROJ-1", STARTED, 15)

    async def test_create_worklog_without_id(self):
        from timetracker.exceptions import TicketSystemError

        client = make_client(lambda request: httpx.Response(201, json={}))

        with pytest.raises(TicketSystemError, match="worklog id"):
            await client.create_worklog("PROJ-1", STARTED, 15)

    async def test_create_worklog_network_error(self):
        from timetracker.exceptions import TicketSystemError

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TicketSystemError):
            await make_client(handler).create_worklog("PROJ-1", STARTED, 15)

    async def test_update_worklog(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"id": "10001"})

        await make_client(handler).update_worklog("PROJ-1", "10001", STARTED, 30)

        assert requests[0].method == "PUT"
        assert requests[0].url.path == "/rest/api/3/issue/PROJ-1/worklog/10001"
        assert json.loads(requests[0].content)["timeSpentSeconds"] == 1800

    async def test_update_worklog_error(self):
        from timetracker.exceptions import TicketSystemError

        client = make_client(lambda request: httpx.Response(500))

        with pytest.raises(TicketSystemError):
            await client.update_worklog("PROJ-1", "10001", STARTED, 30)


@pytest.mark.asyncio
class TestJiraDelete:
    """Tests for deleting worklogs."""

    async def test_delete_worklog(self):
        client = make_client(lambda request: httpx.Response(204))

        assert await client.delete_worklog("PROJ-1", "10001") is True

    async def test_delete_missing_worklog_counts_as_deleted(self):
        client = make_client(lambda request: httpx.Response(404))

        assert await client.delete_worklog("PROJ-1", "10001") is True

    async def test_delete_failure(self):
        client = make_client(lambda request: httpx.Response(403))

        assert await client.delete_worklog("PROJ-1", "10001") is False

    async def test_delete_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        assert await make_client(handler).delete_worklog("PROJ-1", "10001") is False

    async def test_list_worklogs_follows_pages(self):
        pages = {
            "0": {"total": 3, "worklogs": [{"id": "1"}, {"id": "2"}]},
            "2": {"total": 3, "worklogs": [{"id": "3"}]},
        }

        def handler(request):
            return httpx.Response(200, json=pages[request.url.params["startAt"]])

        worklogs = await make_client(handler).list_worklogs("PROJ-1")

        assert [w["id"] for w in worklogs] == ["1", "2", "3"]

    async def test_delete_by_signature_matches_start_and_duration(self):
        deleted = []

        def handler(request):
            if request.method == "GET":
                return httpx.Response(200, json={"total": 3, "worklogs": [
                    {"id": "1", "started": "2024-01-01T11:00:00.000+0000", "timeSpentSeconds": 1800},
                    {"id": "2", "started": "2024-01-01T12:00:00.000+0100", "timeSpentSeconds": 5400},
                    {"id": "3", "started": "2024-01-01T13:00:00.000+0000", "timeSpentSeconds": 5400},
                ]})
            deleted.append(request.url.path)
            return httpx.Response(204)

        result = await make_client(handler).delete_worklog_by_signature("PROJ-1", STARTED, 90)

        assert result is True
        assert deleted == ["/rest/api/3/issue/PROJ-1/worklog/2"]

    async def test_delete_by_signature_without_match(self):
        def handler(request):
            assert request.method == "GET"
            return httpx.Response(200, json={"total": 0, "worklogs": []})

        assert await make_client(handler).delete_worklog_by_signature("PROJ-1", STARTED, 90) is True

    async def test_delete_by_signature_lookup_failure(self):
        client = make_client(lambda request: httpx.Response(502))

        assert await client.delete_worklog_by_signature("PROJ-1", STARTED, 90) is False


class TestTicketSystemClientFactory:
    """Tests for building clients from stored configurations."""

    def test_builds_jira_client(self):
        from timetracker.ticket_systems.factory import TicketSystemClientFactory
        from timetracker.ticket_systems.jira import JiraTicketSystemClient

        client = TicketSystemClientFactory(timeout=5).for_ticket_system({
            "type": "Jira",
            "url": "https://example.atlassian.net",
            "username": "dev@example.com",
            "secret": "token-123",
        })

        assert isinstance(client, JiraTicketSystemClient)
        assert client.timeout == 5
        assert client.base_url == BASE_URL

    @pytest.mark.parametrize("config", [
        None,
        {"type": "redmine", "url": BASE_URL, "username": "dev", "secret": "x"},
        {"type": "jira", "url": "", "username": "dev", "secret": "x"},
        {"type": "jira", "url": BASE_URL, "username": "dev", "secret": ""},
    ])
    def test_unusable_configurations(self, config):
        from timetracker.ticket_systems.factory import TicketSystemClientFactory

        assert TicketSystemClientFactory(timeout=5).for_ticket_system(config) is None
