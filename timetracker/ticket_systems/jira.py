"""Jira Cloud worklog client (REST API v3)."""
import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote

import httpx

from timetracker.exceptions import TicketSystemError
from timetracker.ticket_systems.base import TicketSystemClient

logger = logging.getLogger(__name__)

JIRA_STARTED_FORMAT = "%Y-%m-%dT%H:%M:%S.000+0000"
PAGE_SIZE = 100


def format_started(started_at: datetime) -> str:
    """
    Format a timestamp the way Jira expects the worklog ``started`` field.

    Examples:
        >>> format_started(datetime(2024, 1, 1, 11, 0, tzinfo=timezone.utc))
        '2024-01-01T11:00:00.000+0000'
    """
    return started_at.astimezone(timezone.utc).strftime(JIRA_STARTED_FORMAT)


def parse_started(value) -> Optional[datetime]:
    """Parse Jira's ``started`` value; None if it cannot be read."""
    if not isinstance(value, str) or not value:
        return None
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def time_spent_seconds(minutes: int) -> int:
    """Jira rejects worklogs shorter than a minute."""
    return max(60, minutes * 60)


def adf_comment(text: str) -> dict:
    """Wrap plain text in an Atlassian Document Format document."""
    return {
        "type": "doc",
        "version": 1,
        "content": [
            {"type": "paragraph", "content": [{"type": "text", "text": text}]},
        ],
    }


class JiraTicketSystemClient(TicketSystemClient):
    """Worklog operations against a Jira site using basic auth (user + API token)."""

    def __init__(
        self,
        base_url: str,
        username: str,
        api_token: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.api_token = api_token
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            auth=(self.username, self.api_token),
            timeout=self.timeout,
            transport=self.transport,
            headers={"Accept": "application/json"},
        )

    @staticmethod
    def _worklog_path(issue_key: str, worklog_id: Optional[str] = None) -> str:
        path = f"/rest/api/3/issue/{quote(issue_key, safe='')}/worklog"
        if worklog_id is not None:
            path += f"/{quote(str(worklog_id), safe='')}"
        return path

    @staticmethod
    def _payload(started_at: datetime, minutes: int, comment: str) -> dict:
        payload = {
            "started": format_started(started_at),
            "timeSpentSeconds": time_spent_seconds(minutes),
        }
        if comment:
            payload["comment"] = adf_comment(comment)
        return payload

    async def create_worklog(
        self,
        issue_key: str,
        started_at: datetime,
        minutes: int,
        comment: str = "",
    ) -> str:
        try:
            async with self._client() as client:
                response = await client.post(
                    self._worklog_path(issue_key),
                    json=self._payload(started_at, minutes, comment),
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TicketSystemError(f"Jira worklog could not be created: {e}") from e

        worklog_id = str(data.get("id") or "")
        if not worklog_id:
            raise TicketSystemError("Jira did not return a worklog id")

        logger.info("Created Jira worklog %s on %s", worklog_id, issue_key)
        return worklog_id

    async def update_worklog(
        self,
        issue_key: str,
        worklog_id: str,
        started_at: datetime,
        minutes: int,
        comment: str = "",
    ) -> None:
        try:
            async with self._client() as client:
                response = await client.put(
                    self._worklog_path(issue_key, worklog_id),
                    json=self._payload(started_at, minutes, comment),
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise TicketSystemError(f"Jira worklog could not be updated: {e}") from e

        logger.info("Updated Jira worklog %s on %s", worklog_id, issue_key)

    async def delete_worklog(self, issue_key: str, worklog_id: str) -> bool:
        try:
            async with self._client() as client:
                response = await client.delete(self._worklog_path(issue_key, worklog_id))
        except httpx.HTTPError as e:
            logger.warning("Deleting Jira worklog %s on %s failed: %s", worklog_id, issue_key, e)
            return False

        if response.status_code == 404:
            logger.info("Jira worklog %s on %s already gone", worklog_id, issue_key)
            return True
        if response.is_success:
            logger.info("Deleted Jira worklog %s on %s", worklog_id, issue_key)
            return True

        logger.warning(
            "Deleting Jira worklog %s on %s failed with HTTP %s",
            worklog_id,
            issue_key,
            response.status_code,
        )
        return False

    async def list_worklogs(self, issue_key: str) -> list[dict]:
        """
        Fetch all worklogs of an issue, following Jira's pagination.

        Raises:
            TicketSystemError: On any remote or client error
        """
        worklogs: list[dict] = []
        start_at = 0
        try:
            async with self._client() as client:
                while True:
                    response = await client.get(
                        self._worklog_path(issue_key),
                        params={"startAt": start_at, "maxResults": PAGE_SIZE},
                    )
                    response.raise_for_status()
                    data = response.json()
                    page = data.get("worklogs") or []
                    worklogs.extend(page)
                    start_at += len(page)
                    if not page or start_at >= int(data.get("total", 0)):
                        break
        except (httpx.HTTPError, ValueError) as e:
            raise TicketSystemError(f"Jira worklogs could not be listed: {e}") from e

        return worklogs

    async def delete_worklog_by_signature(
        self,
        issue_key: str,
        started_at: datetime,
        minutes: int,
    ) -> bool:
        try:
            worklogs = await self.list_worklogs(issue_key)
        except TicketSystemError as e:
            logger.warning("Could not look up worklogs on %s: %s", issue_key, e)
            return False

        target_seconds = time_spent_seconds(minutes)
        for worklog in worklogs:
            started = parse_started(worklog.get("started"))
            if started is None or started.replace(microsecond=0) != started_at.replace(microsecond=0):
                continue
            if int(worklog.get("timeSpentSeconds") or 0) != target_seconds:
                continue
            worklog_id = str(worklog.get("id") or "")
            if worklog_id:
                return await self.delete_worklog(issue_key, worklog_id)

        # Nothing matches: treat as already deleted
        logger.info("No Jira worklog on %s matches %s / %s min", issue_key, started_at, minutes)
        return True
