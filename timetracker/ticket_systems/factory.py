"""Build ticket system clients from stored configurations."""
import logging
from typing import Optional

import httpx

from timetracker.config import settings
from timetracker.ticket_systems.base import TicketSystemClient
from timetracker.ticket_systems.jira import JiraTicketSystemClient

logger = logging.getLogger(__name__)


class TicketSystemClientFactory:
    """Factory keyed by the ``type`` of a ticket system configuration."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout if timeout is not None else settings.ticket_system_timeout_seconds
        self.transport = transport

    def for_ticket_system(self, config: Optional[dict]) -> Optional[TicketSystemClient]:
        """
        Build a client for a ticket system document.

        Args:
            config: Ticket system document (type, url, username, secret)

        Returns:
            A client, or None if the type is unsupported or the configuration
            is incomplete
        """
        if not config:
            return None

        system_type = (config.get("type") or "").strip().lower()
        if system_type == "jira":
            return self._build_jira(config)

        logger.warning("Unsupported ticket system type %r (%s)", system_type, config.get("_id"))
        return None

    def _build_jira(self, config: dict) -> Optional[TicketSystemClient]:
        url = (config.get("url") or "").strip()
        username = (config.get("username") or "").strip()
        secret = config.get("secret") or ""
        if not url or not username or not secret:
            logger.warning(
                "Jira ticket system %s is missing url or credentials", config.get("_id")
            )
            return None

        return JiraTicketSystemClient(
            base_url=url,
            username=username,
            api_token=secret,
            timeout=self.timeout,
            transport=self.transport,
        )
