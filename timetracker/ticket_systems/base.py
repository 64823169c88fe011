"""Abstraction for external ticket/worklog operations."""
from abc import ABC, abstractmethod
from datetime import datetime


class TicketSystemClient(ABC):
    """Client for the worklogs of one external ticket system."""

    @abstractmethod
    async def create_worklog(
        self,
        issue_key: str,
        started_at: datetime,
        minutes: int,
        comment: str = "",
    ) -> str:
        """
        Create a worklog on the external system.

        Args:
            issue_key: External ticket identifier, e.g. ``PROJ-123``
            started_at: When the work started
            minutes: Duration in minutes (> 0)
            comment: Optional comment

        Returns:
            External worklog id

        Raises:
            TicketSystemError: On any remote or client error
        """

    @abstractmethod
    async def update_worklog(
        self,
        issue_key: str,
        worklog_id: str,
        started_at: datetime,
        minutes: int,
        comment: str = "",
    ) -> None:
        """
        Update an existing worklog.

        Raises:
            TicketSystemError: On any remote or client error
        """

    @abstractmethod
    async def delete_worklog(self, issue_key: str, worklog_id: str) -> bool:
        """Delete a worklog. Returns True if deleted or already gone, False on failure."""

    @abstractmethod
    async def delete_worklog_by_signature(
        self,
        issue_key: str,
        started_at: datetime,
        minutes: int,
    ) -> bool:
        """
        Delete the worklog matching a start timestamp and duration.

        Used when the external id was never recorded. Returns True if a match
        was deleted or no match exists, False on failure.
        """
