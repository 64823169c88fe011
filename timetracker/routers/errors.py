"""Translate service exceptions into HTTP errors."""
import logging

from fastapi import HTTPException, status

from timetracker.exceptions import (
    NotFoundError,
    OverlapError,
    TicketSystemUnavailableError,
    WorklogSyncError,
)

logger = logging.getLogger(__name__)


def to_http_exception(exc: Exception, action: str) -> HTTPException:
    """
    Map a service exception to an HTTPException and log it.

    Client errors are logged as warnings, integration failures as errors
    with traceback.

    Args:
        exc: Exception raised by a service
        action: What was attempted, e.g. "create time booking"

    Returns:
        HTTPException to raise
    """
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, OverlapError):
        logger.warning("Could not %s: %s", action, exc)
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, ValueError):
        logger.warning("Could not %s: %s", action, exc)
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    logger.error("Could not %s", action, exc_info=exc)
    if isinstance(exc, WorklogSyncError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, TicketSystemUnavailableError):
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        )
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Unexpected error. Please try again later.",
    )
