"""Domain exceptions raised by the services.

Routers map them to status codes:

- ``InvalidInputError`` -> 400, ``OverlapError`` -> 409
- ``NotFoundError`` -> 404
- ``TicketSystemUnavailableError`` -> 500
- ``WorklogSyncError`` -> 502
"""


class InvalidInputError(ValueError):
    """Client input is malformed or violates a business rule."""


class OverlapError(InvalidInputError):
    """A booking would overlap another booking of the same user and project."""


class NotFoundError(ValueError):
    """A referenced document does not exist (or is not visible to the user)."""


class TicketSystemError(RuntimeError):
    """A call against an external ticket system failed."""


class TicketSystemUnavailableError(RuntimeError):
    """A project links a ticket system but no client can be built for it."""


class WorklogSyncError(RuntimeError):
    """External worklog state could not be brought in line with the booking."""
