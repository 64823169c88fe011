"""Timestamp parsing and duration rounding for time bookings."""
import math
from datetime import datetime

from timetracker.exceptions import InvalidInputError

# Bookings are billed in quarter-hour increments
BILLING_INCREMENT_SECONDS = 900


def parse_timestamp(value: str, field: str) -> datetime:
    """
    Parse an ISO-8601 timestamp that carries a timezone.

    Args:
        value: Raw timestamp, e.g. ``2025-10-25T12:00:00Z``
        field: Field name used in the error message

    Returns:
        Timezone-aware datetime

    Raises:
        InvalidInputError: If the value is not ISO-8601 or has no timezone

    Examples:
        >>> parse_timestamp("2025-10-25T12:00:00+02:00", "startedAt").isoformat()
        '2025-10-25T12:00:00+02:00'
    """
    message = (
        f'Invalid date format for "{field}". Expected ISO 8601 with timezone, '
        f"e.g. 2025-10-25T12:00:00Z or 2025-10-25T12:00:00+02:00."
    )
    try:
        parsed = datetime.fromisoformat(str(value).strip())
    except ValueError:
        raise InvalidInputError(message)

    if parsed.tzinfo is None or parsed.utcoffset() is None:
        raise InvalidInputError(message)

    return parsed


def derive_duration_minutes(started_at: datetime, ended_at: datetime) -> int:
    """
    Derive the billable duration, rounded up to the next 15 minutes.

    Args:
        started_at: Start of the booking
        ended_at: End of the booking

    Returns:
        Duration in minutes (multiple of 15)

    Raises:
        InvalidInputError: If ended_at is not after started_at

    Examples:
        >>> from datetime import timezone
        >>> start = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)
        >>> derive_duration_minutes(start, start.replace(second=1))
        15
    """
    if ended_at <= started_at:
        raise InvalidInputError("endedAt must be after startedAt")

    # Whole seconds only; sub-second parts are not billed
    seconds = int(ended_at.timestamp()) - int(started_at.timestamp())
    minutes = math.ceil(seconds / BILLING_INCREMENT_SECONDS) * 15
    if minutes <= 0:
        raise InvalidInputError("endedAt must be after startedAt")

    return minutes


def intervals_overlap(
    start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime
) -> bool:
    """Check whether the half-open intervals [start_a, end_a) and [start_b, end_b) intersect."""
    return start_a < end_b and end_a > start_b
