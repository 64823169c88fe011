"""ObjectId helpers."""
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId


def to_object_id(value) -> Optional[ObjectId]:
    """
    Convert a string id to an ObjectId.

    Returns:
        The ObjectId, or None if the value is not a valid id

    Examples:
        >>> to_object_id("not-an-id") is None
        True
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None
