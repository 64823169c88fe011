"""Persistence for time bookings."""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from pymongo import DESCENDING, ReturnDocument

from timetracker.config import settings
from timetracker.utils.ids import to_object_id


class TimeBookingRepository:
    """MongoDB access for the ``time_bookings`` collection.

    References (user, project, activity) are stored as string ids.
    """

    def __init__(self, db):
        """Initialize repository with database connection."""
        self.db = db
        self.time_bookings = db["time_bookings"]

    async def find(self, booking_id) -> Optional[dict]:
        """Find a booking by id, None if missing or the id is malformed."""
        object_id = to_object_id(booking_id)
        if object_id is None:
            return None
        return await self.time_bookings.find_one({"_id": object_id})

    async def find_one_by(self, criteria: dict) -> Optional[dict]:
        """Find the first booking matching the criteria."""
        if "_id" in criteria:
            object_id = to_object_id(criteria["_id"])
            if object_id is None:
                return None
            criteria = {**criteria, "_id": object_id}
        return await self.time_bookings.find_one(criteria)

    async def find_by(self, criteria: dict) -> list[dict]:
        """List bookings matching the criteria, newest first."""
        cursor = self.time_bookings.find(criteria).sort(
            [("started_at", DESCENDING), ("_id", DESCENDING)]
        )
        return await cursor.to_list(length=None)

    async def save(self, booking: dict, session=None) -> dict:
        """
        Insert a new booking or replace an existing one.

        Args:
            booking: Booking document; inserted when it has no ``_id``
            session: Optional client session (transaction)

        Returns:
            The stored document (with ``_id``)
        """
        if booking.get("_id") is None:
            booking.pop("_id", None)
            result = await self.time_bookings.insert_one(booking, session=session)
            booking["_id"] = result.inserted_id
            return booking

        stored = await self.time_bookings.find_one_and_replace(
            {"_id": booking["_id"]},
            booking,
            session=session,
            return_document=ReturnDocument.AFTER,
        )
        if stored is None:
            raise LookupError(f"Time booking {booking['_id']} vanished while saving")
        return stored

    async def remove(self, booking_id, session=None) -> int:
        """Delete a booking; returns the number of deleted documents."""
        result = await self.time_bookings.delete_one(
            {"_id": to_object_id(booking_id)}, session=session
        )
        return result.deleted_count

    async def exists_overlap(
        self,
        user_id: str,
        project_id: str,
        start: datetime,
        end: datetime,
        exclude_id=None,
    ) -> bool:
        """
        Check for another booking of the user on the project intersecting [start, end).

        Two intervals overlap if ``existing.start < end`` and ``existing.end > start``.
        """
        query = {
            "user_id": user_id,
            "project_id": project_id,
            "started_at": {"$lt": end},
            "ended_at": {"$gt": start},
        }
        if exclude_id is not None:
            query["_id"] = {"$ne": to_object_id(exclude_id)}

        return await self.time_bookings.find_one(query, projection={"_id": 1}) is not None

    async def sum_minutes_by_project(self, project_id: str) -> int:
        """Total booked minutes of a project."""
        cursor = self.time_bookings.aggregate([
            {"$match": {"project_id": project_id}},
            {"$group": {"_id": None, "total": {"$sum": "$duration_minutes"}}},
        ])
        rows = await cursor.to_list(length=1)
        return int(rows[0]["total"]) if rows else 0

    async def delete_by_project(self, project_id: str) -> int:
        """Delete all bookings of a project."""
        result = await self.time_bookings.delete_many({"project_id": project_id})
        return result.deleted_count

    async def clear_activity(self, activity_id: str) -> int:
        """Unset an activity on every booking that references it."""
        result = await self.time_bookings.update_many(
            {"activity_id": activity_id},
            {"$set": {"activity_id": None}},
        )
        return result.modified_count

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator:
        """
        Run the enclosed writes in one MongoDB transaction.

        Yields the client session to pass to ``save``/``remove``. When
        transactions are disabled in the settings, yields None and the writes
        run without a session.
        """
        if not settings.mongodb_transactions:
            yield None
            return

        async with await self.db.client.start_session() as session:
            async with session.start_transaction():
                yield session
