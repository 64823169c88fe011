"""Activity service - business logic for activity management."""
from datetime import datetime, timezone
from typing import Optional

from timetracker.exceptions import InvalidInputError, NotFoundError
from timetracker.models.activity import Activity, ActivityCreate, ActivityUpdate
from timetracker.repositories.time_booking_repository import TimeBookingRepository
from timetracker.utils.ids import to_object_id


class ActivityService:
    """Service for handling activity operations."""

    def __init__(self, db, bookings: Optional[TimeBookingRepository] = None):
        """Initialize service with database connection."""
        self.db = db
        self.activities = db["activities"]
        self.project_activities = db["project_activities"]
        self.bookings = bookings if bookings is not None else TimeBookingRepository(db)

    def _doc_to_activity(self, doc: dict) -> Activity:
        return Activity(
            _id=str(doc["_id"]),
            name=doc["name"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _find_activity(self, activity_id: str) -> dict:
        object_id = to_object_id(activity_id)
        activity_doc = await self.activities.find_one({"_id": object_id}) if object_id else None
        if not activity_doc:
            raise NotFoundError("Activity not found")
        return activity_doc

    async def create_activity(self, activity_create: ActivityCreate) -> Activity:
        """Create a new activity (InvalidInputError on an empty name)."""
        name = activity_create.name.strip()
        if not name:
            raise InvalidInputError('Field "name" is required')

        now = datetime.now(timezone.utc)
        activity_doc = {"name": name, "created_at": now, "updated_at": now}
        result = await self.activities.insert_one(activity_doc)
        activity_doc["_id"] = result.inserted_id

        return self._doc_to_activity(activity_doc)

    async def list_activities(self) -> list[Activity]:
        cursor = self.activities.find({}).sort("name", 1)
        activity_docs = await cursor.to_list(length=None)
        return [self._doc_to_activity(doc) for doc in activity_docs]

    async def get_activity(self, activity_id: str) -> Activity:
        return self._doc_to_activity(await self._find_activity(activity_id))

    async def update_activity(self, activity_id: str, activity_update: ActivityUpdate) -> Activity:
        existing = await self._find_activity(activity_id)

        update_doc = {"updated_at": datetime.now(timezone.utc)}
        if "name" in activity_update.model_fields_set:
            name = (activity_update.name or "").strip()
            if not name:
                raise InvalidInputError('Field "name" must not be empty')
            update_doc["name"] = name

        updated_doc = await self.activities.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": update_doc},
            return_document=True,
        )
        if not updated_doc:
            raise NotFoundError("Activity not found")

        return self._doc_to_activity(updated_doc)

    async def delete_activity(self, activity_id: str) -> dict:
        """
        Delete an activity.

        Bookings referencing it keep existing without an activity; its project
        links are removed.
        """
        existing = await self._find_activity(activity_id)

        await self.bookings.clear_activity(str(existing["_id"]))
        await self.project_activities.delete_many({"activity_id": str(existing["_id"])})
        result = await self.activities.delete_one({"_id": existing["_id"]})

        return {"deleted_count": result.deleted_count}
