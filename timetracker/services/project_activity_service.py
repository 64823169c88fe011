"""Project activity service - which activities a project offers, and at what factor."""
import logging
from datetime import datetime, timezone
from typing import Optional

from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError

from timetracker.exceptions import InvalidInputError, NotFoundError
from timetracker.models.project_activity import (
    DEFAULT_FACTOR,
    ProjectActivity,
    ProjectActivityCreate,
    ProjectActivityUpdate,
)
from timetracker.utils.ids import to_object_id

logger = logging.getLogger(__name__)


class ProjectActivityService:
    """Service for handling project activity links."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.project_activities = db["project_activities"]
        self.projects = db["projects"]
        self.activities = db["activities"]

    def _doc_to_link(self, doc: dict) -> ProjectActivity:
        return ProjectActivity(
            _id=str(doc["_id"]),
            project_id=doc["project_id"],
            activity_id=doc["activity_id"],
            factor=doc.get("factor", DEFAULT_FACTOR),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _find_link(self, link_id: str) -> dict:
        object_id = to_object_id(link_id)
        doc = await self.project_activities.find_one({"_id": object_id}) if object_id else None
        if not doc:
            raise NotFoundError("Project activity not found")
        return doc

    async def _resolve_project_id(self, project_id: str) -> str:
        object_id = to_object_id(project_id)
        project = await self.projects.find_one({"_id": object_id}) if object_id else None
        if not project:
            raise NotFoundError("Project not found")
        return str(project["_id"])

    async def _resolve_activity_id(self, activity_id: str) -> str:
        object_id = to_object_id(activity_id)
        activity = await self.activities.find_one({"_id": object_id}) if object_id else None
        if not activity:
            raise NotFoundError("Activity not found")
        return str(activity["_id"])

    @staticmethod
    def _factor(value: Optional[float]) -> float:
        if value is None:
            return DEFAULT_FACTOR
        if value < 0:
            raise InvalidInputError("factor must not be negative")
        return float(value)

    async def list_links(self, project_id: Optional[str] = None) -> list[ProjectActivity]:
        """
        List links in creation order.

        Args:
            project_id: Optional project filter
        """
        query = {"project_id": project_id} if project_id else {}
        cursor = self.project_activities.find(query).sort("_id", ASCENDING)
        docs = await cursor.to_list(length=None)
        return [self._doc_to_link(doc) for doc in docs]

    async def get_link(self, link_id: str) -> ProjectActivity:
        """Get a link by ID (NotFoundError if missing)."""
        return self._doc_to_link(await self._find_link(link_id))

    async def create_link(self, link_create: ProjectActivityCreate) -> ProjectActivity:
        """
        Link an activity to a project.

        If the pair is already linked, only its factor is updated. The factor
        defaults to 1.0.

        Raises:
            InvalidInputError: Missing ids or negative factor
            NotFoundError: Project or activity does not exist
        """
        if not link_create.project_id or not link_create.activity_id:
            raise InvalidInputError('Fields "projectId" and "activityId" are required')

        project_id = await self._resolve_project_id(link_create.project_id)
        activity_id = await self._resolve_activity_id(link_create.activity_id)
        factor = self._factor(link_create.factor)
        pair = {"project_id": project_id, "activity_id": activity_id}

        existing = await self.project_activities.find_one(pair)
        if existing:
            return await self._set_factor(existing, factor)

        now = datetime.now(timezone.utc)
        doc = {**pair, "factor": factor, "created_at": now, "updated_at": now}
        try:
            result = await self.project_activities.insert_one(doc)
        except DuplicateKeyError:
            # Linked concurrently
            existing = await self.project_activities.find_one(pair)
            if not existing:
                raise
            return await self._set_factor(existing, factor)

        doc["_id"] = result.inserted_id
        logger.info("Linked activity %s to project %s", activity_id, project_id)
        return self._doc_to_link(doc)

    async def _set_factor(self, existing: dict, factor: float) -> ProjectActivity:
        updated = await self.project_activities.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": {"factor": factor, "updated_at": datetime.now(timezone.utc)}},
            return_document=True,
        )
        if not updated:
            raise NotFoundError("Project activity not found")
        return self._doc_to_link(updated)

    async def update_link(self, link_id: str, link_update: ProjectActivityUpdate) -> ProjectActivity:
        """
        Update a link with partial data.

        Raises:
            NotFoundError: Link, project or activity does not exist
            InvalidInputError: Empty ids, negative factor, or the new pair is already linked
        """
        existing = await self._find_link(link_id)
        fields = link_update.model_fields_set

        update_doc = {"updated_at": datetime.now(timezone.utc)}
        if "project_id" in fields:
            if not link_update.project_id:
                raise InvalidInputError("projectId must not be empty")
            update_doc["project_id"] = await self._resolve_project_id(link_update.project_id)
        if "activity_id" in fields:
            if not link_update.activity_id:
                raise InvalidInputError("activityId must not be empty")
            update_doc["activity_id"] = await self._resolve_activity_id(link_update.activity_id)
        if "factor" in fields:
            update_doc["factor"] = self._factor(link_update.factor)

        pair = {
            "project_id": update_doc.get("project_id", existing["project_id"]),
            "activity_id": update_doc.get("activity_id", existing["activity_id"]),
        }
        clash = await self.project_activities.find_one({**pair, "_id": {"$ne": existing["_id"]}})
        if clash:
            raise InvalidInputError("Activity is already linked to this project")

        updated = await self.project_activities.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": update_doc},
            return_document=True,
        )
        if not updated:
            raise NotFoundError("Project activity not found")

        return self._doc_to_link(updated)

    async def delete_link(self, link_id: str) -> dict:
        """Delete a link (NotFoundError if missing)."""
        existing = await self._find_link(link_id)
        result = await self.project_activities.delete_one({"_id": existing["_id"]})
        return {"deleted_count": result.deleted_count}
