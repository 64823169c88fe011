"""Ticket system service - stored credentials for external ticket systems."""
from datetime import datetime, timezone

from timetracker.exceptions import InvalidInputError, NotFoundError
from timetracker.models.ticket_system import TicketSystem, TicketSystemCreate, TicketSystemUpdate
from timetracker.utils.ids import to_object_id

DEFAULT_TYPE = "jira"


class TicketSystemService:
    """Service for handling ticket system configurations (e.g. Jira credentials)."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.ticket_systems = db["ticket_systems"]
        self.projects = db["projects"]

    def _doc_to_ticket_system(self, doc: dict) -> TicketSystem:
        """Convert database document to TicketSystem model, hiding the secret."""
        return TicketSystem(
            _id=str(doc["_id"]),
            type=doc.get("type", DEFAULT_TYPE),
            name=doc.get("name", ""),
            username=doc.get("username", ""),
            url=doc.get("url"),
            has_secret=bool(doc.get("secret")),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _find_ticket_system(self, ticket_system_id: str) -> dict:
        object_id = to_object_id(ticket_system_id)
        doc = await self.ticket_systems.find_one({"_id": object_id}) if object_id else None
        if not doc:
            raise NotFoundError("Ticket system not found")
        return doc

    @staticmethod
    def _normalize_type(value) -> str:
        return (value or "").strip().lower() or DEFAULT_TYPE

    @staticmethod
    def _normalize_url(value):
        value = (value or "").strip()
        return value or None

    async def create_ticket_system(self, ticket_system_create: TicketSystemCreate) -> TicketSystem:
        """
        Create a ticket system configuration.

        Raises:
            InvalidInputError: If username or secret is missing
        """
        username = ticket_system_create.username.strip()
        secret = ticket_system_create.secret
        if not username:
            raise InvalidInputError('Field "username" is required')
        if not secret:
            raise InvalidInputError('Field "secret" is required')

        now = datetime.now(timezone.utc)
        doc = {
            "type": self._normalize_type(ticket_system_create.type),
            "name": ticket_system_create.name.strip(),
            "username": username,
            "secret": secret,
            "url": self._normalize_url(ticket_system_create.url),
            "created_at": now,
            "updated_at": now,
        }
        result = await self.ticket_systems.insert_one(doc)
        doc["_id"] = result.inserted_id

        return self._doc_to_ticket_system(doc)

    async def list_ticket_systems(self) -> list[TicketSystem]:
        cursor = self.ticket_systems.find({}).sort("name", 1)
        docs = await cursor.to_list(length=None)
        return [self._doc_to_ticket_system(doc) for doc in docs]

    async def get_ticket_system(self, ticket_system_id: str) -> TicketSystem:
        return self._doc_to_ticket_system(await self._find_ticket_system(ticket_system_id))

    async def update_ticket_system(
        self,
        ticket_system_id: str,
        ticket_system_update: TicketSystemUpdate,
    ) -> TicketSystem:
        """
        Update a ticket system configuration with partial data.

        Raises:
            NotFoundError: If the configuration does not exist
            InvalidInputError: If username or secret would become empty
        """
        existing = await self._find_ticket_system(ticket_system_id)
        fields = ticket_system_update.model_fields_set

        update_doc = {"updated_at": datetime.now(timezone.utc)}
        if "type" in fields:
            update_doc["type"] = self._normalize_type(ticket_system_update.type)
        if "name" in fields:
            update_doc["name"] = (ticket_system_update.name or "").strip()
        if "username" in fields:
            username = (ticket_system_update.username or "").strip()
            if not username:
                raise InvalidInputError('Field "username" must not be empty')
            update_doc["username"] = username
        if "secret" in fields:
            if not ticket_system_update.secret:
                raise InvalidInputError('Field "secret" must not be empty')
            update_doc["secret"] = ticket_system_update.secret
        if "url" in fields:
            update_doc["url"] = self._normalize_url(ticket_system_update.url)

        updated_doc = await self.ticket_systems.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": update_doc},
            return_document=True,
        )
        if not updated_doc:
            raise NotFoundError("Ticket system not found")

        return self._doc_to_ticket_system(updated_doc)

    async def delete_ticket_system(self, ticket_system_id: str) -> dict:
        """
        Delete a ticket system configuration no project links to.

        Raises:
            NotFoundError: If the configuration does not exist
            InvalidInputError: If projects still link to it
        """
        existing = await self._find_ticket_system(ticket_system_id)

        project_count = await self.projects.count_documents(
            {"ticket_system_id": str(existing["_id"])}
        )
        if project_count:
            raise InvalidInputError(
                f"Ticket system is still linked to {project_count} project(s)"
            )

        result = await self.ticket_systems.delete_one({"_id": existing["_id"]})
        return {"deleted_count": result.deleted_count}
