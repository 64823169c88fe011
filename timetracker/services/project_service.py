"""Project service - business logic for project management."""
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from timetracker.exceptions import InvalidInputError, NotFoundError
from timetracker.models.project import BudgetType, Project, ProjectCreate, ProjectUpdate
from timetracker.repositories.time_booking_repository import TimeBookingRepository
from timetracker.utils.billing import derive_hourly_rate, money_to_str
from timetracker.utils.ids import to_object_id

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for handling project operations."""

    def __init__(self, db, bookings: Optional[TimeBookingRepository] = None):
        """Initialize service with database connection."""
        self.db = db
        self.projects = db["projects"]
        self.customers = db["customers"]
        self.ticket_systems = db["ticket_systems"]
        self.project_activities = db["project_activities"]
        self.bookings = bookings if bookings is not None else TimeBookingRepository(db)

    def _doc_to_project(self, doc: dict) -> Project:
        """
        Convert database document to Project model.

        Money fields are stored as two-decimal strings.
        """
        return Project(
            _id=str(doc["_id"]),
            name=doc["name"],
            customer_id=doc["customer_id"],
            ticket_system_id=doc.get("ticket_system_id"),
            budget_type=doc.get("budget_type", BudgetType.NONE.value),
            budget=doc.get("budget"),
            hourly_rate=doc.get("hourly_rate"),
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _find_project(self, project_id: str) -> dict:
        object_id = to_object_id(project_id)
        project_doc = await self.projects.find_one({"_id": object_id}) if object_id else None
        if not project_doc:
            raise NotFoundError("Project not found")
        return project_doc

    async def _resolve_customer_id(self, customer_id: Optional[str]) -> str:
        object_id = to_object_id(customer_id) if customer_id else None
        customer = await self.customers.find_one({"_id": object_id}) if object_id else None
        if not customer:
            raise NotFoundError("Customer not found")
        return str(customer["_id"])

    async def _resolve_ticket_system_id(self, ticket_system_id: Optional[str]) -> Optional[str]:
        """Empty values unlink the ticket system."""
        if not ticket_system_id or not str(ticket_system_id).strip():
            return None
        object_id = to_object_id(ticket_system_id)
        ticket_system = await self.ticket_systems.find_one({"_id": object_id}) if object_id else None
        if not ticket_system:
            raise NotFoundError("Ticket system not found")
        return str(ticket_system["_id"])

    async def _apply_budget_fields(
        self,
        project_doc: dict,
        data: Union[ProjectCreate, ProjectUpdate],
        fields: set[str],
    ) -> None:
        """
        Apply budget related fields and enforce the billing rules.

        Rules:
        - none: budget and hourly rate are cleared
        - tm: budget is cleared, an hourly rate is required
        - fixed_price: a budget is required, the hourly rate is derived from
          the booked hours and any provided rate is ignored

        Raises:
            InvalidInputError: If a required amount is missing or negative
        """
        if "budget_type" in fields and data.budget_type is not None:
            project_doc["budget_type"] = BudgetType(data.budget_type).value
        budget_type = project_doc.get("budget_type") or BudgetType.NONE.value

        if budget_type == BudgetType.NONE.value:
            project_doc["budget"] = None
            project_doc["hourly_rate"] = None
            return

        if budget_type == BudgetType.TM.value:
            project_doc["budget"] = None
            if "hourly_rate" in fields:
                if data.hourly_rate is None:
                    raise InvalidInputError("hourlyRate required for Time & Material")
                project_doc["hourly_rate"] = self._non_negative(data.hourly_rate, "hourlyRate")
            if project_doc.get("hourly_rate") is None:
                raise InvalidInputError("hourlyRate required for Time & Material")
            return

        # fixed price
        if "budget" in fields:
            if data.budget is None:
                raise InvalidInputError("budget required for fixed price")
            project_doc["budget"] = self._non_negative(data.budget, "budget")
        if project_doc.get("budget") is None:
            raise InvalidInputError("budget required for fixed price")

        minutes = 0
        if project_doc.get("_id") is not None:
            minutes = await self.bookings.sum_minutes_by_project(str(project_doc["_id"]))
        rate = derive_hourly_rate(Decimal(project_doc["budget"]), minutes)
        project_doc["hourly_rate"] = money_to_str(rate)

    @staticmethod
    def _non_negative(value: Decimal, field: str) -> str:
        if value < 0:
            raise InvalidInputError(f"{field} must not be negative")
        return money_to_str(value)

    async def create_project(self, project_create: ProjectCreate) -> Project:
        """
        Create a new project.

        Args:
            project_create: Project creation data

        Returns:
            Created project object

        Raises:
            InvalidInputError: Empty name or budget rules violated
            NotFoundError: Customer or ticket system does not exist
        """
        name = project_create.name.strip()
        if not name:
            raise InvalidInputError('Field "name" is required')

        now = datetime.now(timezone.utc)
        project_doc = {
            "name": name,
            "customer_id": await self._resolve_customer_id(project_create.customer_id),
            "ticket_system_id": await self._resolve_ticket_system_id(
                project_create.ticket_system_id
            ),
            "budget_type": BudgetType.NONE.value,
            "budget": None,
            "hourly_rate": None,
            "created_at": now,
            "updated_at": now,
        }
        await self._apply_budget_fields(
            project_doc,
            project_create,
            project_create.model_fields_set | {"budget_type"},
        )

        result = await self.projects.insert_one(project_doc)
        project_doc["_id"] = result.inserted_id
        logger.info("Created project %s (%s)", project_doc["_id"], name)

        return self._doc_to_project(project_doc)

    async def list_projects(self, customer_id: Optional[str] = None) -> list[Project]:
        """
        List projects ordered by name.

        Args:
            customer_id: Optional customer filter

        Returns:
            List of projects
        """
        query = {}
        if customer_id:
            query["customer_id"] = customer_id

        cursor = self.projects.find(query).sort("name", 1)
        project_docs = await cursor.to_list(length=None)

        return [self._doc_to_project(doc) for doc in project_docs]

    async def get_project(self, project_id: str) -> Project:
        """Get a project by ID (NotFoundError if missing)."""
        return self._doc_to_project(await self._find_project(project_id))

    async def update_project(self, project_id: str, project_update: ProjectUpdate) -> Project:
        """
        Update a project with partial data.

        Args:
            project_id: Project ID
            project_update: Update data; ``ticketSystemId: null`` unlinks

        Returns:
            Updated project object

        Raises:
            NotFoundError: Project, customer or ticket system does not exist
            InvalidInputError: Empty name or budget rules violated
        """
        existing = await self._find_project(project_id)
        fields = project_update.model_fields_set
        project_doc = dict(existing)

        if "name" in fields:
            name = (project_update.name or "").strip()
            if not name:
                raise InvalidInputError('Field "name" must not be empty')
            project_doc["name"] = name
        if "customer_id" in fields:
            project_doc["customer_id"] = await self._resolve_customer_id(project_update.customer_id)
        if "ticket_system_id" in fields:
            project_doc["ticket_system_id"] = await self._resolve_ticket_system_id(
                project_update.ticket_system_id
            )

        await self._apply_budget_fields(project_doc, project_update, fields)

        update_doc = {
            key: project_doc.get(key)
            for key in ("name", "customer_id", "ticket_system_id", "budget_type", "budget", "hourly_rate")
        }
        update_doc["updated_at"] = datetime.now(timezone.utc)

        updated_doc = await self.projects.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": update_doc},
            return_document=True,
        )
        if not updated_doc:
            raise NotFoundError("Project not found")

        return self._doc_to_project(updated_doc)

    async def delete_project(self, project_id: str) -> dict:
        """
        Delete a project together with its time bookings and activity links.

        External worklogs of the bookings are left untouched.

        Returns:
            Dictionary with deleted_count and deleted_bookings
        """
        existing = await self._find_project(project_id)

        deleted_bookings = await self.bookings.delete_by_project(str(existing["_id"]))
        await self.project_activities.delete_many({"project_id": str(existing["_id"])})
        result = await self.projects.delete_one({"_id": existing["_id"]})
        logger.info(
            "Deleted project %s with %s time bookings", existing["_id"], deleted_bookings
        )

        return {"deleted_count": result.deleted_count, "deleted_bookings": deleted_bookings}
