"""Customer service - business logic for customer management."""
from datetime import datetime, timezone

from timetracker.exceptions import InvalidInputError, NotFoundError
from timetracker.models.customer import Customer, CustomerCreate, CustomerUpdate
from timetracker.utils.ids import to_object_id


class CustomerService:
    """Service for handling customer operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.customers = db["customers"]
        self.projects = db["projects"]

    def _doc_to_customer(self, doc: dict) -> Customer:
        return Customer(
            _id=str(doc["_id"]),
            name=doc["name"],
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def _find_customer(self, customer_id: str) -> dict:
        object_id = to_object_id(customer_id)
        customer_doc = await self.customers.find_one({"_id": object_id}) if object_id else None
        if not customer_doc:
            raise NotFoundError("Customer not found")
        return customer_doc

    async def create_customer(self, customer_create: CustomerCreate) -> Customer:
        """
        Create a new customer.

        Raises:
            InvalidInputError: If the name is empty
        """
        name = customer_create.name.strip()
        if not name:
            raise InvalidInputError('Field "name" is required')

        now = datetime.now(timezone.utc)
        customer_doc = {"name": name, "created_at": now, "updated_at": now}
        result = await self.customers.insert_one(customer_doc)
        customer_doc["_id"] = result.inserted_id

        return self._doc_to_customer(customer_doc)

    async def list_customers(self) -> list[Customer]:
        """List customers ordered by name."""
        cursor = self.customers.find({}).sort("name", 1)
        customer_docs = await cursor.to_list(length=None)
        return [self._doc_to_customer(doc) for doc in customer_docs]

    async def get_customer(self, customer_id: str) -> Customer:
        """Get a customer by ID."""
        return self._doc_to_customer(await self._find_customer(customer_id))

    async def update_customer(self, customer_id: str, customer_update: CustomerUpdate) -> Customer:
        """
        Update a customer.

        Raises:
            NotFoundError: If the customer does not exist
            InvalidInputError: If the new name is empty
        """
        existing = await self._find_customer(customer_id)

        update_doc = {"updated_at": datetime.now(timezone.utc)}
        if "name" in customer_update.model_fields_set:
            name = (customer_update.name or "").strip()
            if not name:
                raise InvalidInputError('Field "name" must not be empty')
            update_doc["name"] = name

        updated_doc = await self.customers.find_one_and_update(
            {"_id": existing["_id"]},
            {"$set": update_doc},
            return_document=True,
        )
        if not updated_doc:
            raise NotFoundError("Customer not found")

        return self._doc_to_customer(updated_doc)

    async def delete_customer(self, customer_id: str) -> dict:
        """
        Delete a customer that no longer has projects.

        Raises:
            NotFoundError: If the customer does not exist
            InvalidInputError: If projects still reference the customer
        """
        existing = await self._find_customer(customer_id)

        project_count = await self.projects.count_documents({"customer_id": str(existing["_id"])})
        if project_count:
            raise InvalidInputError(
                f"Customer still has {project_count} project(s); delete them first"
            )

        result = await self.customers.delete_one({"_id": existing["_id"]})
        return {"deleted_count": result.deleted_count}
