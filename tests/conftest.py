"""Pytest configuration and fixtures."""
import os

# Settings are read at import time; give the required ones test values
os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("MONGODB_TRANSACTIONS", "false")

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

from timetracker.ticket_systems.base import TicketSystemClient
from timetracker.utils.ids import to_object_id
from timetracker.utils.timestamps import intervals_overlap


class FakeTimeBookingRepository:
    """In-memory stand-in for TimeBookingRepository.

    Set ``fail_on_save`` to an exception instance to make the next saves fail.
    """

    def __init__(self):
        self.docs: dict[ObjectId, dict] = {}
        self.fail_on_save = None
        self.transactions = 0

    def add(self, **fields) -> dict:
        doc = {"_id": ObjectId(), "activity_id": None, "worklog_id": None, **fields}
        self.docs[doc["_id"]] = dict(doc)
        return doc

    async def find(self, booking_id):
        object_id = to_object_id(booking_id)
        doc = self.docs.get(object_id) if object_id else None
        return dict(doc) if doc else None

    async def find_one_by(self, criteria: dict):
        criteria = dict(criteria)
        if "_id" in criteria:
            criteria["_id"] = to_object_id(criteria["_id"])
        for doc in self.docs.values():
            if all(doc.get(key) == value for key, value in criteria.items()):
                return dict(doc)
        return None

    async def find_by(self, criteria: dict):
        matches = [
            dict(doc) for doc in self.docs.values()
            if all(doc.get(key) == value for key, value in criteria.items())
        ]
        return sorted(matches, key=lambda doc: (doc["started_at"], doc["_id"]), reverse=True)

    async def save(self, booking: dict, session=None) -> dict:
        if self.fail_on_save is not None:
            raise self.fail_on_save
        if booking.get("_id") is None:
            booking["_id"] = ObjectId()
        self.docs[booking["_id"]] = dict(booking)
        return dict(booking)

    async def remove(self, booking_id, session=None) -> int:
        return 1 if self.docs.pop(to_object_id(booking_id), None) else 0

    async def exists_overlap(self, user_id, project_id, start, end, exclude_id=None) -> bool:
        exclude = to_object_id(exclude_id) if exclude_id is not None else None
        return any(
            doc["user_id"] == user_id
            and doc["project_id"] == project_id
            and doc["_id"] != exclude
            and intervals_overlap(doc["started_at"], doc["ended_at"], start, end)
            for doc in self.docs.values()
        )

    async def sum_minutes_by_project(self, project_id: str) -> int:
        return sum(
            doc["duration_minutes"] for doc in self.docs.values()
            if doc["project_id"] == project_id
        )

    async def delete_by_project(self, project_id: str) -> int:
        doomed = [key for key, doc in self.docs.items() if doc["project_id"] == project_id]
        for key in doomed:
            del self.docs[key]
        return len(doomed)

    async def clear_activity(self, activity_id: str) -> int:
        cleared = 0
        for doc in self.docs.values():
            if doc.get("activity_id") == activity_id:
                doc["activity_id"] = None
                cleared += 1
        return cleared

    @asynccontextmanager
    async def transaction(self):
        self.transactions += 1
        yield None


def _make_project(**fields) -> dict:
    """Project document with sensible defaults."""
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return {
        "_id": ObjectId(),
        "name": "Website Relaunch",
        "customer_id": str(ObjectId()),
        "ticket_system_id": None,
        "budget_type": "none",
        "budget": None,
        "hourly_rate": None,
        "created_at": now,
        "updated_at": now,
        **fields,
    }


def _make_mock_db(**collections) -> MagicMock:
    """MagicMock database whose collections are the given (or fresh) AsyncMocks."""
    registry = dict(collections)

    def get_collection(name):
        if name not in registry:
            registry[name] = AsyncMock()
        return registry[name]

    mock_db = MagicMock()
    mock_db.__getitem__.side_effect = get_collection
    return mock_db


def _lookup_by_id(*docs):
    """side_effect for find_one that resolves ``{"_id": ...}`` queries against docs."""
    by_id = {doc["_id"]: doc for doc in docs}

    def find_one(query, *args, **kwargs):
        return by_id.get(query.get("_id"))

    return find_one


@pytest.fixture
def fake_bookings():
    """In-memory booking repository."""
    return FakeTimeBookingRepository()


@pytest.fixture
def ticket_client():
    """Mocked ticket system client."""
    client = AsyncMock(spec=TicketSystemClient)
    client.create_worklog.return_value = "10001"
    client.delete_worklog.return_value = True
    client.delete_worklog_by_signature.return_value = True
    return client


@pytest.fixture
def client_factory(ticket_client):
    """Factory handing out the mocked ticket system client."""
    factory = MagicMock()
    factory.for_ticket_system.return_value = ticket_client
    return factory


@pytest_asyncio.fixture
async def app_client():
    """
    Create an HTTP client for the app without touching MongoDB.

    Tests override service dependencies through ``app.dependency_overrides``;
    the overrides are cleared afterwards.
    """
    from timetracker.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_project():
    """Builder for project documents."""
    return _make_project


@pytest.fixture
def make_mock_db():
    """Builder for mocked databases."""
    return _make_mock_db


@pytest.fixture
def lookup_by_id():
    """Builder for ``find_one`` side effects resolving documents by ``_id``."""
    return _lookup_by_id
