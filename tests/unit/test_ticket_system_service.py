"""Tests for TicketSystemService."""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from bson import ObjectId


def ticket_system_doc(**fields):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return {
        "_id": ObjectId(),
        "type": "jira",
        "name": "Company Jira",
        "username": "dev@example.com",
        "secret": "token-123",
        "url": "https://example.atlassian.net",
        "created_at": now,
        "updated_at": now,
        **fields,
    }


@pytest.mark.asyncio
class TestTicketSystemService:
    """Tests for ticket system configurations."""

    async def test_create_normalizes_and_hides_secret(self, make_mock_db):
        from timetracker.models.ticket_system import TicketSystemCreate
        from timetracker.services.ticket_system_service import TicketSystemService

        ticket_systems = AsyncMock()
        ticket_systems.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        service = TicketSystemService(make_mock_db(ticket_systems=ticket_systems))

        ticket_system = await service.create_ticket_system(TicketSystemCreate(
            type=" JIRA ",
            name="Company Jira",
            username="dev@example.com",
            secret="token-123",
            url="  ",
        ))

        assert ticket_system.type == "jira"
        assert ticket_system.url is None
        assert ticket_system.has_secret is True
        assert "secret" not in ticket_system.model_dump(by_alias=True)
        stored = ticket_systems.insert_one.call_args[0][0]
        assert stored["secret"] == "token-123"

    async def test_create_defaults_type_to_jira(self, make_mock_db):
        from timetracker.models.ticket_system import TicketSystemCreate
        from timetracker.services.ticket_system_service import TicketSystemService

        ticket_systems = AsyncMock()
        ticket_systems.insert_one.return_value = MagicMock(inserted_id=ObjectId())
        service = TicketSystemService(make_mock_db(ticket_systems=ticket_systems))

        ticket_system = await service.create_ticket_system(
            TicketSystemCreate(type="", username="dev", secret="x")
        )

        assert ticket_system.type == "jira"

    @pytest.mark.parametrize("username,secret,field", [
        ("", "token", "username"),
        ("dev", "", "secret"),
    ])
    async def test_create_requires_credentials(self, make_mock_db, username, secret, field):
        from timetracker.exceptions import InvalidInputError
        from timetracker.models.ticket_system import TicketSystemCreate
        from timetracker.services.ticket_system_service import TicketSystemService

        service = TicketSystemService(make_mock_db())

        with pytest.raises(InvalidInputError, match=field):
            await service.create_ticket_system(
                TicketSystemCreate(username=username, secret=secret)
            )

    async def test_update_without_secret_keeps_it(self, make_mock_db):
        from timetracker.models.ticket_system import TicketSystemUpdate
        from timetracker.services.ticket_system_service import TicketSystemService

        existing = ticket_system_doc()
        ticket_systems = AsyncMock()
        ticket_systems.find_one.return_value = existing
        ticket_systems.find_one_and_update.return_value = {**existing, "name": "Jira Cloud"}
        service = TicketSystemService(make_mock_db(ticket_systems=ticket_systems))

        ticket_system = await service.update_ticket_system(
            str(existing["_id"]), TicketSystemUpdate(name="Jira Cloud")
        )

        assert ticket_system.name == "Jira Cloud"
        update = ticket_systems.find_one_and_update.call_args[0][1]["$set"]
        assert "secret" not in update

    async def test_delete_refused_while_linked(self, make_mock_db):
        from timetracker.exceptions import InvalidInputError
        from timetracker.services.ticket_system_service import TicketSystemService

        existing = ticket_system_doc()
        ticket_systems = AsyncMock()
        ticket_systems.find_one.return_value = existing
        projects = AsyncMock()
        projects.count_documents.return_value = 1
        service = TicketSystemService(make_mock_db(ticket_systems=ticket_systems, projects=projects))

        with pytest.raises(InvalidInputError, match="still linked"):
            await service.delete_ticket_system(str(existing["_id"]))

        ticket_systems.delete_one.assert_not_awaited()

    async def test_get_invalid_id(self, make_mock_db):
        from timetracker.exceptions import NotFoundError
        from timetracker.services.ticket_system_service import TicketSystemService

        service = TicketSystemService(make_mock_db())

        with pytest.raises(NotFoundError, match="Ticket system not found"):
            await service.get_ticket_system("nope")
