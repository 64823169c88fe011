"""Integration tests for project and stats endpoints."""
import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from bson import ObjectId


@pytest.fixture
def mock_db(app_client, make_mock_db, fake_bookings):
    """Authenticated app with project and stats services on a mocked database."""
    from timetracker.main import app
    from timetracker.routers.auth import get_current_user_id
    from timetracker.routers.projects import get_project_service
    from timetracker.routers.stats import get_stats_service
    from timetracker.services.project_service import ProjectService
    from timetracker.services.stats_service import StatsService

    db = make_mock_db(customers=AsyncMock(), projects=AsyncMock(), ticket_systems=AsyncMock())
    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    app.dependency_overrides[get_project_service] = lambda: ProjectService(db, bookings=fake_bookings)
    app.dependency_overrides[get_stats_service] = lambda: StatsService(db)
    return db


@pytest.mark.asyncio
class TestProjectEndpoints:
    """Tests for /projects."""

    async def test_create_time_and_material_project(self, app_client, mock_db):
        customer_id = ObjectId()
        mock_db["customers"].find_one.return_value = {"_id": customer_id, "name": "ACME"}
        mock_db["projects"].insert_one.return_value = MagicMock(inserted_id=ObjectId())

        response = await app_client.post("/projects", json={
            "name": "Support",
            "customerId": str(customer_id),
            "budgetType": "tm",
            "hourlyRate": 80,
        })

        assert response.status_code == 201
        data = response.json()
        assert data["budgetType"] == "tm"
        assert data["customerId"] == str(customer_id)
        assert data["budget"] is None
        assert "hourlyRate" in data

    async def test_missing_rate_is_bad_request(self, app_client, mock_db):
        mock_db["customers"].find_one.return_value = {"_id": ObjectId(), "name": "ACME"}

        response = await app_client.post("/projects", json={
            "name": "Support",
            "customerId": str(ObjectId()),
            "budgetType": "tm",
        })

        assert response.status_code == 400
        assert response.json()["detail"] == "hourlyRate required for Time & Material"

    async def test_unknown_project_is_not_found(self, app_client, mock_db):
        mock_db["projects"].find_one.return_value = None

        response = await app_client.get(f"/projects/{ObjectId()}")

        assert response.status_code == 404

    async def test_requires_authentication(self, app_client):
        response = await app_client.get("/projects")

        assert response.status_code == 401


@pytest.mark.asyncio
class TestStatsEndpoint:
    """Tests for /stats."""

    async def test_overview_for_last_month(self, app_client, mock_db):
        empty_cursor = MagicMock()
        empty_cursor.to_list = AsyncMock(return_value=[])
        mock_db["time_bookings"].aggregate = MagicMock(return_value=empty_cursor)
        mock_db["projects"].find = MagicMock(return_value=empty_cursor)

        response = await app_client.get("/stats", params={"period": "last_month"})

        assert response.status_code == 200
        data = response.json()
        assert data["period"] == "last_month"
        assert data["items"] == []
        assert data["totals"] == {"minutes": 0, "hours": 0.0, "revenue": 0.0}
        start = datetime.fromisoformat(data["start"])
        assert start.day == 1
        assert start < datetime.fromisoformat(data["end"]) <= datetime.now(timezone.utc)


@pytest.mark.asyncio
class TestProjectActivityEndpoints:
    """Tests for /projects/{id}/activities and /project-activities."""

    @pytest.fixture
    def links_db(self, app_client, make_mock_db):
        from timetracker.main import app
        from timetracker.routers.auth import get_current_user_id
        from timetracker.routers.project_activities import get_project_activity_service
        from timetracker.services.project_activity_service import ProjectActivityService

        db = make_mock_db(projects=AsyncMock(), activities=AsyncMock(), project_activities=AsyncMock())
        app.dependency_overrides[get_current_user_id] = lambda: "user-1"
        app.dependency_overrides[get_project_activity_service] = lambda: ProjectActivityService(db)
        return db

    async def test_attach_activity_with_default_factor(self, app_client, links_db):
        project_id, activity_id = ObjectId(), ObjectId()
        links_db["projects"].find_one.return_value = {"_id": project_id}
        links_db["activities"].find_one.return_value = {"_id": activity_id}
        links_db["project_activities"].find_one.return_value = None
        links_db["project_activities"].insert_one.return_value = MagicMock(inserted_id=ObjectId())

        response = await app_client.post(
            f"/projects/{project_id}/activities", json={"activityId": str(activity_id)}
        )

        assert response.status_code == 201
        data = response.json()
        assert data["projectId"] == str(project_id)
        assert data["activityId"] == str(activity_id)
        assert data["factor"] == 1.0

    async def test_attach_unknown_activity_is_not_found(self, app_client, links_db):
        links_db["projects"].find_one.return_value = {"_id": ObjectId()}
        links_db["activities"].find_one.return_value = None

        response = await app_client.post(
            f"/projects/{ObjectId()}/activities", json={"activityId": str(ObjectId())}
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Activity not found"

    async def test_missing_ids_is_bad_request(self, app_client, links_db):
        response = await app_client.post("/project-activities", json={"factor": 2})

        assert response.status_code == 400
