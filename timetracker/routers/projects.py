"""Project router - API endpoints for project management."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from timetracker.database import get_database
from timetracker.models.project import Project, ProjectCreate, ProjectUpdate
from timetracker.models.project_activity import (
    ProjectActivity,
    ProjectActivityAttach,
    ProjectActivityCreate,
)
from timetracker.routers.auth import get_current_user_id
from timetracker.routers.errors import to_http_exception
from timetracker.routers.project_activities import get_project_activity_service
from timetracker.services.project_activity_service import ProjectActivityService
from timetracker.services.project_service import ProjectService


router = APIRouter(
    prefix="/projects",
    tags=["projects"],
    dependencies=[Depends(get_current_user_id)],
)


def get_project_service(db=Depends(get_database)) -> ProjectService:
    """Dependency providing the project service."""
    return ProjectService(db)


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
async def create_project(
    project: ProjectCreate,
    service: ProjectService = Depends(get_project_service),
):
    """
    Create a new project.

    Raises:
        HTTPException: Invalid name/budget (400), unknown customer or ticket system (404)
    """
    try:
        return await service.create_project(project_create=project)
    except ValueError as e:
        raise to_http_exception(e, "create project")


@router.get("", response_model=list[Project])
async def list_projects(
    customer_id: Optional[str] = Query(None, alias="customerId", description="Filter by customer"),
    service: ProjectService = Depends(get_project_service),
):
    """List projects ordered by name."""
    return await service.list_projects(customer_id=customer_id)


@router.get("/{project_id}", response_model=Project)
async def get_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
):
    """Get a project by ID."""
    try:
        return await service.get_project(project_id)
    except ValueError as e:
        raise to_http_exception(e, "get project")


@router.patch("/{project_id}", response_model=Project)
@router.put("/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    project_update: ProjectUpdate,
    service: ProjectService = Depends(get_project_service),
):
    """
    Update a project.

    - Switching to fixed price re-derives the hourly rate from booked hours
    """
    try:
        return await service.update_project(project_id, project_update)
    except ValueError as e:
        raise to_http_exception(e, "update project")


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    service: ProjectService = Depends(get_project_service),
):
    """Delete a project and its time bookings."""
    try:
        return await service.delete_project(project_id)
    except ValueError as e:
        raise to_http_exception(e, "delete project")


@router.get("/{project_id}/activities", response_model=list[ProjectActivity])
async def list_project_activities(
    project_id: str,
    service: ProjectActivityService = Depends(get_project_activity_service),
):
    """List the activities linked to a project."""
    return await service.list_links(project_id=project_id)


@router.post(
    "/{project_id}/activities",
    response_model=ProjectActivity,
    status_code=status.HTTP_201_CREATED,
)
async def attach_activity(
    project_id: str,
    attach: ProjectActivityAttach,
    service: ProjectActivityService = Depends(get_project_activity_service),
):
    """
    Attach an activity to a project.

    - Attaching an already linked activity updates its factor
    """
    try:
        return await service.create_link(ProjectActivityCreate(
            project_id=project_id,
            activity_id=attach.activity_id,
            factor=attach.factor,
        ))
    except ValueError as e:
        raise to_http_exception(e, "attach activity")
