"""Project activity router - which activities a project offers."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from timetracker.database import get_database
from timetracker.models.project_activity import (
    ProjectActivity,
    ProjectActivityCreate,
    ProjectActivityUpdate,
)
from timetracker.routers.auth import get_current_user_id
from timetracker.routers.errors import to_http_exception
from timetracker.services.project_activity_service import ProjectActivityService


router = APIRouter(
    prefix="/project-activities",
    tags=["project-activities"],
    dependencies=[Depends(get_current_user_id)],
)


def get_project_activity_service(db=Depends(get_database)) -> ProjectActivityService:
    """Dependency providing the project activity service."""
    return ProjectActivityService(db)


@router.get("", response_model=list[ProjectActivity])
async def list_links(
    project_id: Optional[str] = Query(None, alias="projectId", description="Filter by project"),
    service: ProjectActivityService = Depends(get_project_activity_service),
):
    return await service.list_links(project_id=project_id)


@router.get("/{link_id}", response_model=ProjectActivity)
async def get_link(
    link_id: str,
    service: ProjectActivityService = Depends(get_project_activity_service),
):
    try:
        return await service.get_link(link_id)
    except ValueError as e:
        raise to_http_exception(e, "get project activity")


@router.post("", response_model=ProjectActivity, status_code=status.HTTP_201_CREATED)
async def create_link(
    link: ProjectActivityCreate,
    service: ProjectActivityService = Depends(get_project_activity_service),
):
    """
    Link an activity to a project.

    - An existing link for the same pair gets the new factor (default 1.0)
    """
    try:
        return await service.create_link(link)
    except ValueError as e:
        raise to_http_exception(e, "create project activity")


@router.patch("/{link_id}", response_model=ProjectActivity)
@router.put("/{link_id}", response_model=ProjectActivity)
async def update_link(
    link_id: str,
    link_update: ProjectActivityUpdate,
    service: ProjectActivityService = Depends(get_project_activity_service),
):
    try:
        return await service.update_link(link_id, link_update)
    except ValueError as e:
        raise to_http_exception(e, "update project activity")


@router.delete("/{link_id}")
async def delete_link(
    link_id: str,
    service: ProjectActivityService = Depends(get_project_activity_service),
):
    try:
        return await service.delete_link(link_id)
    except ValueError as e:
        raise to_http_exception(e, "delete project activity")
