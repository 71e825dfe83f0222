"""Project API routes.

Learn: The whole router is mounted with get_current_identity as a
dependency (see api/__init__.py), and each handler also receives the
identity explicitly to build an owner-scoped ProjectService.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from yarnlog.auth.dependencies import CurrentIdentity, get_current_identity
from yarnlog.db.engine import get_db
from yarnlog.schemas.project import (
    MessageResponse,
    ProjectCreate,
    ProjectEnvelope,
    ProjectList,
    ProjectMutation,
    ProjectRead,
    ProjectUpdate,
)
from yarnlog.services.project_service import ProjectService

router = APIRouter(prefix="/projects")


def _svc(
    db: AsyncSession = Depends(get_db),
    identity: CurrentIdentity = Depends(get_current_identity),
) -> ProjectService:
    return ProjectService(db, user_id=identity.user_id)


@router.get("", response_model=ProjectList)
async def list_projects(svc: ProjectService = Depends(_svc)):
    projects = await svc.list_projects()
    return ProjectList(projects=[ProjectRead.model_validate(p) for p in projects])


@router.get("/{project_id}", response_model=ProjectEnvelope)
async def get_project(project_id: int, svc: ProjectService = Depends(_svc)):
    project = await svc.get_project(project_id)
    return ProjectEnvelope(project=ProjectRead.model_validate(project))


@router.post("", response_model=ProjectMutation, status_code=201)
async def create_project(body: ProjectCreate, svc: ProjectService = Depends(_svc)):
    project = await svc.create_project(name=body.name, description=body.description)
    return ProjectMutation(
        message="Project created successfully",
        project=ProjectRead.model_validate(project),
    )


@router.put("/{project_id}", response_model=ProjectMutation)
async def update_project(
    project_id: int,
    body: ProjectUpdate,
    svc: ProjectService = Depends(_svc),
):
    """Replace a project's name and description."""
    project = await svc.update_project(
        project_id, name=body.name, description=body.description
    )
    return ProjectMutation(
        message="Project updated successfully",
        project=ProjectRead.model_validate(project),
    )


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(project_id: int, svc: ProjectService = Depends(_svc)):
    await svc.delete_project(project_id)
    return MessageResponse(message="Project deleted successfully")
