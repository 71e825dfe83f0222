"""Project service — owner-scoped CRUD.

Learn: Every query filters on BOTH project id and the requester's user id.
A project owned by someone else is simply not found; guard_ownership()
re-checks the loaded row so the two cases can never diverge.
"""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from yarnlog.auth.ownership import guard_ownership
from yarnlog.db.models import Project, utcnow
from yarnlog.errors import NotFoundError, ServerError, ValidationError

logger = structlog.get_logger()

PROJECT_NOT_FOUND = "Project not found"

# Integer primary keys are 32-bit signed on Postgres. Ids outside this
# range cannot exist, and the driver would reject them before the query.
MAX_PROJECT_ID = 2**31 - 1


def _require_name(name: str | None) -> str:
    if not name:
        raise ValidationError("Project name is required")
    return name


class ProjectService:
    """Business logic for a user's projects."""

    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def list_projects(self) -> list[Project]:
        try:
            result = await self.db.execute(
                select(Project)
                .where(Project.user_id == self.user_id)
                .order_by(Project.created_at.desc(), Project.id.desc())
            )
        except SQLAlchemyError:
            logger.exception("projects.list_failed")
            raise ServerError("Server error fetching projects")
        return list(result.scalars().all())

    async def _load(self, project_id: int) -> Project:
        if not 1 <= project_id <= MAX_PROJECT_ID:
            raise NotFoundError(PROJECT_NOT_FOUND)
        result = await self.db.execute(
            select(Project).where(
                Project.id == project_id, Project.user_id == self.user_id
            )
        )
        return guard_ownership(
            result.scalars().first(), self.user_id, PROJECT_NOT_FOUND
        )

    async def get_project(self, project_id: int) -> Project:
        try:
            return await self._load(project_id)
        except SQLAlchemyError:
            logger.exception("projects.get_failed", project_id=project_id)
            raise ServerError("Server error fetching project")

    async def create_project(
        self, name: str | None, description: str | None = None
    ) -> Project:
        name = _require_name(name)
        project = Project(
            user_id=self.user_id, name=name, description=description or None
        )
        try:
            self.db.add(project)
            await self.db.commit()
            await self.db.refresh(project)
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("projects.create_failed")
            raise ServerError("Server error creating project")

        logger.info("projects.created", project_id=project.id)
        return project

    async def update_project(
        self, project_id: int, name: str | None, description: str | None = None
    ) -> Project:
        """Replace name and description. A missing description clears it."""
        name = _require_name(name)
        try:
            project = await self._load(project_id)
            project.name = name
            project.description = description
            project.updated_at = utcnow()
            await self.db.commit()
            await self.db.refresh(project)
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("projects.update_failed", project_id=project_id)
            raise ServerError("Server error updating project")

        logger.info("projects.updated", project_id=project.id)
        return project

    async def delete_project(self, project_id: int) -> None:
        try:
            project = await self._load(project_id)
            await self.db.delete(project)
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            logger.exception("projects.delete_failed", project_id=project_id)
            raise ServerError("Server error deleting project")

        logger.info("projects.deleted", project_id=project_id)
