"""Pydantic schemas for projects.

Separate input schemas (Create/Update) from the Read schema. `name` is
optional on input so a missing name reaches ProjectService and fails
with "Project name is required" like an empty one.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProjectCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class ProjectRead(BaseModel):
    id: int
    user_id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectList(BaseModel):
    projects: list[ProjectRead]


class ProjectEnvelope(BaseModel):
    project: ProjectRead


class ProjectMutation(BaseModel):
    message: str
    project: ProjectRead


class MessageResponse(BaseModel):
    message: str
