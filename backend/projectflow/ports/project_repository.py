"""Port interface for project persistence."""

from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from projectflow.ports.task_repository import TaskRepositoryError

PROJECT_STATUSES = ("planning", "active", "on_hold", "completed", "cancelled")

_STATUS_PATTERN = "^(" + "|".join(PROJECT_STATUSES) + ")$"


class ProjectCreate(BaseModel):
    """Fields for a new project record."""

    name: str = Field(min_length=1)
    description: str | None = None
    status: str = Field(default="planning", pattern=_STATUS_PATTERN)
    progress: int = Field(default=0, ge=0, le=100)
    user_id: str | None = None


class ProjectUpdate(BaseModel):
    """Partial update of a project record. Unset fields are left untouched."""

    name: str | None = None
    description: str | None = None
    status: str | None = Field(default=None, pattern=_STATUS_PATTERN)
    progress: int | None = Field(default=None, ge=0, le=100)


class ProjectRecord(BaseModel):
    """A persisted project as returned by the gateway."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    description: str | None = None
    status: str = "planning"
    progress: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectRepositoryError(TaskRepositoryError):
    """Raised when the project gateway rejects or fails a request."""


@runtime_checkable
class ProjectRepository(Protocol):
    """Project persistence gateway.

    All methods raise ProjectRepositoryError on failure.
    """

    async def create_project(self, project: ProjectCreate) -> ProjectRecord:
        ...

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        ...

    async def list_projects(self) -> list[ProjectRecord]:
        ...

    async def update_project(self, project_id: str, update: ProjectUpdate) -> ProjectRecord:
        ...
