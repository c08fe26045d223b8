"""Port interface for task persistence."""

from datetime import datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from projectflow.domain.constants import TASK_PRIORITIES, TASK_STATUSES

_PRIORITY_PATTERN = "^(" + "|".join(TASK_PRIORITIES) + ")$"
_STATUS_PATTERN = "^(" + "|".join(TASK_STATUSES) + ")$"


class TaskCreate(BaseModel):
    """Fields for a new task record."""

    title: str = Field(min_length=1)
    description: str | None = None
    priority: str = Field(default="medium", pattern=_PRIORITY_PATTERN)
    status: str = Field(default="todo", pattern=_STATUS_PATTERN)
    project_id: str | None = None
    user_id: str | None = None
    due_date: str | None = None


class TaskUpdate(BaseModel):
    """Partial update of a task record. Unset fields are left untouched."""

    title: str | None = None
    description: str | None = None
    priority: str | None = Field(default=None, pattern=_PRIORITY_PATTERN)
    status: str | None = Field(default=None, pattern=_STATUS_PATTERN)
    completed: bool | None = None
    due_date: str | None = None


class TaskRecord(BaseModel):
    """A persisted task as returned by the gateway."""

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    description: str | None = None
    priority: str = "medium"
    status: str = "todo"
    completed: bool = False
    project_id: str | None = None
    due_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskRepositoryError(Exception):
    """Raised when the persistence gateway rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@runtime_checkable
class TaskRepository(Protocol):
    """Task persistence gateway.

    All methods raise TaskRepositoryError on failure.
    """

    async def create_task(self, task: TaskCreate) -> TaskRecord:
        ...

    async def list_tasks(self, project_id: str | None = None) -> list[TaskRecord]:
        ...

    async def update_task(self, task_id: str, update: TaskUpdate) -> TaskRecord:
        ...
