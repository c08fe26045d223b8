"""In-memory task repository for development and testing.

Use TASK_REPOSITORY=memory to enable. Nothing is persisted between restarts.
"""

from datetime import UTC, datetime
from uuid import uuid4

from projectflow.ports.task_repository import (
    TaskCreate,
    TaskRecord,
    TaskRepositoryError,
    TaskUpdate,
)


class InMemoryTaskRepository:
    """TaskRepository implementation holding records in a dict.

    This adapter is useful for:
    - Development without Supabase credentials
    - Tests (fail_next forces the next write to fail)
    """

    def __init__(self, tasks: list[TaskRecord] | None = None) -> None:
        self._tasks: dict[str, TaskRecord] = {t.id: t for t in tasks or []}
        self.created: list[TaskCreate] = []
        self.fail_next: Exception | None = None

    def _raise_if_failing(self) -> None:
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    async def create_task(self, task: TaskCreate) -> TaskRecord:
        self._raise_if_failing()
        now = datetime.now(UTC)
        record = TaskRecord(
            id=str(uuid4()),
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            completed=task.status == "completed",
            project_id=task.project_id,
            due_date=task.due_date,
            created_at=now,
            updated_at=now,
        )
        self._tasks[record.id] = record
        self.created.append(task)
        return record

    async def list_tasks(self, project_id: str | None = None) -> list[TaskRecord]:
        tasks = [t for t in self._tasks.values() if project_id is None or t.project_id == project_id]
        return sorted(tasks, key=lambda t: t.created_at or datetime.min.replace(tzinfo=UTC), reverse=True)

    async def update_task(self, task_id: str, update: TaskUpdate) -> TaskRecord:
        self._raise_if_failing()
        existing = self._tasks.get(task_id)
        if existing is None:
            raise TaskRepositoryError(f"Task {task_id} not found", status_code=404)
        changes = update.model_dump(exclude_none=True)
        changes["updated_at"] = datetime.now(UTC)
        record = existing.model_copy(update=changes)
        self._tasks[task_id] = record
        return record

    async def close(self) -> None:
        pass
