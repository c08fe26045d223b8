"""Supabase task repository (PostgREST over httpx)."""

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from projectflow.adapters.supabase_rest import SupabaseRestClient
from projectflow.ports.task_repository import (
    TaskCreate,
    TaskRecord,
    TaskRepositoryError,
    TaskUpdate,
)

logger = logging.getLogger(__name__)

TASKS_PATH = "/tasks"


def _row_to_record(row: dict[str, Any]) -> TaskRecord:
    """Map a tasks row (title stored in the name column) to a TaskRecord."""
    try:
        return TaskRecord(
            id=str(row["id"]),
            title=row.get("name") or row.get("title") or "",
            description=row.get("description"),
            priority=row.get("priority") or "medium",
            status=row.get("status") or "todo",
            completed=bool(row.get("completed", False)),
            project_id=str(row["project_id"]) if row.get("project_id") else None,
            due_date=row.get("due_date"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
    except (KeyError, ValidationError) as e:
        raise TaskRepositoryError(f"Malformed task row: {e}") from e


class SupabaseTaskRepository(SupabaseRestClient):
    """TaskRepository backed by the Supabase tasks table."""

    async def create_task(self, task: TaskCreate) -> TaskRecord:
        """Insert a task row and return the stored record.

        user_id is only sent for a real user (see owner_id); placeholder
        ids such as "current-user" leave the column NULL.
        """
        row = {
            "name": task.title,
            "description": task.description,
            "priority": task.priority,
            "status": task.status,
            "completed": task.status == "completed",
            "project_id": task.project_id,
            "due_date": task.due_date,
        }
        owner = self.owner_id(task.user_id)
        if owner:
            row["user_id"] = owner
        data = await self._request("POST", TASKS_PATH, json=row)
        if not data:
            raise TaskRepositoryError("Supabase returned no row for created task")
        record = _row_to_record(data[0] if isinstance(data, list) else data)
        logger.info("Task stored", extra={"task_id": record.id, "project_id": record.project_id})
        return record

    async def list_tasks(self, project_id: str | None = None) -> list[TaskRecord]:
        """List tasks, newest first, optionally for one project."""
        params = {"select": "*", "order": "created_at.desc"}
        if project_id:
            params["project_id"] = f"eq.{project_id}"
        data = await self._request("GET", TASKS_PATH, params=params)
        return [_row_to_record(row) for row in data or []]

    async def update_task(self, task_id: str, update: TaskUpdate) -> TaskRecord:
        """Apply a partial update.

        Raises:
            TaskRepositoryError: If the task doesn't exist or the update fails
        """
        changes = update.model_dump(exclude_none=True)
        if "title" in changes:
            changes["name"] = changes.pop("title")
        changes["updated_at"] = datetime.now(UTC).isoformat()

        data = await self._request(
            "PATCH", TASKS_PATH, params={"id": f"eq.{task_id}"}, json=changes
        )
        if not data:
            raise TaskRepositoryError(f"Task {task_id} not found", status_code=404)
        return _row_to_record(data[0] if isinstance(data, list) else data)
