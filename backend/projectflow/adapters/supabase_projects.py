"""Supabase project repository (PostgREST over httpx)."""

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from projectflow.adapters.supabase_rest import SupabaseRestClient
from projectflow.ports.project_repository import (
    ProjectCreate,
    ProjectRecord,
    ProjectRepositoryError,
    ProjectUpdate,
)

logger = logging.getLogger(__name__)

PROJECTS_PATH = "/projects"


def _row_to_record(row: dict[str, Any]) -> ProjectRecord:
    try:
        return ProjectRecord(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description"),
            status=row.get("status") or "planning",
            progress=row.get("progress") or 0,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
    except (KeyError, ValidationError) as e:
        raise ProjectRepositoryError(f"Malformed project row: {e}") from e


def _single(data: Any) -> dict[str, Any] | None:
    if isinstance(data, list):
        return data[0] if data else None
    return data or None


class SupabaseProjectRepository(SupabaseRestClient):
    """ProjectRepository backed by the Supabase projects table."""

    error_class = ProjectRepositoryError

    async def create_project(self, project: ProjectCreate) -> ProjectRecord:
        """Insert a project row and return the stored record."""
        row = project.model_dump(exclude={"user_id"})
        owner = self.owner_id(project.user_id)
        if owner:
            row["user_id"] = owner
        data = _single(await self._request("POST", PROJECTS_PATH, json=row))
        if data is None:
            raise ProjectRepositoryError("Supabase returned no row for created project")
        record = _row_to_record(data)
        logger.info("Project stored", extra={"project_id": record.id})
        return record

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        data = _single(
            await self._request(
                "GET", PROJECTS_PATH, params={"select": "*", "id": f"eq.{project_id}"}
            )
        )
        return _row_to_record(data) if data else None

    async def list_projects(self) -> list[ProjectRecord]:
        """List projects, newest first."""
        data = await self._request(
            "GET", PROJECTS_PATH, params={"select": "*", "order": "created_at.desc"}
        )
        return [_row_to_record(row) for row in data or []]

    async def update_project(self, project_id: str, update: ProjectUpdate) -> ProjectRecord:
        """Apply a partial update.

        Raises:
            ProjectRepositoryError: If the project doesn't exist or the update fails
        """
        changes = update.model_dump(exclude_none=True)
        changes["updated_at"] = datetime.now(UTC).isoformat()
        data = _single(
            await self._request(
                "PATCH", PROJECTS_PATH, params={"id": f"eq.{project_id}"}, json=changes
            )
        )
        if data is None:
            raise ProjectRepositoryError(f"Project {project_id} not found", status_code=404)
        return _row_to_record(data)
