"""In-memory project repository for development and testing."""

from datetime import UTC, datetime
from uuid import uuid4

from projectflow.ports.project_repository import (
    ProjectCreate,
    ProjectRecord,
    ProjectRepositoryError,
    ProjectUpdate,
)


class InMemoryProjectRepository:
    """ProjectRepository implementation holding records in a dict."""

    def __init__(self, projects: list[ProjectRecord] | None = None) -> None:
        self._projects: dict[str, ProjectRecord] = {p.id: p for p in projects or []}
        self.created: list[ProjectCreate] = []

    async def create_project(self, project: ProjectCreate) -> ProjectRecord:
        now = datetime.now(UTC)
        record = ProjectRecord(
            id=str(uuid4()),
            **project.model_dump(exclude={"user_id"}),
            created_at=now,
            updated_at=now,
        )
        self._projects[record.id] = record
        self.created.append(project)
        return record

    async def get_project(self, project_id: str) -> ProjectRecord | None:
        return self._projects.get(project_id)

    async def list_projects(self) -> list[ProjectRecord]:
        return sorted(
            self._projects.values(),
            key=lambda p: p.created_at or datetime.min.replace(tzinfo=UTC),
            reverse=True,
        )

    async def update_project(self, project_id: str, update: ProjectUpdate) -> ProjectRecord:
        existing = self._projects.get(project_id)
        if existing is None:
            raise ProjectRepositoryError(f"Project {project_id} not found", status_code=404)
        changes = update.model_dump(exclude_none=True)
        changes["updated_at"] = datetime.now(UTC)
        record = existing.model_copy(update=changes)
        self._projects[project_id] = record
        return record

    async def close(self) -> None:
        pass
