"""Voice session entity for voice task creation lifecycle."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Self
from uuid import uuid4

from projectflow.domain.entities.pending_task import PendingTask
from projectflow.domain.value_objects.project_context import ProjectContext


@dataclass
class VoiceSession:
    """One period of voice listening, optionally scoped to a project.

    Attributes:
        id: Unique session identifier ("session_<hex>")
        project_context: Project the session is scoped to, fixed for its life
        started_at: When the session started
        last_activity: Last accepted final fragment (for timeout)
        is_active: True until stopped, destroyed or replaced
        pending_tasks: Insertion-ordered task candidates, unique by id
    """

    id: str = field(default_factory=lambda: f"session_{uuid4().hex}")
    project_context: ProjectContext | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_active: bool = False
    pending_tasks: list[PendingTask] = field(default_factory=list)

    @classmethod
    def create(cls, project_context: ProjectContext | None = None) -> Self:
        """Create a new active session."""
        return cls(project_context=project_context, is_active=True)

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def deactivate(self) -> None:
        self.is_active = False

    def is_stale(self, timeout_ms: int) -> bool:
        """Check whether the session has been inactive longer than timeout_ms."""
        return datetime.now(UTC) - self.last_activity > timedelta(milliseconds=timeout_ms)

    def duration_ms(self) -> int:
        return int((datetime.now(UTC) - self.started_at).total_seconds() * 1000)

    def add_pending_task(self, task: PendingTask) -> None:
        """Append a task candidate.

        Raises:
            ValueError: If a candidate with the same id is already queued
        """
        if self.find_pending_task(task.id) is not None:
            raise ValueError(f"Pending task {task.id} already queued")
        self.pending_tasks.append(task)

    def find_pending_task(self, task_id: str) -> PendingTask | None:
        return next((t for t in self.pending_tasks if t.id == task_id), None)

    def remove_pending_task(self, task_id: str) -> PendingTask | None:
        """Remove a candidate by id, returning it (None when absent)."""
        task = self.find_pending_task(task_id)
        if task is not None:
            self.pending_tasks.remove(task)
        return task

    def clear_pending_tasks(self) -> None:
        self.pending_tasks.clear()
