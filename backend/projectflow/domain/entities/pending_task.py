"""Pending task entity: a task candidate awaiting confirmation or auto-save."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Self

import ulid

from projectflow.domain.constants import CONFIRMATION_CONFIDENCE_THRESHOLD
from projectflow.domain.value_objects.priority import Priority


@dataclass(frozen=True)
class PendingTask:
    """Task candidate derived from one spoken command.

    Attributes:
        id: Unique id, "pending_<ulid>" or "pending_project_<ulid>"
        title: Task title (or "Create Project: <name>" for project candidates)
        description: Optional description
        priority: Task priority
        project_id: Project the task will be created in
        confidence: Recognizer confidence of the source fragment
        raw_speech_text: The fragment text the task was derived from
        timestamp: When the candidate was created
        needs_confirmation: Fixed at creation, never recomputed
        creates_project: True for project candidates
    """

    id: str
    title: str
    priority: Priority
    confidence: float
    raw_speech_text: str
    needs_confirmation: bool
    description: str | None = None
    project_id: str | None = None
    creates_project: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def create(
        cls,
        title: str,
        confidence: float,
        raw_speech_text: str,
        confirm_before_saving: bool,
        priority: Priority = Priority.MEDIUM,
        description: str | None = None,
        project_id: str | None = None,
    ) -> Self:
        """Create a task candidate, deciding whether it needs confirmation."""
        needs_confirmation = (
            confirm_before_saving or confidence < CONFIRMATION_CONFIDENCE_THRESHOLD
        )
        return cls(
            id=f"pending_{ulid.ULID()}",
            title=title,
            description=description,
            priority=priority,
            project_id=project_id,
            confidence=confidence,
            raw_speech_text=raw_speech_text,
            needs_confirmation=needs_confirmation,
        )

    @classmethod
    def create_project_candidate(
        cls,
        project_title: str,
        confidence: float,
        raw_speech_text: str,
        description: str | None = None,
    ) -> Self:
        """Create a project-creation candidate. Always needs confirmation."""
        return cls(
            id=f"pending_project_{ulid.ULID()}",
            title=f"Create Project: {project_title}",
            description=f"Create a new project: {description}" if description else "Create a new project",
            priority=Priority.HIGH,
            confidence=confidence,
            raw_speech_text=raw_speech_text,
            needs_confirmation=True,
            creates_project=True,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "project_id": self.project_id,
            "confidence": self.confidence,
            "raw_speech_text": self.raw_speech_text,
            "timestamp": self.timestamp.isoformat(),
            "needs_confirmation": self.needs_confirmation,
            "creates_project": self.creates_project,
        }
