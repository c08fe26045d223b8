"""Task details extracted from a spoken command."""

from dataclasses import dataclass

from projectflow.domain.value_objects.priority import Priority


@dataclass(frozen=True)
class TaskDetails:
    """Best-effort details parsed from raw command text.

    Attributes:
        title: Command text with command, priority and date phrases removed
        priority: Inferred priority (MEDIUM when nothing was said)
        due_date: Raw relative due date hint ("tomorrow", "friday", "3 days")
        description: Never inferred from text, kept for shape parity with
            extractor output
    """

    title: str | None = None
    priority: Priority = Priority.MEDIUM
    due_date: str | None = None
    description: str | None = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "due_date": self.due_date,
        }
