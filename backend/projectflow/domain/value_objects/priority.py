"""Priority value object for voice-created tasks."""

from enum import StrEnum


class Priority(StrEnum):
    """Priority of a pending task.

    Records in storage may also carry "urgent"; voice-created tasks are
    limited to these three levels.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value: object) -> "Priority | None":
        """Parse a loosely-typed priority, returning None when unrecognized."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None
