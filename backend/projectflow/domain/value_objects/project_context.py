"""Project context value object."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProjectContext:
    """The project a voice session is scoped to."""

    project_id: str
    project_name: str

    def to_dict(self) -> dict[str, str]:
        return {"project_id": self.project_id, "project_name": self.project_name}
