"""Port interface for LLM services (voice intent extraction)."""

from typing import Annotated, Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from projectflow.domain.value_objects.priority import Priority
from projectflow.domain.value_objects.project_context import ProjectContext


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class TaskIntentData(BaseModel):
    """Task fields extracted from a voice command."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    project_id: str | None = None

    @field_validator("title", "description", "project_id", mode="before")
    @classmethod
    def _strip_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _lenient_priority(cls, value: Any) -> Priority | None:
        # Unrecognized priorities fall back to the configured default
        return Priority.parse(value)


class ProjectIntentData(BaseModel):
    """Project fields extracted from a voice command."""

    model_config = ConfigDict(extra="ignore")

    title: str | None = None
    description: str | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def _strip_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class _IntentBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    clarification: str | None = None

    @field_validator("clarification", mode="before")
    @classmethod
    def _strip_blank(cls, value: Any) -> Any:
        return _blank_to_none(value)


class CreateTaskIntent(_IntentBase):
    intent: Literal["create_task"] = "create_task"
    data: TaskIntentData | None = None


class CreateProjectIntent(_IntentBase):
    intent: Literal["create_project"] = "create_project"
    data: ProjectIntentData | None = None


class QueryIntent(_IntentBase):
    intent: Literal["query"] = "query"


class UnknownIntent(_IntentBase):
    intent: Literal["unknown"] = "unknown"


IntentResult = Annotated[
    CreateTaskIntent | CreateProjectIntent | QueryIntent | UnknownIntent,
    Field(discriminator="intent"),
]

intent_result_adapter: TypeAdapter[IntentResult] = TypeAdapter(IntentResult)


@runtime_checkable
class IntentExtractor(Protocol):
    """LLM port interface for voice intent extraction.

    Implementations should:
    - Embed the raw text and optional project context in a single prompt
    - Return an IntentResult, never raise for model or parse failures
      (an UnknownIntent with a clarification is returned instead)
    """

    async def process_voice_input(
        self,
        text: str,
        project_context: ProjectContext | None = None,
    ) -> IntentResult:
        """Classify a spoken command and extract its structured data.

        Args:
            text: Raw recognized command text
            project_context: Project the command is spoken in, if any

        Returns:
            Structured intent result
        """
        ...


class LLMServiceError(Exception):
    """Base exception for LLM service errors."""

    pass


class LLMRateLimitError(LLMServiceError):
    """Raised when LLM API rate limit is exceeded."""

    pass


class LLMTimeoutError(LLMServiceError):
    """Raised when LLM request times out."""

    pass
