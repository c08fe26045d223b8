# Ports layer - Abstract interfaces (Protocols)

from .llm_service import (
    CreateProjectIntent,
    CreateTaskIntent,
    IntentExtractor,
    IntentResult,
    LLMRateLimitError,
    LLMServiceError,
    LLMTimeoutError,
    ProjectIntentData,
    QueryIntent,
    TaskIntentData,
    UnknownIntent,
)
from .project_repository import (
    ProjectCreate,
    ProjectRecord,
    ProjectRepository,
    ProjectRepositoryError,
    ProjectUpdate,
)
from .speech import (
    SpeechNotSupportedError,
    SpeechRecognizer,
    TranscriptListener,
    TranscriptSource,
)
from .task_repository import (
    TaskCreate,
    TaskRecord,
    TaskRepository,
    TaskRepositoryError,
    TaskUpdate,
)

__all__ = [
    "IntentExtractor",
    "IntentResult",
    "CreateTaskIntent",
    "CreateProjectIntent",
    "QueryIntent",
    "UnknownIntent",
    "TaskIntentData",
    "ProjectIntentData",
    "LLMServiceError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "SpeechNotSupportedError",
    "SpeechRecognizer",
    "TranscriptListener",
    "TranscriptSource",
    "TaskCreate",
    "TaskUpdate",
    "TaskRecord",
    "TaskRepository",
    "TaskRepositoryError",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectRecord",
    "ProjectRepository",
    "ProjectRepositoryError",
]
