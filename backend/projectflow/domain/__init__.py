# Domain layer - Business logic (NO external dependencies beyond langgraph routing)

from .entities import PendingTask, VoiceSession
from .value_objects import (
    Priority,
    ProjectContext,
    RecognitionConfig,
    RecognitionErrorKind,
    TaskDetails,
    TranscriptFragment,
    VoiceStatus,
    VoiceTaskCreationConfig,
)

__all__ = [
    "PendingTask",
    "VoiceSession",
    "Priority",
    "ProjectContext",
    "RecognitionConfig",
    "RecognitionErrorKind",
    "TaskDetails",
    "TranscriptFragment",
    "VoiceStatus",
    "VoiceTaskCreationConfig",
]
