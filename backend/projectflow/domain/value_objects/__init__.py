"""Domain value objects - immutable objects without identity."""

from .priority import Priority
from .project_context import ProjectContext
from .recognition_config import RecognitionConfig
from .task_details import TaskDetails
from .transcript import RecognitionErrorKind, TranscriptFragment
from .voice_config import VoiceTaskCreationConfig
from .voice_status import VoiceStatus

__all__ = [
    "Priority",
    "ProjectContext",
    "RecognitionConfig",
    "RecognitionErrorKind",
    "TaskDetails",
    "TranscriptFragment",
    "VoiceStatus",
    "VoiceTaskCreationConfig",
]
