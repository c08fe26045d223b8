"""
Composition Root.

Centralized dependency wiring for the application.
All factory functions that instantiate adapters belong here to maintain
hexagonal architecture (domain NEVER imports from adapters).
"""

import logging

from projectflow.adapters.browser_recognizer import BrowserPushRecognizer
from projectflow.adapters.claude_adapter import ClaudeIntentAdapter
from projectflow.adapters.in_memory_projects import InMemoryProjectRepository
from projectflow.adapters.in_memory_tasks import InMemoryTaskRepository
from projectflow.adapters.speech_to_text import SpeechToTextService
from projectflow.adapters.supabase_projects import SupabaseProjectRepository
from projectflow.adapters.supabase_tasks import SupabaseTaskRepository
from projectflow.config import (
    get_task_repository_kind,
    get_voice_config,
    get_voice_language,
    get_voice_user_id,
)
from projectflow.domain.services.command_dispatcher import VoiceCommandDispatcher
from projectflow.domain.services.voice_task_creation import VoiceTaskCreationService
from projectflow.domain.value_objects.recognition_config import RecognitionConfig
from projectflow.ports.llm_service import IntentExtractor
from projectflow.ports.project_repository import ProjectRepository
from projectflow.ports.speech import SpeechRecognizer
from projectflow.ports.task_repository import TaskRepository

logger = logging.getLogger(__name__)


def create_intent_extractor() -> IntentExtractor:
    """Create the Claude intent extractor (reads ANTHROPIC_API_KEY)."""
    return ClaudeIntentAdapter()


def create_task_repository() -> TaskRepository:
    """Create the task repository selected by TASK_REPOSITORY.

    Raises:
        ValueError: If TASK_REPOSITORY is not supabase or memory
    """
    kind = get_task_repository_kind()
    if kind == "memory":
        logger.info("Using in-memory task repository")
        return InMemoryTaskRepository()
    if kind == "supabase":
        return SupabaseTaskRepository()
    raise ValueError(f"Invalid TASK_REPOSITORY: '{kind}'. Valid options: 'supabase', 'memory'")


def create_transcript_source(recognizer: SpeechRecognizer) -> SpeechToTextService:
    """Wrap a recognizer in the speech-to-text service."""
    return SpeechToTextService(recognizer, RecognitionConfig(language=get_voice_language()))


def create_browser_recognizer() -> BrowserPushRecognizer:
    return BrowserPushRecognizer()


def create_voice_task_creation_service(
    transcript_source: SpeechToTextService,
    intent_extractor: IntentExtractor,
    task_repository: TaskRepository,
) -> VoiceTaskCreationService:
    """Create the voice session manager with environment config.

    Returns:
        VoiceTaskCreationService wired to the given collaborators
    """
    return VoiceTaskCreationService(
        transcript_source=transcript_source,
        intent_extractor=intent_extractor,
        task_repository=task_repository,
        config=get_voice_config(),
        user_id=get_voice_user_id(),
        language=get_voice_language(),
    )


def create_project_repository() -> ProjectRepository:
    """Create the project repository on the same backend as tasks (TASK_REPOSITORY).

    Raises:
        ValueError: If TASK_REPOSITORY is not supabase or memory
    """
    kind = get_task_repository_kind()
    if kind == "memory":
        return InMemoryProjectRepository()
    if kind == "supabase":
        return SupabaseProjectRepository()
    raise ValueError(f"Invalid TASK_REPOSITORY: '{kind}'. Valid options: 'supabase', 'memory'")


def create_command_dispatcher(
    task_repository: TaskRepository,
    project_repository: ProjectRepository | None = None,
) -> VoiceCommandDispatcher:
    return VoiceCommandDispatcher(
        task_repository,
        project_repository=project_repository,
        user_id=get_voice_user_id(),
    )
