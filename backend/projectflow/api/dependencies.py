"""FastAPI dependency injection module.

Provides singleton instances of services for API routes.
Uses lifespan events for initialization and cleanup.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from projectflow.adapters.browser_recognizer import BrowserPushRecognizer
from projectflow.adapters.speech_to_text import SpeechToTextService
from projectflow.composition import (
    create_browser_recognizer,
    create_command_dispatcher,
    create_intent_extractor,
    create_project_repository,
    create_task_repository,
    create_transcript_source,
    create_voice_task_creation_service,
)
from projectflow.domain.services.command_dispatcher import VoiceCommandDispatcher
from projectflow.domain.services.voice_task_creation import VoiceTaskCreationService
from projectflow.infrastructure.event_log import VoiceEventLog
from projectflow.ports.llm_service import IntentExtractor
from projectflow.ports.project_repository import ProjectRepository
from projectflow.ports.task_repository import TaskRepository

logger = logging.getLogger(__name__)


# Singletons stored at module level
_recognizer: BrowserPushRecognizer | None = None
_speech_service: SpeechToTextService | None = None
_task_repository: TaskRepository | None = None
_project_repository: ProjectRepository | None = None
_voice_service: VoiceTaskCreationService | None = None
_event_log: VoiceEventLog | None = None
_command_dispatcher: VoiceCommandDispatcher | None = None


async def init_dependencies(
    intent_extractor: IntentExtractor | None = None,
    task_repository: TaskRepository | None = None,
    project_repository: ProjectRepository | None = None,
) -> None:
    """Initialize all singleton dependencies.

    Called during FastAPI lifespan startup. Collaborators can be passed in
    to replace the environment-selected adapters.
    """
    global _recognizer, _speech_service, _task_repository, _voice_service
    global _event_log, _command_dispatcher, _project_repository

    _task_repository = task_repository or create_task_repository()
    _project_repository = project_repository or create_project_repository()
    extractor = intent_extractor or create_intent_extractor()

    _recognizer = create_browser_recognizer()
    _speech_service = create_transcript_source(_recognizer)
    _voice_service = create_voice_task_creation_service(
        transcript_source=_speech_service,
        intent_extractor=extractor,
        task_repository=_task_repository,
    )
    await _voice_service.initialize()

    _event_log = VoiceEventLog()
    _voice_service.events.on_any(_event_log.record)

    _command_dispatcher = create_command_dispatcher(_task_repository, _project_repository)
    logger.info("Voice dependencies initialized")


async def cleanup_dependencies() -> None:
    """Cleanup dependencies on shutdown.

    Called during FastAPI lifespan shutdown.
    Stops the voice session and closes connections.
    """
    global _voice_service, _task_repository, _project_repository

    if _voice_service is not None:
        await _voice_service.destroy()

    # Close HTTP clients
    for repository in (_task_repository, _project_repository):
        if repository is not None and hasattr(repository, "close"):
            await repository.close()

    _voice_service = None
    _task_repository = None
    _project_repository = None


def get_recognizer() -> BrowserPushRecognizer:
    """Dependency: Get BrowserPushRecognizer instance."""
    if _recognizer is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies first.")
    return _recognizer


def get_speech_service() -> SpeechToTextService:
    """Dependency: Get SpeechToTextService instance."""
    if _speech_service is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies first.")
    return _speech_service


def get_voice_service() -> VoiceTaskCreationService:
    """Dependency: Get VoiceTaskCreationService instance."""
    if _voice_service is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies first.")
    return _voice_service


def get_event_log() -> VoiceEventLog:
    """Dependency: Get VoiceEventLog instance."""
    if _event_log is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies first.")
    return _event_log


def get_command_dispatcher() -> VoiceCommandDispatcher:
    """Dependency: Get VoiceCommandDispatcher instance."""
    if _command_dispatcher is None:
        raise RuntimeError("Dependencies not initialized. Call init_dependencies first.")
    return _command_dispatcher


# Type aliases for dependency injection
RecognizerDep = Annotated[BrowserPushRecognizer, Depends(get_recognizer)]
SpeechServiceDep = Annotated[SpeechToTextService, Depends(get_speech_service)]
VoiceServiceDep = Annotated[VoiceTaskCreationService, Depends(get_voice_service)]
EventLogDep = Annotated[VoiceEventLog, Depends(get_event_log)]
CommandDispatcherDep = Annotated[VoiceCommandDispatcher, Depends(get_command_dispatcher)]


# =============================================================================
# In-Memory Rate Limiter
# =============================================================================


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    max_requests: int
    window_seconds: int


# Per-endpoint rate limits
RATE_LIMITS: dict[str, RateLimitConfig] = {
    "/api/voice/session/start": RateLimitConfig(max_requests=30, window_seconds=60),
    "/api/voice/recognizer/result": RateLimitConfig(max_requests=300, window_seconds=60),
    "/api/voice/commands": RateLimitConfig(max_requests=60, window_seconds=60),
}


class InMemoryRateLimiter:
    """Simple in-memory rate limiter using sliding window.

    Not suitable for multi-process deployments.
    Uses IP address as client identifier.
    """

    def __init__(self, limits: dict[str, RateLimitConfig] | None = None) -> None:
        self._limits = limits if limits is not None else RATE_LIMITS
        # requests[endpoint][client_ip] = list of timestamps
        self._requests: dict[str, dict[str, list[float]]] = defaultdict(lambda: defaultdict(list))

    def _cleanup_old_requests(self, endpoint: str, client_ip: str, window_seconds: int) -> None:
        """Remove requests outside the sliding window."""
        cutoff = datetime.now(UTC).timestamp() - window_seconds
        self._requests[endpoint][client_ip] = [
            ts for ts in self._requests[endpoint][client_ip] if ts > cutoff
        ]

    def get_limit(self, endpoint: str) -> RateLimitConfig | None:
        return self._limits.get(endpoint)

    def is_allowed(self, endpoint: str, client_ip: str) -> bool:
        """Check if request is allowed under rate limit."""
        config = self._limits.get(endpoint)
        if config is None:
            return True

        self._cleanup_old_requests(endpoint, client_ip, config.window_seconds)
        return len(self._requests[endpoint][client_ip]) < config.max_requests

    def record_request(self, endpoint: str, client_ip: str) -> None:
        """Record a request for rate limiting."""
        self._requests[endpoint][client_ip].append(datetime.now(UTC).timestamp())

    def reset(self) -> None:
        self._requests.clear()


# Singleton rate limiter
_rate_limiter = InMemoryRateLimiter()


def get_rate_limiter() -> InMemoryRateLimiter:
    """Get rate limiter instance."""
    return _rate_limiter


def rate_limit(endpoint: str):
    """Dependency factory: Rate limit check for endpoint.

    Usage:
        @router.post("/session/start")
        async def start_session(
            _: Annotated[None, Depends(rate_limit("/api/voice/session/start"))],
            ...
        ):

    Raises:
        HTTPException 429 if rate limit exceeded
    """

    async def check_rate_limit(request: Request) -> None:
        client_ip = request.client.host if request.client else "unknown"

        if not _rate_limiter.is_allowed(endpoint, client_ip):
            config = _rate_limiter.get_limit(endpoint)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "error": {
                        "code": "RATE_LIMIT_EXCEEDED",
                        "message": f"Too many requests. Limit: {config.max_requests}/{config.window_seconds}s",
                    }
                },
            )

        _rate_limiter.record_request(endpoint, client_ip)

    return check_rate_limit
