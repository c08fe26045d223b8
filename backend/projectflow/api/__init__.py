"""API layer - FastAPI routes and dependencies."""

from .dependencies import (
    CommandDispatcherDep,
    EventLogDep,
    InMemoryRateLimiter,
    RecognizerDep,
    SpeechServiceDep,
    VoiceServiceDep,
    cleanup_dependencies,
    get_command_dispatcher,
    get_event_log,
    get_rate_limiter,
    get_recognizer,
    get_speech_service,
    get_voice_service,
    init_dependencies,
    rate_limit,
)
from .routes import commands_router, voice_router

__all__ = [
    # Routes
    "voice_router",
    "commands_router",
    # Dependencies
    "init_dependencies",
    "cleanup_dependencies",
    "get_recognizer",
    "get_speech_service",
    "get_voice_service",
    "get_event_log",
    "get_command_dispatcher",
    "get_rate_limiter",
    "rate_limit",
    # Type aliases
    "RecognizerDep",
    "SpeechServiceDep",
    "VoiceServiceDep",
    "EventLogDep",
    "CommandDispatcherDep",
    "InMemoryRateLimiter",
]
