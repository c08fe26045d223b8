"""Domain services - orchestration and business logic."""

from .command_classifier import (
    CommandKind,
    classify_command,
    create_task_grammar,
    extract_task_details,
    is_project_command,
    is_task_command,
)
from .command_dispatcher import (
    CommandResult,
    VoiceCommandDispatcher,
    parse_tool_call,
)
from .intent_router import (
    IntentRouter,
    Route,
    RoutingDecision,
)
from .voice_events import (
    VoiceEvent,
    VoiceEventEmitter,
    VoiceEventType,
)
from .voice_task_creation import (
    SessionStatus,
    VoiceInitializationError,
    VoiceTaskCreationService,
)

__all__ = [
    "CommandKind",
    "classify_command",
    "create_task_grammar",
    "extract_task_details",
    "is_project_command",
    "is_task_command",
    "CommandResult",
    "VoiceCommandDispatcher",
    "parse_tool_call",
    "IntentRouter",
    "Route",
    "RoutingDecision",
    "VoiceEvent",
    "VoiceEventEmitter",
    "VoiceEventType",
    "SessionStatus",
    "VoiceInitializationError",
    "VoiceTaskCreationService",
]
