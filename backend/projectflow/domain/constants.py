"""
Shared Domain Constants.

Central location for thresholds, timings and phrase lists used across the
voice task creation pipeline.
All timing values are in milliseconds for consistency.
"""

# =============================================================================
# Timing (milliseconds)
# =============================================================================

SILENCE_TIMEOUT_MS = 10000  # Recognizer stops itself after this much silence
RECOGNITION_RESTART_DELAY_MS = 1000  # Restart after no-speech/aborted errors
LISTEN_RESTART_DELAY_MS = 500  # Session restarts listening after stream end
DEFAULT_SESSION_TIMEOUT_MS = 300000  # 5 minutes of inactivity


# =============================================================================
# Thresholds
# =============================================================================

CONFIRMATION_CONFIDENCE_THRESHOLD = 0.8  # Below this, pending task needs confirmation
MIN_FRAGMENT_LENGTH = 3  # Shorter final fragments are ignored
MIN_TITLE_LENGTH = 3  # Shorter extracted titles fall back to the raw text


# =============================================================================
# Linguistic Patterns
# =============================================================================

TASK_COMMAND_PHRASES = (
    "create task",
    "add task",
    "new task",
    "make task",
    "add to do",
    "create to do",
    "add todo",
    "create todo",
    "remind me",
    "schedule",
    "plan",
    "organize",
)

PROJECT_COMMAND_PHRASES = (
    "create project",
    "new project",
    "start project",
    "begin project",
    "make project",
    "add project",
)

DEFAULT_WAKE_WORDS = ("hey planner", "create task", "add task", "new task")

# Phrases handed to recognizers as recognition hints
COMMAND_PHRASE_HINTS = (
    # Task commands
    "create task",
    "add task",
    "new task",
    "make task",
    "create todo",
    "add todo",
    "new todo",
    "make todo",
    "create to do",
    "add to do",
    "new to do",
    "make to do",
    # Project commands
    "create project",
    "new project",
    "start project",
    "begin project",
    # Query commands
    "show tasks",
    "list tasks",
    "get tasks",
    "display tasks",
    "show projects",
    "list projects",
    "get projects",
    "display projects",
    # Priority keywords
    "high priority",
    "low priority",
    "medium priority",
    "urgent",
    # Time keywords
    "due today",
    "due tomorrow",
    "by today",
    "by tomorrow",
    "this week",
    "next week",
    "this month",
    "next month",
)

SUPPORTED_LANGUAGES = (
    "en-US",
    "en-GB",
    "en-AU",
    "en-CA",
    "en-IN",
    "es-ES",
    "es-MX",
    "fr-FR",
    "de-DE",
    "it-IT",
    "pt-BR",
    "ja-JP",
    "ko-KR",
    "zh-CN",
    "zh-TW",
    "ru-RU",
    "ar-SA",
    "hi-IN",
    "th-TH",
    "vi-VN",
)

TASK_STATUSES = ("todo", "in_progress", "completed", "cancelled")
TASK_PRIORITIES = ("low", "medium", "high", "urgent")


# =============================================================================
# User-facing Messages (Single Source of Truth)
# =============================================================================


class VoiceMessages:
    """Centralized messages surfaced through error events and API responses."""

    CLARIFY = "I couldn't understand that command. Could you try again?"
    PENDING_NOT_FOUND = "Pending task not found"
    UNTITLED_TASK = "Untitled Task"
    NEW_PROJECT = "New Project"
    DISPATCH_ERROR = "Sorry, I encountered an error processing your request. Please try again."

    @staticmethod
    def speech_processing_failed(error: Exception) -> str:
        return f"Failed to process speech: {error}"

    @staticmethod
    def project_processing_failed(error: Exception) -> str:
        return f"Failed to process project command: {error}"

    @staticmethod
    def task_creation_failed(error: Exception) -> str:
        return f"Failed to create task: {error}"

    @staticmethod
    def recognition_error(kind: str) -> str:
        return f"Speech recognition error: {kind}"
