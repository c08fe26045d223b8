"""Application configuration loaded from environment variables.

Provides type-safe access to configuration with sensible defaults.
Production defaults are restrictive for security.
"""

import os
from pathlib import Path

from projectflow.domain.constants import DEFAULT_SESSION_TIMEOUT_MS, DEFAULT_WAKE_WORDS
from projectflow.domain.value_objects.priority import Priority
from projectflow.domain.value_objects.voice_config import VoiceTaskCreationConfig

# Default usage log path (relative to backend/)
DEFAULT_USAGE_LOG = Path(__file__).parent.parent / "logs" / "usage.jsonl"


def _get_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ("1", "true", "yes", "on")


def get_cors_origins() -> list[str]:
    """Get allowed CORS origins from environment.

    Environment variable: CORS_ORIGINS (comma-separated)
    Default: localhost ports 3000 and 5173 for development
    """
    default_origins = "http://localhost:3000,http://localhost:5173"
    origins_str = os.getenv("CORS_ORIGINS", default_origins)
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


def get_cors_allow_credentials() -> bool:
    """Get CORS allow_credentials setting.

    Environment variable: CORS_ALLOW_CREDENTIALS
    Default: true for development (needed for cookies/auth)
    """
    return os.getenv("CORS_ALLOW_CREDENTIALS", "true").lower() == "true"


# Restricted HTTP methods - only what the API actually uses
CORS_ALLOWED_METHODS = ["GET", "POST", "PATCH", "DELETE", "OPTIONS"]

# Restricted headers - only what's needed for the API
CORS_ALLOWED_HEADERS = [
    "Accept",
    "Accept-Language",
    "Content-Type",
    "Authorization",
    "X-Requested-With",
]


def is_production() -> bool:
    """Check if running in production environment."""
    return os.getenv("ENVIRONMENT", "development").lower() == "production"


def get_log_level() -> str:
    """Get root log level.

    Environment variable: LOG_LEVEL
    Default: INFO
    """
    return os.getenv("LOG_LEVEL", "INFO").upper()


# =============================================================================
# Claude (intent extraction)
# =============================================================================


def get_anthropic_api_key() -> str:
    """Get Anthropic API key.

    Environment variable: ANTHROPIC_API_KEY
    Required for intent extraction.
    """
    return os.getenv("ANTHROPIC_API_KEY", "")


def get_claude_model() -> str:
    """Environment variable: CLAUDE_MODEL (default claude-sonnet-4-5)"""
    return os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5")


def get_claude_base_url() -> str:
    """Get the OpenAI-compatible Claude endpoint.

    Environment variable: CLAUDE_BASE_URL
    """
    return os.getenv("CLAUDE_BASE_URL", "https://api.anthropic.com/v1/")


# =============================================================================
# Task persistence
# =============================================================================


def get_task_repository_kind() -> str:
    """Get which task repository to use.

    Environment variable: TASK_REPOSITORY (supabase | memory)
    Default: supabase in production, memory otherwise
    """
    default = "supabase" if is_production() else "memory"
    return os.getenv("TASK_REPOSITORY", default).strip().lower()


def get_supabase_url() -> str:
    """Environment variable: SUPABASE_URL"""
    return os.getenv("SUPABASE_URL", "").rstrip("/")


def get_supabase_anon_key() -> str:
    """Environment variable: SUPABASE_ANON_KEY"""
    return os.getenv("SUPABASE_ANON_KEY", "")


def get_supabase_access_token() -> str | None:
    """Get the user access token sent as bearer.

    Environment variable: SUPABASE_ACCESS_TOKEN
    Default: None (the anon key is used as bearer)
    """
    return os.getenv("SUPABASE_ACCESS_TOKEN") or None


# =============================================================================
# Voice task creation
# =============================================================================


def get_voice_user_id() -> str:
    """Environment variable: VOICE_USER_ID (default current-user)"""
    return os.getenv("VOICE_USER_ID", "current-user")


def get_voice_language() -> str:
    """Environment variable: VOICE_LANGUAGE (default en-US)"""
    return os.getenv("VOICE_LANGUAGE", "en-US")


def get_voice_config() -> VoiceTaskCreationConfig:
    """Build voice task creation config from environment.

    Environment variables:
        VOICE_AUTO_SAVE (default false)
        VOICE_CONFIRM_BEFORE_SAVING (default true)
        VOICE_DEFAULT_PRIORITY (default medium)
        VOICE_SESSION_TIMEOUT_MS (default 300000)
        VOICE_ENABLE_WAKE_WORD (default true)
        VOICE_WAKE_WORDS (comma-separated)

    Raises:
        ValueError: If a value is malformed
    """
    wake_words_str = os.getenv("VOICE_WAKE_WORDS")
    wake_words = (
        tuple(w.strip().lower() for w in wake_words_str.split(",") if w.strip())
        if wake_words_str
        else DEFAULT_WAKE_WORDS
    )
    return VoiceTaskCreationConfig(
        enable_auto_save=_get_bool("VOICE_AUTO_SAVE", False),
        confirm_before_saving=_get_bool("VOICE_CONFIRM_BEFORE_SAVING", True),
        default_priority=Priority(os.getenv("VOICE_DEFAULT_PRIORITY", "medium").lower()),
        session_timeout_ms=int(os.getenv("VOICE_SESSION_TIMEOUT_MS", DEFAULT_SESSION_TIMEOUT_MS)),
        enable_wake_word=_get_bool("VOICE_ENABLE_WAKE_WORD", True),
        wake_words=wake_words,
    )


def get_usage_log_path() -> Path:
    """Environment variable: USAGE_LOG_PATH (default backend/logs/usage.jsonl)"""
    path = os.getenv("USAGE_LOG_PATH")
    return Path(path) if path else DEFAULT_USAGE_LOG
